"""Text rendering helpers for profiling record fields.

Profiler documents hold BSON values (ObjectId, datetime, Decimal128, ...),
so payloads are rendered as relaxed Extended JSON through ``bson.json_util``.
"""

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from bson import json_util
from bson.json_util import RELAXED_JSON_OPTIONS

QUERY_TEXT_LIMIT = 1000
EXECUTION_PLAN_LIMIT = 1500
TRUNCATION_MARKER = "..."

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def dumps_compact(value: Any) -> str:
    """Render a value as compact relaxed Extended JSON."""
    return json_util.dumps(
        value, json_options=RELAXED_JSON_OPTIONS, separators=(",", ":")
    )


def dumps_indented(value: Any) -> str:
    """Render a value as relaxed Extended JSON indented by two spaces."""
    return json_util.dumps(value, json_options=RELAXED_JSON_OPTIONS, indent=2)


def truncate(text: str, limit: int) -> str:
    """Cap text at ``limit`` characters, appending a marker when cut.

    Args:
        text: The rendered payload.
        limit: Maximum number of characters kept from ``text``.

    Returns:
        ``text`` unchanged when it fits, otherwise its first ``limit``
        characters followed by the truncation marker.
    """
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def _parse_date_wrapper(value: Any) -> datetime | None:
    """Parse the value held by an Extended JSON ``$date`` wrapper."""
    if isinstance(value, Mapping):
        try:
            value = int(value.get("$numberLong", ""))
        except (TypeError, ValueError):
            return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return _EPOCH + timedelta(milliseconds=value)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def coerce_datetime(ts: Any) -> datetime | None:
    """Turn a profiler ``ts`` field into an aware UTC datetime.

    Accepts a ``{"$date": ...}`` wrapper or a native datetime. Naive
    datetimes (PyMongo's default decoding) are taken to be UTC.

    Returns:
        The datetime in UTC, or None when ``ts`` is missing or unusable.
    """
    try:
        if isinstance(ts, Mapping) and "$date" in ts:
            parsed = _parse_date_wrapper(ts["$date"])
        elif isinstance(ts, datetime):
            parsed = ts
        else:
            return None
        if parsed is None:
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (OverflowError, ValueError, OSError):
        return None


def epoch_millis(moment: datetime) -> int:
    """Milliseconds between the Unix epoch and an aware datetime."""
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def isoformat_millis(moment: datetime) -> str:
    """Format an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"


def format_timestamp(ts: Any, now: datetime | None = None) -> str:
    """Normalize a profiler timestamp to ISO-8601, falling back to now."""
    parsed = coerce_datetime(ts)
    if parsed is None:
        parsed = now or datetime.now(UTC)
    return isoformat_millis(parsed)
