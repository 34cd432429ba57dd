"""Turns raw profiler documents into query facts and metric series."""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from profilipy.core.metrics import query_details_labels
from profilipy.core.models import QueryFact
from profilipy.core.records import (
    ProfiledOperation,
    RawProfilingRecord,
    parse_operation,
    record_identity,
    split_namespace,
)
from profilipy.core.serialization import (
    EXECUTION_PLAN_LIMIT,
    QUERY_TEXT_LIMIT,
    dumps_compact,
    dumps_indented,
    format_timestamp,
    truncate,
)
from profilipy.core.state import IngestionState

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


def _number(value: Any) -> int | float:
    """Coerce a counter field, treating anything non-numeric as 0."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    if value != value:
        return 0
    return value


def _text(value: Any) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    if isinstance(value, str):
        return value
    try:
        return dumps_compact(value)
    except (TypeError, ValueError):
        return str(value)


def _optional_json(value: Any) -> str:
    if value is None:
        return NOT_AVAILABLE
    try:
        return dumps_compact(value)
    except (TypeError, ValueError):
        return NOT_AVAILABLE


def render_query(payload: Any) -> str:
    """Render an operation payload, capped at ``QUERY_TEXT_LIMIT``."""
    try:
        return truncate(dumps_compact(payload), QUERY_TEXT_LIMIT)
    except (TypeError, ValueError, OverflowError) as exc:
        return f"Error processing details: {exc}"


def render_execution_plan(exec_stats: Any) -> str:
    """Render ``execStats``, capped at ``EXECUTION_PLAN_LIMIT``."""
    if exec_stats is None:
        return NOT_AVAILABLE
    try:
        return truncate(dumps_indented(exec_stats), EXECUTION_PLAN_LIMIT)
    except (TypeError, ValueError, OverflowError):
        return "Error processing execution plan"


def query_pattern(shape: Any) -> str:
    """Fingerprint a filter or command body to group similar queries."""
    if shape is None:
        return "unknown"
    try:
        return dumps_compact(shape)
    except (TypeError, ValueError, OverflowError):
        return "error"


class EntryProcessor:
    """Processes one profiling record at a time against shared state.

    Args:
        state: The ingestion state receiving series and expiry stamps.
        ignored_namespaces: ``database.collection`` pairs never reported.
    """

    def __init__(
        self, state: IngestionState, ignored_namespaces: Iterable[str] = ()
    ) -> None:
        self._state = state
        self._ignored = frozenset(ignored_namespaces)

    def process(self, raw: RawProfilingRecord) -> QueryFact | None:
        """Turn a raw record into a fact, emitting its metric series.

        Args:
            raw: A ``system.profile`` document.

        Returns:
            The new QueryFact, or None when the record was already
            processed or belongs to an ignored namespace. Malformed fields
            are rendered as sentinel values; this method does not raise for
            bad input.
        """
        if not isinstance(raw, Mapping):
            logger.warning(
                "Skipping non-document profile entry",
                extra={"entry_type": type(raw).__name__},
            )
            return None

        identity = record_identity(raw).key
        if self._state.is_seen(identity):
            return None

        database, collection = split_namespace(raw.get("ns"))
        if f"{database}.{collection}" in self._ignored:
            return None

        operation = parse_operation(raw)
        fact = self._build_fact(raw, identity, database, collection, operation)

        plan_summary = raw.get("planSummary")
        labels = query_details_labels(
            fact,
            plan_summary=str(plan_summary) if plan_summary else "none",
            query_pattern=query_pattern(operation.shape_source()),
        )
        if not self._state.track(identity, database, labels):
            return None
        return fact

    def _build_fact(
        self,
        raw: RawProfilingRecord,
        identity: str,
        database: str,
        collection: str,
        operation: ProfiledOperation,
    ) -> QueryFact:
        # nreturned takes precedence over docsExamined when non-zero
        docs_examined = _number(raw.get("nreturned")) or _number(
            raw.get("docsExamined")
        )
        client = raw.get("client") or raw.get("clientMetadata")
        return QueryFact(
            id=identity,
            timestamp=format_timestamp(raw.get("ts"), now=datetime.now(UTC)),
            database=database,
            collection=collection,
            operation=operation.kind,
            query=render_query(operation.payload()),
            millis=_number(raw.get("millis")),
            docs_examined=docs_examined,
            keys_examined=_number(raw.get("keysExamined")),
            plan_summary=_text(raw.get("planSummary")),
            user=_text(raw.get("user")),
            client=_text(client),
            write_conflicts=_number(raw.get("writeConflicts")),
            locks=_optional_json(raw.get("locks")),
            protocol=_text(raw.get("protocol")),
            cursor_exhausted=bool(raw.get("cursorExhausted", False)),
            num_yield=_number(raw.get("numYield")),
            execution_plan=render_execution_plan(raw.get("execStats")),
            originating_command=_optional_json(raw.get("originatingCommand")),
            response_length=_number(raw.get("responseLength")),
        )

