"""Shared query parameter parsing utilities for framework adapters.

This module provides utilities for parsing and validating the query
parameters of the ``/queries`` endpoint, shared by the ASGI and FastAPI
adapters.
"""

from collections.abc import Iterable
from datetime import datetime

from profilipy.core.models import QueryFact


def _parse_since_param(params: dict[str, list[str]]) -> float:
    """Parse and validate the 'since' query parameter.

    Args:
        params: Parsed query string parameters (as returned by urllib.parse.parse_qs).

    Returns:
        Timestamp as float, defaulting to 0.0 if invalid or missing.
        Rejects negative, NaN, and infinite values, returning 0.0 for these cases.
    """
    try:
        value = float(params.get("since", ["0"])[0])
        # Reject negative, NaN, and infinite values
        if (
            value < 0
            or value != value
            or value == float("inf")
            or value == float("-inf")
        ):
            return 0.0
        return value
    except ValueError:
        return 0.0


def _parse_limit_param(params: dict[str, list[str]]) -> int | None:
    """Parse and validate the 'limit' query parameter.

    Returns:
        A positive limit, or None (no limit) if invalid or missing.
    """
    try:
        value = int(params.get("limit", [""])[0])
    except ValueError:
        return None
    return value if value > 0 else None


def _parse_database_param(params: dict[str, list[str]]) -> str | None:
    """Parse the 'database' query parameter, None if missing or blank."""
    values = params.get("database", [])
    value = values[0].strip() if values else ""
    return value or None


def _fact_epoch(fact: QueryFact) -> float:
    try:
        return datetime.fromisoformat(fact.timestamp.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def select_queries(
    facts: Iterable[QueryFact],
    since: float = 0,
    database: str | None = None,
    limit: int | None = None,
) -> list[QueryFact]:
    """Filter recent query facts, keeping their newest-first order.

    Args:
        facts: Facts, newest first.
        since: Unix timestamp. Keeps facts whose event time is > since.
        database: Keeps only facts from this database when given.
        limit: Maximum number of facts returned when given.
    """
    selected = [
        fact
        for fact in facts
        if (database is None or fact.database == database)
        and (since <= 0 or _fact_epoch(fact) > since)
    ]
    if limit is not None:
        return selected[:limit]
    return selected
