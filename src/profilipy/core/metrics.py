"""Metric definitions and helper functions for building samples."""

from profilipy.core.models import MetricFamily, MetricSample, QueryFact

QUERY_DETAILS_NAME = "mongodb_query_details"
QUERY_DETAILS_HELP = "Details of individual queries in MongoDB"
QUERY_DETAILS_LABELS = (
    "query_id",
    "database",
    "collection",
    "operation_type",
    "millis",
    "docs_examined",
    "keys_examined",
    "plan_summary",
    "query_pattern",
    "timestamp",
)


def _number_label(value: float | int) -> str:
    """Render a counter label the way it reads in the profiler (42, not 42.0)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def query_details_labels(
    fact: QueryFact, plan_summary: str, query_pattern: str
) -> dict[str, str]:
    """Build the label set of the ``mongodb_query_details`` series for a fact.

    Args:
        fact: The normalized query fact.
        plan_summary: Raw plan summary, "none" when the record has none.
        query_pattern: Query-shape fingerprint of the record.

    Returns:
        Labels keyed by ``QUERY_DETAILS_LABELS``.
    """
    return {
        "query_id": fact.id,
        "database": fact.database,
        "collection": fact.collection,
        "operation_type": fact.operation,
        "millis": _number_label(fact.millis),
        "docs_examined": _number_label(fact.docs_examined),
        "keys_examined": _number_label(fact.keys_examined),
        "plan_summary": plan_summary,
        "query_pattern": query_pattern,
        "timestamp": fact.timestamp,
    }


def gauge(name: str, help: str, value: float) -> MetricFamily:
    """Create an unlabeled gauge family holding one sample.

    Args:
        name: Metric name (e.g., "profilipy_tracked_series")
        help: Help text
        value: Current gauge value

    Returns:
        MetricFamily with a single sample
    """
    return MetricFamily(
        name=name, help=help, type="gauge", samples=[MetricSample(name, value)]
    )


def counter(name: str, help: str, value: float) -> MetricFamily:
    """Create an unlabeled counter family holding one sample.

    Args:
        name: Metric name, ending in ``_total``
        help: Help text
        value: Accumulated count

    Returns:
        MetricFamily with a single sample
    """
    return MetricFamily(
        name=name, help=help, type="counter", samples=[MetricSample(name, value)]
    )
