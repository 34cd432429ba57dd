"""Core domain models for profiler ingestion."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MetricSample:
    """A single metric measurement.

    Attributes:
        name: Metric name (e.g., mongodb_query_details).
        value: The metric value.
        labels: Key-value pairs for metric dimensions.
    """

    name: str
    value: float
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricFamily:
    """A named group of samples sharing help text and type.

    Attributes:
        name: Family name, used for the HELP and TYPE lines.
        help: Human readable description.
        type: Prometheus metric type ("gauge" or "counter").
        samples: Samples belonging to the family.
    """

    name: str
    help: str
    type: str
    samples: list[MetricSample] = field(default_factory=list)


@dataclass(frozen=True)
class RecordIdentity:
    """Deduplication and expiry key of a profiling record.

    Attributes:
        query_hash: The record's queryHash, or "none" when absent.
        event: Event timestamp in epoch millis, or a content digest
            prefixed with "nots" when the record has no usable timestamp.
    """

    query_hash: str
    event: str

    @property
    def key(self) -> str:
        return f"{self.query_hash}-{self.event}"


@dataclass(frozen=True)
class QueryFact:
    """Normalized projection of one profiling record.

    Counters default to 0 and text fields to "N/A" when the record
    does not carry them.
    """

    id: str
    timestamp: str
    database: str
    collection: str
    operation: str
    query: str
    millis: float = 0
    docs_examined: int = 0
    keys_examined: int = 0
    plan_summary: str = "N/A"
    user: str = "N/A"
    client: str = "N/A"
    write_conflicts: int = 0
    locks: str = "N/A"
    protocol: str = "N/A"
    cursor_exhausted: bool = False
    num_yield: int = 0
    execution_plan: str = "N/A"
    originating_command: str = "N/A"
    response_length: int = 0
