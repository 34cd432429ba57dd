"""Port interfaces for the ingestion engine.

These protocols define the contracts that adapters must implement.
The core depends only on these interfaces, not concrete implementations.
"""

from collections.abc import AsyncIterable, Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from profilipy.core.models import MetricSample, QueryFact


@runtime_checkable
class ProfileSourcePort(Protocol):
    """Port for read-only access to the database profiler.

    Adapters implementing this protocol enumerate databases and read the
    contents of their ``system.profile`` collections.
    Examples: MongoProfileSource, FakeProfileSource (tests).
    """

    async def connect(self) -> None:
        """Establish the connection. Failures propagate to the caller."""
        ...

    async def close(self) -> None:
        """Release the connection."""
        ...

    async def list_database_names(self) -> list[str]:
        """List every database on the server."""
        ...

    async def profiling_level(self, database: str) -> int | None:
        """Return the profiling level of a database, None if unreported."""
        ...

    async def has_profile_collection(self, database: str) -> bool:
        """Return True when the database has a ``system.profile`` collection."""
        ...

    async def count_profile_entries(self, database: str) -> int:
        """Count the documents currently held in ``system.profile``."""
        ...

    def read_profile(self, database: str) -> AsyncIterable[Mapping[str, Any]]:
        """Iterate every ``system.profile`` document in natural order."""
        ...


@runtime_checkable
class MetricsStoragePort(Protocol):
    """Port for metric series storage.

    Examples: InMemoryMetricStore.
    """

    def set(self, labels: Mapping[str, str], value: float) -> None:
        """Create or overwrite a series."""
        ...

    def remove(self, **match: str) -> int:
        """Remove series matching a label subset."""
        ...

    def scrape(self) -> Iterable[MetricSample]:
        """Scrape all current metric samples.

        Returns:
            Iterable of MetricSample objects representing current state.
        """
        ...


@runtime_checkable
class QueryStoragePort(Protocol):
    """Port for the bounded buffer of recently processed query facts.

    Examples: RingBufferQueryStorage.
    """

    def push(self, fact: QueryFact) -> None:
        """Insert a fact as the newest entry, evicting the oldest when full."""
        ...

    def read(self) -> Iterable[QueryFact]:
        """Read stored facts, newest first."""
        ...

    def __len__(self) -> int: ...
