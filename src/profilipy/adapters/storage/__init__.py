"""Storage adapters implementing core ports."""

import time
from collections.abc import Callable

from profilipy.adapters.storage.in_memory import InMemoryMetricStore
from profilipy.adapters.storage.ring_buffer import (
    DEFAULT_MAX_SIZE,
    RingBufferQueryStorage,
)
from profilipy.core.metrics import QUERY_DETAILS_LABELS, QUERY_DETAILS_NAME
from profilipy.core.state import IngestionState


def in_memory_state(
    max_recent_queries: int = DEFAULT_MAX_SIZE,
    clock: Callable[[], float] = time.time,
) -> IngestionState:
    """Create an ingestion state backed by the in-memory adapters.

    Args:
        max_recent_queries: Capacity of the recent-queries ring.
        clock: Wall-clock source in seconds.
    """
    return IngestionState(
        metrics=InMemoryMetricStore(QUERY_DETAILS_NAME, QUERY_DETAILS_LABELS),
        recent=RingBufferQueryStorage(max_recent_queries),
        clock=clock,
    )


__all__ = [
    "InMemoryMetricStore",
    "RingBufferQueryStorage",
    "in_memory_state",
]
