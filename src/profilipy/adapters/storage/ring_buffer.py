"""Ring buffer storage adapter for recently processed queries.

Provides bounded in-memory storage that automatically evicts the oldest
facts when the buffer is full, so memory stays predictable no matter how
busy the profiled databases are.
"""

from collections import deque
from collections.abc import Iterable

from profilipy.core.models import QueryFact

DEFAULT_MAX_SIZE = 1000


class RingBufferQueryStorage:
    """Fixed-size buffer of query facts, newest first.

    New facts are pushed to the front; once ``max_size`` is reached the
    oldest fact falls off the back.

    Args:
        max_size: Maximum number of facts to keep.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        self._buffer: deque[QueryFact] = deque(maxlen=max_size)

    @property
    def max_size(self) -> int:
        return self._buffer.maxlen or 0

    def push(self, fact: QueryFact) -> None:
        """Insert a fact at the front of the buffer."""
        self._buffer.appendleft(fact)

    def __len__(self) -> int:
        return len(self._buffer)

    def read(self) -> Iterable[QueryFact]:
        """Read stored facts, newest first."""
        yield from list(self._buffer)
