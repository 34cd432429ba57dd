"""Periodic activities: the profile poll loop and the expiry sweeper."""

import asyncio
import contextlib
import logging
from collections.abc import Iterable
from enum import Enum

from profilipy.core.ports import ProfileSourcePort
from profilipy.core.scanner import DatabaseScanner
from profilipy.core.state import IngestionState

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_DATABASES = ("admin", "local", "config")


async def wait_or_stop(stop: asyncio.Event, timeout: float) -> bool:
    """Sleep for ``timeout`` seconds unless ``stop`` is set first.

    Returns:
        True if the stop signal was set.
    """
    with contextlib.suppress(asyncio.TimeoutError):
        await asyncio.wait_for(stop.wait(), timeout)
    return stop.is_set()


class LoopState(Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    TERMINATED = "terminated"


class PollLoop:
    """Scans every application database on a fixed interval.

    Args:
        source: Read-only profiler source.
        scanner: Scanner bound to the same source.
        interval: Seconds between the end of one poll and the next.
        system_databases: Databases never scanned.
    """

    def __init__(
        self,
        source: ProfileSourcePort,
        scanner: DatabaseScanner,
        interval: float,
        system_databases: Iterable[str] = DEFAULT_SYSTEM_DATABASES,
    ) -> None:
        self._source = source
        self._scanner = scanner
        self._interval = interval
        self._system_databases = frozenset(system_databases)
        self.state = LoopState.CONNECTING

    async def run_once(self) -> int:
        """Scan every non-system database once.

        Returns:
            Total number of new query facts.
        """
        logger.info("Looking for queries...")
        total = 0
        for name in await self._source.list_database_names():
            if name in self._system_databases:
                continue
            total += await self._scanner.scan(name)
        logger.info("Total entries processed: %d", total)
        return total

    async def run(self, stop: asyncio.Event) -> None:
        """Connect, then poll until ``stop`` is set.

        A failure to connect propagates. Failures inside an iteration are
        logged and the loop carries on with the next one.
        """
        self.state = LoopState.CONNECTING
        logger.info("Starting query monitoring...")
        try:
            try:
                await self._source.connect()
            except Exception:
                logger.exception("Error connecting to MongoDB")
                raise
            logger.info("Successfully connected to MongoDB")
            self.state = LoopState.CONNECTED

            while not stop.is_set():
                try:
                    await self.run_once()
                except Exception:
                    logger.exception("General error while polling")
                logger.debug("Waiting for next iteration...")
                if await wait_or_stop(stop, self._interval):
                    break
        finally:
            self.state = LoopState.TERMINATED
            try:
                await self._source.close()
            except Exception:
                logger.exception("Error closing MongoDB connection")


class CleanupSweeper:
    """Evicts query series older than the time-to-live.

    Args:
        state: Ingestion state holding the expiry index.
        ttl: Maximum series age in seconds.
        interval: Seconds between sweeps.
    """

    def __init__(self, state: IngestionState, ttl: float, interval: float) -> None:
        self._state = state
        self._ttl = ttl
        self._interval = interval

    def sweep(self) -> int:
        """Run one sweep.

        Returns:
            Number of series removed.
        """
        expired = self._state.evict_expired(self._ttl)
        count = len(expired)
        logger.info("Cleaned up %d old metrics", count)
        return count

    async def run(self, stop: asyncio.Event) -> None:
        """Sweep every ``interval`` seconds until ``stop`` is set."""
        while not await wait_or_stop(stop, self._interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Cleanup sweep failed")
