"""Wires the ingestion engine together and runs its periodic tasks."""

import asyncio
import logging

from profilipy.config import ExporterConfig
from profilipy.core.ports import ProfileSourcePort
from profilipy.core.processor import EntryProcessor
from profilipy.core.scanner import DatabaseScanner
from profilipy.core.state import IngestionState
from profilipy.runtime.poller import CleanupSweeper, PollLoop

logger = logging.getLogger(__name__)


class ExporterService:
    """Runs the poll loop and the cleanup sweeper against shared state.

    Both tasks share one stop event. ``run()`` returns once both have
    finished, and re-raises a poll loop failure (a failed initial
    connection) after stopping the sweeper.

    Args:
        source: Read-only profiler source.
        state: Ingestion state shared with the HTTP surface.
        config: Exporter settings.
    """

    def __init__(
        self,
        source: ProfileSourcePort,
        state: IngestionState,
        config: ExporterConfig,
    ) -> None:
        self.state = state
        self.processor = EntryProcessor(state, config.ignored_collections)
        self.scanner = DatabaseScanner(source, self.processor, state)
        self.poller = PollLoop(
            source,
            self.scanner,
            interval=config.polling_interval,
            system_databases=config.system_databases,
        )
        self.sweeper = CleanupSweeper(
            state, ttl=config.metric_ttl, interval=config.cleanup_interval
        )
        self._stop = asyncio.Event()

    def stop(self) -> None:
        """Ask both tasks to finish their current step and exit."""
        self._stop.set()

    async def run(self) -> None:
        self._stop.clear()
        sweeper = asyncio.create_task(self.sweeper.run(self._stop))
        try:
            await self.poller.run(self._stop)
        finally:
            self._stop.set()
            await sweeper
        logger.info("Exporter service stopped")
