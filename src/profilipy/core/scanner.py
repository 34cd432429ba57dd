"""Per-database scan of the profiler collection."""

import logging
from collections.abc import Mapping

from profilipy.core.ports import ProfileSourcePort
from profilipy.core.processor import EntryProcessor
from profilipy.core.records import record_identity
from profilipy.core.state import IngestionState

logger = logging.getLogger(__name__)


class DatabaseScanner:
    """Reads a database's whole ``system.profile`` and ingests new records.

    The profiler log is re-read in full on every poll; the processor's
    deduplication keeps records already reported from being emitted again.

    Args:
        source: Read-only profiler source.
        processor: Entry processor sharing ``state``.
        state: Ingestion state receiving the new facts.
    """

    def __init__(
        self,
        source: ProfileSourcePort,
        processor: EntryProcessor,
        state: IngestionState,
    ) -> None:
        self._source = source
        self._processor = processor
        self._state = state

    async def scan(self, database: str) -> int:
        """Ingest every new profiling record of one database.

        Args:
            database: Database name.

        Returns:
            Number of records turned into new query facts. Errors are
            logged and reported as 0 so the rest of the poll can proceed.
        """
        logger.info("Checking database %s", database)
        try:
            level = await self._source.profiling_level(database)
            logger.info(
                "Profile level in %s: %s",
                database,
                "unknown" if level is None else level,
            )
            if not await self._source.has_profile_collection(database):
                logger.info("No system.profile found in %s", database)
                return 0

            count = await self._source.count_profile_entries(database)
            logger.info("Found %d entries in system.profile for %s", count, database)

            processed = 0
            encountered: set[str] = set()
            async for raw in self._source.read_profile(database):
                if isinstance(raw, Mapping):
                    encountered.add(record_identity(raw).key)
                fact = self._processor.process(raw)
                if fact is not None:
                    self._state.remember(fact)
                    processed += 1
            self._state.retain_seen(database, encountered)
        except Exception:
            logger.exception("Error processing %s", database)
            return 0

        logger.info("Processed %d new entries in %s", processed, database)
        return processed
