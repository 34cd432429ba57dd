"""Shared ingestion state guarded by a single lock.

The poll loop, the cleanup sweeper and the HTTP scrape path all touch the
same structures: the seen-set, the metric store, the expiry index and the
recent-queries ring. Every access goes through ``IngestionState`` and takes
its lock, and no method awaits while holding it.
"""

import threading
import time
from collections.abc import Callable, Iterable, Mapping

from profilipy.core.metrics import (
    QUERY_DETAILS_HELP,
    QUERY_DETAILS_NAME,
    counter,
    gauge,
)
from profilipy.core.models import MetricFamily, QueryFact
from profilipy.core.ports import MetricsStoragePort, QueryStoragePort


class IngestionState:
    """Owns every mutable structure of the ingestion engine.

    Args:
        metrics: Store for the ``mongodb_query_details`` series.
        recent: Bounded buffer of recently processed query facts.
        clock: Returns the current wall-clock time in seconds. Injected so
            expiry can be tested without sleeping.
    """

    def __init__(
        self,
        metrics: MetricsStoragePort,
        recent: QueryStoragePort,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        # identity -> databases whose profile collection holds it
        self._seen: dict[str, set[str]] = {}
        self._expiry: dict[str, float] = {}
        self._metrics = metrics
        self._recent = recent
        self._processed_total = 0
        self._expired_total = 0

    def is_seen(self, identity: str) -> bool:
        with self._lock:
            return identity in self._seen

    def track(self, identity: str, database: str, labels: Mapping[str, str]) -> bool:
        """Emit the series for a newly processed record.

        Marks the identity as seen, upserts its series with value 1 and
        stamps the expiry index, all in one critical section.

        Args:
            identity: Record identity key.
            database: Database whose profile collection holds the record.
            labels: Full label set of the series.

        Returns:
            False if the identity was already seen, in which case nothing
            changes.
        """
        with self._lock:
            if identity in self._seen:
                return False
            self._seen[identity] = {database}
            self._metrics.set(labels, 1)
            self._expiry[identity] = self._clock()
            return True

    def remember(self, fact: QueryFact) -> None:
        """Push a fact to the front of the recent-queries ring."""
        with self._lock:
            self._recent.push(fact)
            self._processed_total += 1

    def retain_seen(self, database: str, present: Iterable[str]) -> int:
        """Reconcile the seen-set with one database's profile collection.

        Called after a complete scan with every identity encountered in
        that database's profile collection. Seen identities found there are
        recorded as held by ``database``; those no longer there are released
        by it. An identity is forgotten only once no database holds it, since
        records that rotated out of every capped collection can never be
        read again. Identities never tracked, such as ignored records, are
        not added.

        Returns:
            Number of identities forgotten.
        """
        keep = set(present)
        with self._lock:
            forgotten = []
            for identity, holders in self._seen.items():
                if identity in keep:
                    holders.add(database)
                else:
                    holders.discard(database)
                    if not holders:
                        forgotten.append(identity)
            for identity in forgotten:
                del self._seen[identity]
        return len(forgotten)

    def evict_expired(self, ttl: float) -> list[str]:
        """Remove every series whose age is greater than ``ttl`` seconds.

        Iterates over a snapshot of the expiry index so entries stamped
        while the sweep runs are left intact.

        Returns:
            Identities whose series were removed.
        """
        with self._lock:
            now = self._clock()
            snapshot = list(self._expiry.items())
            expired = [identity for identity, stamp in snapshot if now - stamp > ttl]
            for identity in expired:
                self._metrics.remove(query_id=identity)
                del self._expiry[identity]
            self._expired_total += len(expired)
        return expired

    def has_series(self, identity: str) -> bool:
        with self._lock:
            return identity in self._expiry

    def recent_queries(self) -> list[QueryFact]:
        """Snapshot of the recent-queries ring, newest first."""
        with self._lock:
            return list(self._recent.read())

    def collect(self) -> list[MetricFamily]:
        """Snapshot every exposed metric family."""
        with self._lock:
            return [
                MetricFamily(
                    name=QUERY_DETAILS_NAME,
                    help=QUERY_DETAILS_HELP,
                    type="gauge",
                    samples=list(self._metrics.scrape()),
                ),
                gauge(
                    "profilipy_tracked_series",
                    "Query detail series currently exposed",
                    len(self._expiry),
                ),
                gauge(
                    "profilipy_recent_queries",
                    "Query facts held in the recent-queries buffer",
                    len(self._recent),
                ),
                gauge(
                    "profilipy_seen_identities",
                    "Profiling record identities remembered for deduplication",
                    len(self._seen),
                ),
                counter(
                    "profilipy_entries_processed_total",
                    "Profiling records turned into query facts",
                    self._processed_total,
                ),
                counter(
                    "profilipy_expired_series_total",
                    "Query detail series removed after their time-to-live",
                    self._expired_total,
                ),
            ]
