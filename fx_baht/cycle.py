"""The single entry point that acquires rates and commits them to the ledger."""

from __future__ import annotations

import threading

from fx_baht.config import TrackerConfig
from fx_baht.db.base_backend import LedgerStore
from fx_baht.ingestion.aggregator import RateAggregator
from fx_baht.ingestion.models import RateSnapshot
from fx_baht.utils.logger import get_logger

LOGGER = get_logger(__name__)


class AcquisitionInProgressError(RuntimeError):
    """Raised when a non-waiting trigger finds another cycle already running."""


class AcquisitionCycle:
    """Collect a snapshot and upsert it, one cycle at a time.

    The scheduled job and on-demand callers must share one instance: its lock
    makes collect-and-commit mutually exclusive, so two triggers on the same
    day commit one after the other instead of racing. With ``wait=False`` a
    trigger that finds the lock held is rejected with
    :class:`AcquisitionInProgressError`.
    """

    def __init__(
        self,
        aggregator: RateAggregator,
        store: LedgerStore,
        config: TrackerConfig,
    ) -> None:
        self.aggregator = aggregator
        self.store = store
        self.config = config
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def run(self, *, wait: bool = True, timeout: float | None = None) -> RateSnapshot:
        """Acquire, commit and return a snapshot (possibly degraded).

        ``timeout`` bounds how long a waiting trigger queues behind a running
        cycle; it is ignored when ``wait`` is ``False``.
        """

        if not wait:
            acquired = self._lock.acquire(blocking=False)
        elif timeout is None:
            acquired = self._lock.acquire()
        else:
            acquired = self._lock.acquire(timeout=timeout)
        if not acquired:
            raise AcquisitionInProgressError("An acquisition cycle is already running")
        try:
            LOGGER.info("Starting acquisition cycle")
            snapshot = self.aggregator.collect()
            self._commit(snapshot)
            return snapshot
        finally:
            self._lock.release()

    def _commit(self, snapshot: RateSnapshot) -> None:
        if not (snapshot.degraded and self.config.preserve_healthy):
            self.store.upsert(snapshot)
            return
        result = self.store.upsert_unless(snapshot, keep=lambda existing: not existing.degraded)
        if result is None:
            LOGGER.warning(
                "Keeping healthy snapshot for %s; not replacing it with a degraded one",
                snapshot.calendar_day,
            )


__all__ = ["AcquisitionCycle", "AcquisitionInProgressError"]
