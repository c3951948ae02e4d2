"""Join both rate sources into a single day-keyed snapshot."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, TypeVar

from fx_baht.config import TrackerConfig
from fx_baht.ingestion.models import KioskRates, RateSnapshot, SourceReading
from fx_baht.ingestion.strategy import RateSource
from fx_baht.utils.clock import Clock, calendar_day, utc_now
from fx_baht.utils.logger import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")


class RateAggregator:
    """Run the bank and kiosk adapters concurrently and build a :class:`RateSnapshot`.

    The two adapters share no state; both are joined before the snapshot is
    assembled. :meth:`collect` never raises because every adapter resolves to a
    (possibly degraded) reading.
    """

    def __init__(
        self,
        config: TrackerConfig,
        *,
        bank: RateSource | None = None,
        kiosk: RateSource | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        if bank is None:
            from fx_baht.ingestion.bank_feed import BankQuoteParser

            bank = BankQuoteParser(config)
        if kiosk is None:
            from fx_baht.ingestion.kiosk_page import KioskPageExtractor

            kiosk = KioskPageExtractor(config)
        self.bank = bank
        self.kiosk = kiosk
        self.clock = clock or utc_now

    def collect(self) -> RateSnapshot:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="fx-baht-source") as pool:
            bank_future = pool.submit(self.bank.fetch)
            kiosk_future = pool.submit(self.kiosk.fetch)
            bank_reading = self._settle(bank_future, self.bank)
            kiosk_reading = self._settle(kiosk_future, self.kiosk)
        return self.build_snapshot(bank_reading, kiosk_reading)

    def build_snapshot(
        self,
        bank_reading: SourceReading[float],
        kiosk_reading: SourceReading[KioskRates],
    ) -> RateSnapshot:
        recorded_at = self.clock()
        degraded = tuple(
            reading.source for reading in (bank_reading, kiosk_reading) if reading.degraded
        )
        snapshot = RateSnapshot(
            bank_sell_usd=bank_reading.value,
            kiosk_twd_rate=kiosk_reading.value.twd_rate,
            kiosk_usd_rate=kiosk_reading.value.usd_rate,
            recorded_at=recorded_at,
            calendar_day=calendar_day(recorded_at, self.config.timezone),
            degraded_sources=degraded,
        )
        if snapshot.degraded:
            LOGGER.warning(
                "Snapshot for %s is degraded (fallback used for: %s)",
                snapshot.calendar_day,
                ", ".join(snapshot.degraded_sources),
            )
        else:
            LOGGER.info("Collected healthy snapshot for %s", snapshot.calendar_day)
        return snapshot

    @staticmethod
    def _settle(future: "Future[SourceReading[Any]]", source: RateSource) -> SourceReading[Any]:
        try:
            return future.result()
        except Exception as exc:
            LOGGER.exception("Rate source %r raised unexpectedly; using its fallback", source)
            return source.fallback_reading(f"unexpected error: {exc}")


__all__ = ["RateAggregator"]
