"""Data models shared across ingestion, storage and comparison."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, Mapping, TypeVar

from fx_baht.utils.clock import ensure_utc, parse_timestamp
from fx_baht.utils.parsing import parse_rate

T = TypeVar("T")

BANK_SOURCE = "bank"
KIOSK_SOURCE = "kiosk"


@dataclass(frozen=True, slots=True)
class KioskRates:
    """Direct TWD->THB rate and USD->THB rate read from the kiosk page."""

    twd_rate: float
    usd_rate: float


@dataclass(frozen=True, slots=True)
class SourceReading(Generic[T]):
    """Tagged result of one adapter call.

    ``degraded`` is ``True`` whenever ``value`` came from a failure fallback
    rather than a live read, regardless of whether the fallback is a plausible
    constant or a zero sentinel.
    """

    source: str
    value: T
    degraded: bool = False
    detail: str | None = None

    @classmethod
    def live(cls, source: str, value: T) -> "SourceReading[T]":
        return cls(source=source, value=value)

    @classmethod
    def fallback(cls, source: str, value: T, detail: str | None = None) -> "SourceReading[T]":
        return cls(source=source, value=value, degraded=True, detail=detail)


@dataclass(frozen=True, slots=True)
class RateSnapshot:
    """One acquisition's combined result from both sources, keyed by calendar day."""

    bank_sell_usd: float
    kiosk_twd_rate: float
    kiosk_usd_rate: float
    recorded_at: datetime
    calendar_day: str
    degraded_sources: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "recorded_at", ensure_utc(self.recorded_at))
        object.__setattr__(self, "degraded_sources", tuple(sorted(set(self.degraded_sources))))
        if not self.degraded_sources:
            rates = (self.bank_sell_usd, self.kiosk_twd_rate, self.kiosk_usd_rate)
            if any(parse_rate(rate) is None or rate <= 0 for rate in rates):
                raise ValueError(
                    "Healthy snapshots require positive finite rates; "
                    "mark the failing source as degraded instead"
                )

    @property
    def degraded(self) -> bool:
        """Whether any value in this snapshot came from a failure fallback."""

        return bool(self.degraded_sources)

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return (self.recorded_at, self.calendar_day)

    def to_document(self) -> dict[str, Any]:
        """Return the persisted representation (one record per day)."""

        return {
            "calendar_day": self.calendar_day,
            "recorded_at": self.recorded_at.isoformat(),
            "bank_sell_usd": self.bank_sell_usd,
            "kiosk_twd_rate": self.kiosk_twd_rate,
            "kiosk_usd_rate": self.kiosk_usd_rate,
            "degraded_sources": list(self.degraded_sources),
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "RateSnapshot":
        """Rebuild a snapshot from :meth:`to_document` output.

        Raises ``ValueError`` (or ``KeyError`` for missing fields) when the
        document cannot describe a valid snapshot.
        """

        rates: dict[str, float] = {}
        for key in ("bank_sell_usd", "kiosk_twd_rate", "kiosk_usd_rate"):
            value = parse_rate(document[key])
            if value is None:
                raise ValueError(f"Field {key!r} is not a finite number: {document[key]!r}")
            rates[key] = value
        day = str(document["calendar_day"])
        date.fromisoformat(day)
        return cls(
            recorded_at=parse_timestamp(document["recorded_at"]),
            calendar_day=day,
            degraded_sources=tuple(document.get("degraded_sources") or ()),
            **rates,
        )


__all__ = ["BANK_SOURCE", "KIOSK_SOURCE", "KioskRates", "RateSnapshot", "SourceReading"]
