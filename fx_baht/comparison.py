"""Comparison engine: which conversion path yields more baht for a TWD budget."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from fx_baht.ingestion.models import RateSnapshot
from fx_baht.utils.parsing import coerce_number

DEFAULT_BANK_SELL_USD = 31.8
DEFAULT_KIOSK_USD_RATE = 31.36


class ConversionPath(str, Enum):
    """DIRECT converts TWD straight to THB; CROSS goes TWD -> USD -> THB."""

    DIRECT = "direct"
    CROSS = "cross"


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    path_direct_total: int
    path_cross_total: int
    usd_obtained: int
    absolute_difference: int
    recommended_path: ConversionPath

    @property
    def winner_total(self) -> int:
        if self.recommended_path is ConversionPath.DIRECT:
            return self.path_direct_total
        return self.path_cross_total


def compare(
    budget: object,
    bank_sell_usd: object,
    kiosk_twd_rate: object,
    kiosk_usd_rate: object,
) -> ComparisonResult:
    """Compute both path totals for ``budget`` TWD and recommend the larger one.

    Missing, zero or non-numeric inputs fall back to safe defaults: ``0`` for
    the budget and the direct rate, ``31.8`` for the bank sell rate and
    ``31.36`` for the kiosk USD rate. A non-positive budget yields zero totals.
    Every total is floored to whole units; ties recommend DIRECT.
    """

    amount = max(coerce_number(budget, 0.0), 0.0)
    direct_rate = coerce_number(kiosk_twd_rate, 0.0)
    bank_rate = coerce_number(bank_sell_usd, DEFAULT_BANK_SELL_USD)
    usd_rate = coerce_number(kiosk_usd_rate, DEFAULT_KIOSK_USD_RATE)

    direct_total = math.floor(amount * direct_rate)
    usd_obtained = math.floor(amount / bank_rate) if bank_rate > 0 else 0
    cross_total = math.floor(usd_obtained * usd_rate)
    return ComparisonResult(
        path_direct_total=direct_total,
        path_cross_total=cross_total,
        usd_obtained=usd_obtained,
        absolute_difference=abs(direct_total - cross_total),
        recommended_path=(
            ConversionPath.DIRECT if direct_total >= cross_total else ConversionPath.CROSS
        ),
    )


def compare_snapshot(budget: object, snapshot: RateSnapshot) -> ComparisonResult:
    """Run :func:`compare` against the three rates held by ``snapshot``."""

    return compare(
        budget,
        snapshot.bank_sell_usd,
        snapshot.kiosk_twd_rate,
        snapshot.kiosk_usd_rate,
    )


__all__ = [
    "ComparisonResult",
    "ConversionPath",
    "DEFAULT_BANK_SELL_USD",
    "DEFAULT_KIOSK_USD_RATE",
    "compare",
    "compare_snapshot",
]
