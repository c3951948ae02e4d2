"""Compare the direct and cross conversion paths for a TWD budget."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from fx_baht.comparison import ComparisonResult, ConversionPath
from fx_baht.ingestion.models import RateSnapshot
from fx_baht.utils.clock import format_display_time
from fx_baht.utils.logger import get_logger

if TYPE_CHECKING:  # pragma: no cover - import only for static analyzers
    from fx_baht import FxBaht

LOGGER = get_logger(__name__)

__all__ = ["format_comparison", "parse_args", "main", "run_comparison"]


def format_comparison(
    budget: float, snapshot: RateSnapshot, result: ComparisonResult, tz_name: str
) -> str:
    winner = "TWD -> THB" if result.recommended_path is ConversionPath.DIRECT else "TWD -> USD -> THB"
    lines = [
        f"Rates as of {format_display_time(snapshot.recorded_at, tz_name)} ({snapshot.calendar_day})",
        f"  direct  TWD -> THB        : {result.path_direct_total:,} THB",
        f"  cross   TWD -> USD -> THB : {result.path_cross_total:,} THB"
        f" (via {result.usd_obtained:,} USD)",
        f"Budget {budget:,.0f} TWD: {winner} yields {result.absolute_difference:,} THB more",
    ]
    if snapshot.degraded:
        lines.append(f"Warning: fallback values used for {', '.join(snapshot.degraded_sources)}")
    return "\n".join(lines)


def run_comparison(tracker: "FxBaht", budget: float) -> str:
    snapshot = tracker.latest()
    if snapshot is None:
        raise LookupError("No rates recorded yet; run fx-baht-acquire first")
    result = tracker.compare(budget, snapshot)
    return format_comparison(budget, snapshot, result, tracker.config.timezone)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--budget", type=float, required=True, help="Amount of TWD to convert")
    parser.add_argument(
        "--db",
        dest="db_url",
        default=None,
        help="Ledger URL (file://, sqlite://, postgres://, mysql:// or mongodb://)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    from fx_baht import FxBaht

    args = parse_args(argv)
    tracker = FxBaht(db_config=args.db_url)
    try:
        report = run_comparison(tracker, args.budget)
    except LookupError as exc:
        LOGGER.error("%s", exc)
        return 1
    finally:
        tracker.close()
    print(report)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
