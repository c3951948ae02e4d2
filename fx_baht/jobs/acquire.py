"""Run one acquisition cycle and print the committed snapshot as JSON.

Invoked by the external scheduler (cron at 23:50 Asia/Taipei) and on startup.
"""

from __future__ import annotations

import argparse
import json
from typing import TYPE_CHECKING, Any

from fx_baht.cycle import AcquisitionInProgressError
from fx_baht.ingestion.models import RateSnapshot
from fx_baht.utils.clock import format_display_time
from fx_baht.utils.logger import get_logger

if TYPE_CHECKING:  # pragma: no cover - import only for static analyzers
    from fx_baht import FxBaht

LOGGER = get_logger(__name__)

__all__ = ["parse_args", "main", "run_acquisition", "snapshot_payload"]


def snapshot_payload(snapshot: RateSnapshot, tz_name: str) -> dict[str, Any]:
    """Return the stored document plus its ``YYYY/MM/DD HH:MM`` display time."""

    payload = dict(snapshot.to_document())
    payload["display_time"] = format_display_time(snapshot.recorded_at, tz_name)
    payload["degraded"] = snapshot.degraded
    return payload


def run_acquisition(
    tracker: "FxBaht", *, wait: bool = True, timeout: float | None = None
) -> dict[str, Any]:
    snapshot = tracker.trigger_acquisition_cycle(wait=wait, timeout=timeout)
    return snapshot_payload(snapshot, tracker.config.timezone)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Acquire today's TWD rates and store them.")
    parser.add_argument(
        "--db",
        dest="db_url",
        default=None,
        help="Ledger URL (file://, sqlite://, postgres://, mysql:// or mongodb://)",
    )
    parser.add_argument(
        "--no-wait",
        dest="wait",
        action="store_false",
        help="Exit with an error instead of queueing behind a running cycle",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for a running cycle before giving up",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    from fx_baht import FxBaht

    args = parse_args(argv)
    tracker = FxBaht(db_config=args.db_url)
    try:
        payload = run_acquisition(tracker, wait=args.wait, timeout=args.timeout)
    except AcquisitionInProgressError as exc:
        LOGGER.error("%s", exc)
        return 2
    except RuntimeError as exc:
        LOGGER.error("Acquisition failed: %s", exc)
        return 1
    finally:
        tracker.close()
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
