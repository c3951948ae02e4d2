"""Import a legacy ``history.json`` file into the configured rate ledger."""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from fx_baht.db.base_backend import LedgerStore, PersistenceResult
from fx_baht.ingestion.models import BANK_SOURCE, KIOSK_SOURCE, RateSnapshot
from fx_baht.utils.clock import DEFAULT_TIMEZONE, calendar_day, parse_display_time, parse_timestamp
from fx_baht.utils.logger import get_logger
from fx_baht.utils.parsing import parse_positive_rate

LOGGER = get_logger(__name__)

__all__ = [
    "LegacyHistory",
    "import_legacy_history",
    "legacy_record_to_snapshot",
    "load_legacy_history",
    "parse_args",
    "main",
]

_TIME_KEYS = ("time", "recordTime", "lastUpdated")


@dataclass(slots=True)
class LegacyHistory:
    """Snapshots decoded from a legacy file plus the count of rejected records."""

    snapshots: list[RateSnapshot] = field(default_factory=list)
    skipped: int = 0


def legacy_record_to_snapshot(
    record: Mapping[str, Any], tz_name: str = DEFAULT_TIMEZONE
) -> RateSnapshot | None:
    """Convert one ``{time, botUsd, srTwd, srUsd}`` record, or ``None`` if its time is invalid.

    Legacy files never flagged fallback values, so any missing or non-positive
    rate marks its source as degraded and is stored as ``0.0``.
    """

    recorded_at = None
    for key in _TIME_KEYS:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            recorded_at = parse_display_time(value, tz_name)
        else:
            try:
                recorded_at = parse_timestamp(value)
            except ValueError:
                recorded_at = None
        if recorded_at is not None:
            break
    if recorded_at is None:
        return None

    bank = parse_positive_rate(record.get("botUsd"))
    twd = parse_positive_rate(record.get("srTwd"))
    usd = parse_positive_rate(record.get("srUsd"))
    degraded: list[str] = []
    if bank is None:
        degraded.append(BANK_SOURCE)
    if twd is None or usd is None:
        degraded.append(KIOSK_SOURCE)
    return RateSnapshot(
        bank_sell_usd=bank or 0.0,
        kiosk_twd_rate=twd or 0.0,
        kiosk_usd_rate=usd or 0.0,
        recorded_at=recorded_at,
        calendar_day=calendar_day(recorded_at, tz_name),
        degraded_sources=tuple(degraded),
    )


def _decode_records(records: Iterable[Any], tz_name: str) -> LegacyHistory:
    history = LegacyHistory()
    for record in records:
        snapshot = legacy_record_to_snapshot(record, tz_name) if isinstance(record, dict) else None
        if snapshot is None:
            LOGGER.warning("Skipping legacy record with invalid date: %r", record)
            history.skipped += 1
            continue
        history.snapshots.append(snapshot)
    return history


def load_legacy_history(path: str | Path, tz_name: str = DEFAULT_TIMEZONE) -> LegacyHistory:
    """Read and decode a legacy history file; raises ``ValueError`` unless it holds a JSON array."""

    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise ValueError(f"{source} does not contain a JSON array")
    LOGGER.info("Found %s legacy records in %s", len(payload), source)
    return _decode_records(payload, tz_name)


def import_legacy_history(
    path: str | Path,
    store: LedgerStore,
    *,
    tz_name: str = DEFAULT_TIMEZONE,
    dry_run: bool = False,
) -> tuple[PersistenceResult, int]:
    """Upsert every decodable legacy record; returns the upsert result and the skip count."""

    history = load_legacy_history(path, tz_name)
    if dry_run:
        LOGGER.info(
            "Dry-run enabled; %s records decoded, %s skipped",
            len(history.snapshots),
            history.skipped,
        )
        return PersistenceResult(), history.skipped
    result = store.upsert_many(history.snapshots)
    LOGGER.info(
        "Legacy import complete: %s upserted, %s trimmed, %s skipped",
        result.total,
        result.trimmed,
        history.skipped,
    )
    return result, history.skipped


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("history", help="Path to the legacy history.json file")
    parser.add_argument(
        "--db",
        dest="db_url",
        default=None,
        help="Target ledger URL (file://, sqlite://, postgres://, mysql:// or mongodb://)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Decode the file and report counts without writing",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    from fx_baht import FxBaht

    args = parse_args(argv)
    tracker = FxBaht(db_config=args.db_url)
    try:
        result, skipped = tracker.import_legacy_history(args.history, dry_run=args.dry_run)
    except (OSError, ValueError) as exc:
        LOGGER.error("Migration failed: %s", exc)
        return 1
    finally:
        tracker.close()
    print(f"upserted={result.total} trimmed={result.trimmed} skipped={skipped}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
