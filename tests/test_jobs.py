from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

import fx_baht
from fx_baht import FxBaht, TrackerConfig
from fx_baht.cycle import AcquisitionInProgressError
from fx_baht.ingestion.aggregator import RateAggregator
from fx_baht.ingestion.models import BANK_SOURCE, KIOSK_SOURCE, KioskRates, SourceReading
from fx_baht.jobs import acquire, compare

FIXED_NOW = datetime(2025, 12, 25, 14, 23, tzinfo=timezone.utc)


class _Bank:
    def __init__(self, degraded: bool = False) -> None:
        self.degraded = degraded

    def fetch(self) -> SourceReading[float]:
        if self.degraded:
            return self.fallback_reading("offline")
        return SourceReading.live(BANK_SOURCE, 31.8)

    def fallback_reading(self, detail: str | None = None) -> SourceReading[float]:
        return SourceReading.fallback(BANK_SOURCE, 31.815, detail)


class _Kiosk:
    def fetch(self) -> SourceReading[KioskRates]:
        return SourceReading.live(KIOSK_SOURCE, KioskRates(0.995, 31.36))

    def fallback_reading(self, detail: str | None = None) -> SourceReading[KioskRates]:
        return SourceReading.fallback(KIOSK_SOURCE, KioskRates(1.005, 31.39), detail)


@pytest.fixture
def tracker_factory(tmp_path, monkeypatch):
    created: list[FxBaht] = []

    def _factory(db_config=None, *, degraded: bool = False) -> FxBaht:
        config = TrackerConfig(ledger_path=tmp_path / "ledger.json")
        aggregator = RateAggregator(
            config, bank=_Bank(degraded), kiosk=_Kiosk(), clock=lambda: FIXED_NOW
        )
        tracker = FxBaht(db_config=db_config, config=config, aggregator=aggregator)
        created.append(tracker)
        return tracker

    monkeypatch.setattr(fx_baht, "FxBaht", _factory)
    return _factory


def test_run_acquisition_returns_display_payload(tracker_factory) -> None:
    payload = acquire.run_acquisition(tracker_factory())

    assert payload["calendar_day"] == "2025-12-25"
    assert payload["display_time"] == "2025/12/25 22:23"
    assert payload["bank_sell_usd"] == 31.8
    assert payload["degraded"] is False


def test_acquire_main_prints_snapshot_json(tracker_factory, capsys) -> None:
    assert acquire.main([]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["kiosk_twd_rate"] == 0.995
    assert payload["degraded_sources"] == []


def test_acquire_main_reports_busy_cycle(tracker_factory, monkeypatch) -> None:
    def _busy(*_args, **_kwargs):
        raise AcquisitionInProgressError("An acquisition cycle is already running")

    monkeypatch.setattr(acquire, "run_acquisition", _busy)

    assert acquire.main(["--no-wait"]) == 2


def test_acquire_parse_args() -> None:
    args = acquire.parse_args(["--db", "sqlite:///ledger.db", "--no-wait", "--timeout", "5"])

    assert args.db_url == "sqlite:///ledger.db"
    assert args.wait is False
    assert args.timeout == 5.0


def test_run_comparison_formats_latest_snapshot(tracker_factory) -> None:
    tracker = tracker_factory()
    tracker.trigger_acquisition_cycle()

    report = compare.run_comparison(tracker, 50000)

    assert "Rates as of 2025/12/25 22:23 (2025-12-25)" in report
    assert "49,750 THB" in report
    assert "49,297 THB (via 1,572 USD)" in report
    assert report.endswith("Budget 50,000 TWD: TWD -> THB yields 453 THB more")


def test_run_comparison_flags_degraded_snapshot(tracker_factory) -> None:
    tracker = tracker_factory(degraded=True)
    tracker.trigger_acquisition_cycle()

    report = compare.run_comparison(tracker, 50000)

    assert report.splitlines()[-1] == "Warning: fallback values used for bank"


def test_compare_main_requires_recorded_rates(tracker_factory, capsys) -> None:
    assert compare.main(["--budget", "50000"]) == 1
    assert capsys.readouterr().out == ""


def test_compare_main_prints_report(tracker_factory, capsys) -> None:
    tracker_factory().trigger_acquisition_cycle()

    assert compare.main(["--budget", "50000"]) == 0
    assert "yields 453 THB more" in capsys.readouterr().out
