from __future__ import annotations

from datetime import datetime, timezone

from fx_baht.comparison import ConversionPath, compare, compare_snapshot
from fx_baht.ingestion.models import RateSnapshot


def test_direct_path_wins_worked_example() -> None:
    result = compare(50000, 31.8, 0.995, 31.36)

    assert result.path_direct_total == 49750
    assert result.usd_obtained == 1572
    assert result.path_cross_total == 49297
    assert result.absolute_difference == 453
    assert result.recommended_path is ConversionPath.DIRECT
    assert result.winner_total == 49750


def test_cross_path_wins_when_direct_rate_is_poor() -> None:
    result = compare(50000, 31.8, 0.9, 31.36)

    assert result.path_direct_total == 45000
    assert result.recommended_path is ConversionPath.CROSS
    assert result.absolute_difference == 4297
    assert result.winner_total == 49297


def test_equal_totals_recommend_direct() -> None:
    result = compare(1000, 10, 1.0, 10)

    assert result.path_direct_total == result.path_cross_total == 1000
    assert result.absolute_difference == 0
    assert result.recommended_path is ConversionPath.DIRECT


def test_missing_inputs_use_defaults() -> None:
    result = compare("50,000", None, None, "")

    # Bank sell rate falls back to 31.8 and the kiosk USD rate to 31.36.
    assert result.usd_obtained == 1572
    assert result.path_cross_total == 49297
    assert result.path_direct_total == 0
    assert result.recommended_path is ConversionPath.CROSS


def test_non_positive_budget_yields_zero_totals() -> None:
    for budget in (0, -100, "abc", None):
        result = compare(budget, 31.8, 0.995, 31.36)
        assert (result.path_direct_total, result.path_cross_total, result.usd_obtained) == (0, 0, 0)
        assert result.absolute_difference == 0
        assert result.recommended_path is ConversionPath.DIRECT


def test_compare_snapshot_reads_snapshot_rates() -> None:
    snapshot = RateSnapshot(
        bank_sell_usd=31.8,
        kiosk_twd_rate=0.995,
        kiosk_usd_rate=31.36,
        recorded_at=datetime(2025, 12, 25, 14, 23, tzinfo=timezone.utc),
        calendar_day="2025-12-25",
    )

    assert compare_snapshot(50000, snapshot) == compare(50000, 31.8, 0.995, 31.36)
