from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fx_baht.ingestion.models import BANK_SOURCE, KIOSK_SOURCE, KioskRates, RateSnapshot, SourceReading


def _snapshot(**overrides) -> RateSnapshot:
    values = {
        "bank_sell_usd": 31.8,
        "kiosk_twd_rate": 0.995,
        "kiosk_usd_rate": 31.36,
        "recorded_at": datetime(2025, 12, 25, 14, 23, tzinfo=timezone.utc),
        "calendar_day": "2025-12-25",
    }
    values.update(overrides)
    return RateSnapshot(**values)


def test_healthy_snapshot_rejects_non_positive_rates() -> None:
    with pytest.raises(ValueError, match="positive finite rates"):
        _snapshot(bank_sell_usd=0.0)
    with pytest.raises(ValueError):
        _snapshot(kiosk_usd_rate=float("nan"))


def test_degraded_snapshot_may_carry_zero_sentinels() -> None:
    snapshot = _snapshot(
        bank_sell_usd=0.0,
        degraded_sources=(KIOSK_SOURCE, BANK_SOURCE, BANK_SOURCE),
    )

    assert snapshot.degraded is True
    assert snapshot.degraded_sources == (BANK_SOURCE, KIOSK_SOURCE)


def test_naive_recorded_at_is_treated_as_utc() -> None:
    snapshot = _snapshot(recorded_at=datetime(2025, 12, 25, 14, 23))

    assert snapshot.recorded_at.tzinfo is timezone.utc
    assert snapshot.sort_key == (
        datetime(2025, 12, 25, 14, 23, tzinfo=timezone.utc),
        "2025-12-25",
    )


def test_document_roundtrip_preserves_every_field() -> None:
    snapshot = _snapshot(kiosk_twd_rate=1.005, degraded_sources=(KIOSK_SOURCE,))

    document = snapshot.to_document()

    assert document["recorded_at"] == "2025-12-25T14:23:00+00:00"
    assert document["degraded_sources"] == ["kiosk"]
    assert RateSnapshot.from_document(document) == snapshot


@pytest.mark.parametrize(
    "overrides",
    [
        {"calendar_day": "2025-13-01"},
        {"bank_sell_usd": "not-a-rate"},
        {"recorded_at": "yesterday"},
    ],
)
def test_from_document_rejects_invalid_documents(overrides: dict) -> None:
    document = _snapshot().to_document()
    document.update(overrides)

    with pytest.raises(ValueError):
        RateSnapshot.from_document(document)


def test_from_document_requires_all_fields() -> None:
    document = _snapshot().to_document()
    del document["kiosk_usd_rate"]

    with pytest.raises(KeyError):
        RateSnapshot.from_document(document)


def test_source_reading_constructors_tag_degradation() -> None:
    live = SourceReading.live(KIOSK_SOURCE, KioskRates(1.0, 31.0))
    fallback = SourceReading.fallback(BANK_SOURCE, 31.815, "timeout")

    assert live.degraded is False and live.detail is None
    assert fallback.degraded is True
    assert fallback.value == 31.815
    assert fallback.detail == "timeout"
