from __future__ import annotations

from pathlib import Path

import pytest

from fx_baht.config import (
    DEFAULT_LEDGER_PATH,
    BankFeedConfig,
    FallbackPolicy,
    KioskPageConfig,
    TrackerConfig,
)


def test_defaults_match_reference_sources() -> None:
    config = TrackerConfig()

    assert config.timezone == "Asia/Taipei"
    assert config.window == 30
    assert config.fallback_policy is FallbackPolicy.CONSTANT
    assert config.preserve_healthy is True
    assert config.ledger_path == DEFAULT_LEDGER_PATH
    assert config.bank.cash_sell_column == 12
    assert config.bank.timeout == 10.0
    assert config.kiosk.retries == 2
    assert config.kiosk.ready_selector == 'select#selectCurrency option[data-unit="TWD"]'


def test_fallback_policy_controls_substituted_values() -> None:
    constant = TrackerConfig()
    zero = TrackerConfig(fallback_policy=FallbackPolicy.ZERO)

    assert constant.bank_fallback_rate == 31.815
    assert constant.kiosk_fallback_rates == (1.005, 31.39)
    assert zero.bank_fallback_rate == 0.0
    assert zero.kiosk_fallback_rates == (0.0, 0.0)


def test_from_env_without_variables_keeps_defaults() -> None:
    assert TrackerConfig.from_env({}) == TrackerConfig()


def test_from_env_reads_prefixed_variables() -> None:
    config = TrackerConfig.from_env(
        {
            "FX_BAHT_DB_URL": "sqlite:///ledger.db",
            "FX_BAHT_LEDGER_PATH": "/srv/fx/ledger.json",
            "FX_BAHT_TIMEZONE": "UTC",
            "FX_BAHT_WINDOW": "7",
            "FX_BAHT_KIOSK_RETRIES": "4",
            "FX_BAHT_FALLBACK_POLICY": "ZERO",
            "FX_BAHT_BANK_TIMEOUT": "2.5",
            "FX_BAHT_HEADLESS": "false",
            "FX_BAHT_PRESERVE_HEALTHY": "no",
            "UNRELATED": "ignored",
        }
    )

    assert config.db_url == "sqlite:///ledger.db"
    assert config.ledger_path == Path("/srv/fx/ledger.json")
    assert config.timezone == "UTC"
    assert config.window == 7
    assert config.kiosk == KioskPageConfig(retries=4, headless=False)
    assert config.bank == BankFeedConfig(timeout=2.5)
    assert config.fallback_policy is FallbackPolicy.ZERO
    assert config.preserve_healthy is False


def test_from_env_ignores_blank_values() -> None:
    assert TrackerConfig.from_env({"FX_BAHT_WINDOW": "  "}).window == 30


@pytest.mark.parametrize(
    "environ, message",
    [
        ({"FX_BAHT_WINDOW": "thirty"}, "FX_BAHT_WINDOW"),
        ({"FX_BAHT_WINDOW": "0"}, "window"),
        ({"FX_BAHT_KIOSK_RETRIES": "-1"}, "retries"),
        ({"FX_BAHT_HEADLESS": "maybe"}, "FX_BAHT_HEADLESS"),
        ({"FX_BAHT_FALLBACK_POLICY": "random"}, "fallback policy"),
        ({"FX_BAHT_TIMEZONE": "Nowhere/City"}, "Unknown timezone"),
    ],
)
def test_from_env_rejects_invalid_values(environ: dict[str, str], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        TrackerConfig.from_env(environ)
