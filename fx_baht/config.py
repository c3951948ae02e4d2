"""Runtime configuration shared by the adapters, the ledger and the acquisition cycle."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from fx_baht.utils.clock import DEFAULT_TIMEZONE, resolve_timezone

DEFAULT_LEDGER_PATH = Path("data") / "ledger.json"

BOT_CSV_URL = "https://rate.bot.com.tw/xrt/flcsv/0/day"
SUPERRICH_URL = "https://www.superrichthailand.com/#!/en/exchange"
SUPERRICH_OPTION_SELECTOR = "select#selectCurrency option"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "zh-TW,zh;q=0.9,en-US;q=0.8,en;q=0.7"

ENV_PREFIX = "FX_BAHT_"


class FallbackPolicy(str, Enum):
    """How adapters fill in a value when a live read fails.

    ``CONSTANT`` substitutes plausible recent rates, ``ZERO`` substitutes ``0.0``.
    Either way the reading is tagged as degraded.
    """

    CONSTANT = "constant"
    ZERO = "zero"

    @classmethod
    def parse(cls, value: str) -> "FallbackPolicy":
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Unsupported fallback policy {value!r}; expected 'constant' or 'zero'"
            ) from exc


@dataclass(frozen=True, slots=True)
class BankFeedConfig:
    """Where and how the Bank of Taiwan CSV quote is read."""

    url: str = BOT_CSV_URL
    currency: str = "USD"
    cash_sell_column: int = 12
    timeout: float = 10.0
    fallback_rate: float = 31.815


@dataclass(frozen=True, slots=True)
class KioskPageConfig:
    """Where and how the SuperRich exchange page is rendered and read."""

    url: str = SUPERRICH_URL
    option_selector: str = SUPERRICH_OPTION_SELECTOR
    direct_unit: str = "TWD"
    usd_unit: str = "USD"
    usd_denomination: str = "100"
    rate_attribute: str = "data-buy"
    navigation_timeout: float = 60.0
    selector_timeout: float = 30.0
    retries: int = 2
    retry_wait_seconds: float = 2.0
    headless: bool = True
    fallback_twd_rate: float = 1.005
    fallback_usd_rate: float = 31.39

    @property
    def ready_selector(self) -> str:
        """Selector whose presence signals that the asynchronous rate data has loaded."""

        return f'{self.option_selector}[data-unit="{self.direct_unit}"]'


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    """Explicit configuration handed to every component at construction."""

    bank: BankFeedConfig = field(default_factory=BankFeedConfig)
    kiosk: KioskPageConfig = field(default_factory=KioskPageConfig)
    timezone: str = DEFAULT_TIMEZONE
    window: int = 30
    fallback_policy: FallbackPolicy = FallbackPolicy.CONSTANT
    preserve_healthy: bool = True
    ledger_path: Path = DEFAULT_LEDGER_PATH
    db_url: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    def __post_init__(self) -> None:
        if self.window < 1:
            raise ValueError("window must be at least 1")
        if self.kiosk.retries < 0:
            raise ValueError("kiosk retries must not be negative")
        if self.bank.cash_sell_column < 0:
            raise ValueError("bank cash_sell_column must not be negative")
        resolve_timezone(self.timezone)

    @property
    def bank_fallback_rate(self) -> float:
        if self.fallback_policy is FallbackPolicy.ZERO:
            return 0.0
        return self.bank.fallback_rate

    @property
    def kiosk_fallback_rates(self) -> tuple[float, float]:
        if self.fallback_policy is FallbackPolicy.ZERO:
            return 0.0, 0.0
        return self.kiosk.fallback_twd_rate, self.kiosk.fallback_usd_rate

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TrackerConfig":
        """Build a configuration from ``FX_BAHT_*`` environment variables.

        Unset variables keep their defaults. Recognised names: ``DB_URL``,
        ``LEDGER_PATH``, ``TIMEZONE``, ``WINDOW``, ``KIOSK_RETRIES``,
        ``FALLBACK_POLICY``, ``BANK_TIMEOUT``, ``HEADLESS`` and ``PRESERVE_HEALTHY``.
        """

        env = os.environ if environ is None else environ

        def _get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        top: dict[str, Any] = {}
        bank: dict[str, Any] = {}
        kiosk: dict[str, Any] = {}

        parsers: dict[str, tuple[dict[str, Any], str, Any]] = {
            "DB_URL": (top, "db_url", str),
            "LEDGER_PATH": (top, "ledger_path", lambda raw: Path(raw).expanduser()),
            "TIMEZONE": (top, "timezone", str),
            "WINDOW": (top, "window", lambda raw: _parse_int("WINDOW", raw)),
            "FALLBACK_POLICY": (top, "fallback_policy", FallbackPolicy.parse),
            "PRESERVE_HEALTHY": (
                top,
                "preserve_healthy",
                lambda raw: _parse_bool("PRESERVE_HEALTHY", raw),
            ),
            "BANK_TIMEOUT": (bank, "timeout", lambda raw: _parse_float("BANK_TIMEOUT", raw)),
            "KIOSK_RETRIES": (kiosk, "retries", lambda raw: _parse_int("KIOSK_RETRIES", raw)),
            "HEADLESS": (kiosk, "headless", lambda raw: _parse_bool("HEADLESS", raw)),
        }
        for name, (target, field_name, convert) in parsers.items():
            raw = _get(name)
            if raw is not None:
                target[field_name] = convert(raw)

        return cls(bank=BankFeedConfig(**bank), kiosk=KioskPageConfig(**kiosk), **top)


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}") from exc


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}") from exc


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean flag, got {value!r}")


__all__ = [
    "BOT_CSV_URL",
    "BankFeedConfig",
    "DEFAULT_LEDGER_PATH",
    "FallbackPolicy",
    "KioskPageConfig",
    "SUPERRICH_URL",
    "TrackerConfig",
]
