"""Headless-browser reader for the SuperRich exchange page (source B)."""

from __future__ import annotations

import logging
from typing import Any, Callable

from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from tenacity import RetryError, Retrying, before_sleep_log, stop_after_attempt, wait_fixed

from fx_baht.config import TrackerConfig
from fx_baht.ingestion.models import KIOSK_SOURCE, KioskRates, SourceReading
from fx_baht.ingestion.strategy import DynamicPageExtractor
from fx_baht.utils.logger import get_logger
from fx_baht.utils.parsing import parse_positive_rate

LOGGER = get_logger(__name__)

# arguments: option selector, rate attribute, direct unit, USD unit, USD denomination
READ_RATES_SCRIPT = """
const selector = arguments[0];
const attribute = arguments[1];
const read = (unit, denomination) => {
    let query = selector + '[data-unit="' + unit + '"]';
    if (denomination) {
        query += '[data-demon="' + denomination + '"]';
    }
    const el = document.querySelector(query);
    return el ? el.getAttribute(attribute) : null;
};
return {twd: read(arguments[2], null), usd: read(arguments[3], arguments[4])};
"""

# arguments: option selector, USD unit
DUMP_OPTIONS_SCRIPT = """
const query = arguments[0] + '[data-unit="' + arguments[1] + '"]';
return Array.from(document.querySelectorAll(query)).map(opt => ({
    text: opt.innerText,
    demon: opt.getAttribute('data-demon'),
    buy: opt.getAttribute('data-buy')
}));
"""


class KioskExtractionError(RuntimeError):
    """Raised when the rendered page lacks a usable rate attribute."""


class SeleniumPageSession:
    """Chrome-backed :class:`DynamicPageExtractor` owning one browser session."""

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: str | None = None,
        accept_language: str | None = None,
        driver: webdriver.Chrome | None = None,
    ) -> None:
        self._owns_driver = driver is None
        self._closed = False
        if driver is None:
            options = Options()
            if headless:
                options.add_argument("--headless=new")
            options.add_argument("--no-sandbox")
            options.add_argument("--disable-setuid-sandbox")
            options.add_argument("--disable-gpu")
            options.add_argument("--disable-dev-shm-usage")
            if user_agent:
                options.add_argument(f"--user-agent={user_agent}")
            if accept_language:
                options.add_argument(f"--lang={accept_language.split(',')[0]}")
                options.add_experimental_option("prefs", {"intl.accept_languages": accept_language})
            self.driver = webdriver.Chrome(options=options)
        else:
            self.driver = driver

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "SeleniumPageSession":
        return cls(
            headless=config.kiosk.headless,
            user_agent=config.user_agent,
            accept_language=config.accept_language,
        )

    def navigate(self, url: str, timeout: float) -> None:
        self.driver.set_page_load_timeout(timeout)
        self.driver.get(url)

    def wait_for_selector(self, selector: str, timeout: float) -> None:
        # Presence, not visibility: the rate options live in a hidden <select>.
        WebDriverWait(self.driver, timeout).until(
            EC.presence_of_element_located((By.CSS_SELECTOR, selector))
        )

    def evaluate(self, script: str, *args: Any) -> Any:
        return self.driver.execute_script(script, *args)

    def close(self) -> None:
        """Quit the browser once; repeated calls are no-ops."""

        if self._closed:
            return
        self._closed = True
        if self._owns_driver:
            self.driver.quit()

    def __enter__(self) -> "SeleniumPageSession":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


class KioskPageExtractor:
    """Render the kiosk page and read the TWD and USD buy rates.

    Every attempt launches a fresh session from ``session_factory`` and closes
    it on every exit path. Failed attempts are retried up to
    ``config.kiosk.retries`` times; once exhausted, :meth:`fetch` returns a
    degraded reading carrying the configured fallback pair instead of raising.
    """

    def __init__(
        self,
        config: TrackerConfig,
        *,
        session_factory: Callable[[], DynamicPageExtractor] | None = None,
    ) -> None:
        self.config = config
        self.kiosk = config.kiosk
        self._session_factory = session_factory or (lambda: SeleniumPageSession.from_config(config))

    @property
    def max_attempts(self) -> int:
        return self.kiosk.retries + 1

    def fallback_reading(self, detail: str | None = None) -> SourceReading[KioskRates]:
        twd_rate, usd_rate = self.config.kiosk_fallback_rates
        return SourceReading.fallback(KIOSK_SOURCE, KioskRates(twd_rate, usd_rate), detail)

    def fetch(self) -> SourceReading[KioskRates]:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.kiosk.retry_wait_seconds),
            before_sleep=before_sleep_log(LOGGER, logging.WARNING),
        )
        try:
            for attempt in retrying:
                with attempt:
                    LOGGER.info(
                        "Fetching kiosk rates from %s (attempt %s/%s)",
                        self.kiosk.url,
                        attempt.retry_state.attempt_number,
                        self.max_attempts,
                    )
                    rates = self._extract_once()
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            LOGGER.error(
                "Kiosk extraction failed after %s attempts, using fallback: %s",
                self.max_attempts,
                cause,
            )
            return self.fallback_reading(f"exhausted {self.max_attempts} attempts: {cause}")
        LOGGER.info("Kiosk rates: TWD %s, USD %s", rates.twd_rate, rates.usd_rate)
        return SourceReading.live(KIOSK_SOURCE, rates)

    def _extract_once(self) -> KioskRates:
        session = self._session_factory()
        try:
            session.navigate(self.kiosk.url, self.kiosk.navigation_timeout)
            session.wait_for_selector(self.kiosk.ready_selector, self.kiosk.selector_timeout)
            raw = session.evaluate(
                READ_RATES_SCRIPT,
                self.kiosk.option_selector,
                self.kiosk.rate_attribute,
                self.kiosk.direct_unit,
                self.kiosk.usd_unit,
                self.kiosk.usd_denomination,
            )
            raw = raw if isinstance(raw, dict) else {}
            twd_rate = parse_positive_rate(raw.get("twd"))
            usd_rate = parse_positive_rate(raw.get("usd"))
            if usd_rate is None:
                self._log_available_usd_options(session)
            if twd_rate is None or usd_rate is None:
                raise KioskExtractionError(
                    f"Rate extraction failed: {self.kiosk.direct_unit}={raw.get('twd')!r}, "
                    f"{self.kiosk.usd_unit}[{self.kiosk.usd_denomination}]={raw.get('usd')!r}"
                )
            return KioskRates(twd_rate=twd_rate, usd_rate=usd_rate)
        finally:
            session.close()

    def _log_available_usd_options(self, session: DynamicPageExtractor) -> None:
        try:
            options = session.evaluate(
                DUMP_OPTIONS_SCRIPT, self.kiosk.option_selector, self.kiosk.usd_unit
            )
        except Exception as exc:  # diagnostics must not mask the extraction failure
            LOGGER.warning("Unable to list %s options: %s", self.kiosk.usd_unit, exc)
            return
        LOGGER.warning(
            "%s option with denomination %s missing; available options: %s",
            self.kiosk.usd_unit,
            self.kiosk.usd_denomination,
            options,
        )


__all__ = ["KioskExtractionError", "KioskPageExtractor", "SeleniumPageSession"]
