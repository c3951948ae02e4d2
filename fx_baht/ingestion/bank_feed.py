"""Bank of Taiwan CSV quote reader (source A: USD cash-sell rate)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import requests

from fx_baht.config import TrackerConfig
from fx_baht.ingestion.models import BANK_SOURCE, SourceReading
from fx_baht.utils.logger import get_logger
from fx_baht.utils.parsing import parse_positive_rate

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from requests import Response

LOGGER = get_logger(__name__)

BODY_PREVIEW_CHARS = 500


def parse_bank_feed(text: str, currency: str, column: int) -> float | None:
    """Return the rate at ``column`` on the first line led by ``currency``.

    Lines whose column is missing or not a positive finite number are skipped,
    so a later well-formed line for the same currency still wins. Returns
    ``None`` when no line qualifies.
    """

    wanted = currency.strip().upper()
    for raw_line in text.splitlines():
        line = raw_line.lstrip("\ufeff").strip()
        if not line:
            continue
        columns = line.split(",")
        if columns[0].strip().upper() != wanted:
            continue
        if len(columns) <= column:
            LOGGER.debug("Skipping short %s line with %s fields", wanted, len(columns))
            continue
        rate = parse_positive_rate(columns[column])
        if rate is not None:
            return rate
        LOGGER.debug("Skipping %s line with unparseable column %s: %r", wanted, column, columns[column])
    return None


class BankQuoteParser:
    """Fetch the delimited bank feed and extract the cash-sell quote.

    :meth:`fetch` never raises: network errors, HTTP errors, malformed payloads
    and missing lines all resolve to a degraded reading carrying the configured
    fallback rate.
    """

    def __init__(
        self,
        config: TrackerConfig,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.feed = config.bank
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": config.user_agent,
                "Accept": "text/csv, text/plain, */*",
                "Accept-Language": config.accept_language,
                "Referer": "https://rate.bot.com.tw/",
            }
        )

    def fallback_reading(self, detail: str | None = None) -> SourceReading[float]:
        return SourceReading.fallback(BANK_SOURCE, self.config.bank_fallback_rate, detail)

    def fetch(self) -> SourceReading[float]:
        LOGGER.info("Fetching bank %s quote from %s", self.feed.currency, self.feed.url)
        try:
            response = self.session.get(self.feed.url, timeout=self.feed.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            self._log_http_error(exc.response)
            return self.fallback_reading(f"HTTP error: {exc}")
        except requests.RequestException as exc:
            LOGGER.error("Bank feed request failed: %s", exc)
            return self.fallback_reading(f"request failed: {exc}")

        text = response.content.decode("utf-8-sig", errors="replace")
        rate = parse_bank_feed(text, self.feed.currency, self.feed.cash_sell_column)
        if rate is None:
            LOGGER.error(
                "No usable %s line in bank feed; body preview: %r",
                self.feed.currency,
                text[:BODY_PREVIEW_CHARS],
            )
            return self.fallback_reading(f"no usable {self.feed.currency} line")
        LOGGER.info("Bank %s cash sell rate: %s", self.feed.currency, rate)
        return SourceReading.live(BANK_SOURCE, rate)

    @staticmethod
    def _log_http_error(response: "Response | None") -> None:
        if response is None:
            LOGGER.error("Bank feed responded with an HTTP error and no response body")
            return
        LOGGER.error(
            "Bank feed responded with HTTP %s; headers=%s; body preview=%r",
            response.status_code,
            dict(response.headers),
            response.text[:BODY_PREVIEW_CHARS],
        )


__all__ = ["BankQuoteParser", "parse_bank_feed"]
