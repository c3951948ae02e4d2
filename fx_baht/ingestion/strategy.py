"""Abstractions for pluggable rate acquisition back ends."""

from __future__ import annotations

from typing import Any, Protocol

from fx_baht.ingestion.models import SourceReading


class DynamicPageExtractor(Protocol):
    """Contract for a browser session that renders a page and reads values from it.

    Implementations own one isolated session. ``close`` must be safe to call on
    every exit path, including after a failed ``navigate``.
    """

    def navigate(self, url: str, timeout: float) -> None:
        ...  # pragma: no cover - protocol definition

    def wait_for_selector(self, selector: str, timeout: float) -> None:
        ...  # pragma: no cover - protocol definition

    def evaluate(self, script: str, *args: Any) -> Any:
        ...  # pragma: no cover - protocol definition

    def close(self) -> None:
        ...  # pragma: no cover - protocol definition


class RateSource(Protocol):
    """Anything that can produce a tagged reading without raising."""

    def fetch(self) -> SourceReading[Any]:
        ...  # pragma: no cover - protocol definition

    def fallback_reading(self, detail: str | None = None) -> SourceReading[Any]:
        ...  # pragma: no cover - protocol definition


__all__ = ["DynamicPageExtractor", "RateSource"]
