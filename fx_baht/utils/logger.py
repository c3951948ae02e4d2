"""Logging utilities for the fx_baht package."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL_ENV = "FX_BAHT_LOG_LEVEL"

_configured = False


def _resolve_level(value: str | None) -> int:
    if not value:
        return logging.INFO
    level = logging.getLevelName(value.strip().upper())
    # ``getLevelName`` echoes unknown names back as "Level X" strings.
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str = "fx_baht") -> logging.Logger:
    """Return a named logger, configuring the root handler on first use.

    The level defaults to ``INFO`` and can be raised or lowered through the
    ``FX_BAHT_LOG_LEVEL`` environment variable (``DEBUG``, ``WARNING``...).
    """

    global _configured
    if not _configured:
        logging.basicConfig(level=_resolve_level(os.environ.get(LOG_LEVEL_ENV)), format=LOG_FORMAT)
        _configured = True
    return logging.getLogger(name)


__all__ = ["LOG_FORMAT", "LOG_LEVEL_ENV", "get_logger"]
