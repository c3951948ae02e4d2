"""Numeric normalisation shared by the rate adapters and the comparison engine."""

from __future__ import annotations

import math
import re

_NON_NUMERIC = re.compile(r"[^0-9eE+.-]")


def parse_rate(value: object | None) -> float | None:
    """Parse ``value`` into a finite float, or ``None`` when that is impossible.

    Strings may carry thousands separators or stray whitespace (``" 1,005.5 "``).
    Booleans are rejected so that a ``True`` attribute never masquerades as a rate.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = _NON_NUMERIC.sub("", str(value).replace(",", ""))
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def parse_positive_rate(value: object | None) -> float | None:
    """Like :func:`parse_rate` but only accepts values strictly above zero."""

    number = parse_rate(value)
    if number is None or number <= 0:
        return None
    return number


def coerce_number(value: object | None, default: float) -> float:
    """Return ``value`` as a float, substituting ``default`` for missing/zero input."""

    number = parse_rate(value)
    if not number:
        return default
    return number


__all__ = ["coerce_number", "parse_positive_rate", "parse_rate"]
