"""Timezone helpers used to derive calendar days and display timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = "Asia/Taipei"
DISPLAY_FORMAT = "%Y/%m/%d %H:%M"
_DISPLAY_INPUT_FORMATS = ("%Y/%m/%d %H:%M:%S", "%Y/%m/%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current instant as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def resolve_timezone(name: str) -> ZoneInfo:
    """Return the :class:`ZoneInfo` for ``name`` or raise ``ValueError``."""

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc


def ensure_utc(moment: datetime) -> datetime:
    """Normalise ``moment`` to aware UTC; naive values are taken to be UTC already."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def calendar_day(moment: datetime, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Return the ``YYYY-MM-DD`` day ``moment`` falls on in ``tz_name``."""

    return ensure_utc(moment).astimezone(resolve_timezone(tz_name)).date().isoformat()


def format_display_time(moment: datetime, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Render ``moment`` as ``YYYY/MM/DD HH:MM`` (24h) in ``tz_name``."""

    return ensure_utc(moment).astimezone(resolve_timezone(tz_name)).strftime(DISPLAY_FORMAT)


def parse_display_time(value: str, tz_name: str = DEFAULT_TIMEZONE) -> datetime | None:
    """Parse a wall-clock string recorded in ``tz_name`` into aware UTC.

    Accepts the display format (``2025/12/25 22:23``), its variant with seconds,
    dash-separated dates and ISO 8601 strings. Returns ``None`` when nothing
    matches.
    """

    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    zone = resolve_timezone(tz_name)
    for fmt in _DISPLAY_INPUT_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.replace(tzinfo=zone).astimezone(timezone.utc)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(timezone.utc)


def parse_timestamp(value: object) -> datetime:
    """Parse a persisted ``recorded_at`` value (ISO string or datetime) into aware UTC."""

    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    raise ValueError(f"Unsupported timestamp value: {value!r}")


__all__ = [
    "Clock",
    "DEFAULT_TIMEZONE",
    "DISPLAY_FORMAT",
    "calendar_day",
    "ensure_utc",
    "format_display_time",
    "parse_display_time",
    "parse_timestamp",
    "resolve_timezone",
    "utc_now",
]
