"""Date parsing, rendering and timezone normalization.

Every date leaving the coercion engine is timezone-aware UTC. Naive datetimes
are interpreted in the configured timezone (UTC by default) before being
normalized.

Conversion Heuristic (numbers assigned to date fields):
    Values < 1_000_000_000_000 treated as epoch seconds
    Values >= 1_000_000_000_000 treated as epoch milliseconds

Public Functions:
    epoch_to_dt: Epoch seconds/milliseconds -> UTC-aware datetime
    ensure_utc: Normalize any date/datetime to UTC-aware datetime
    parse_date: String -> UTC-aware datetime using the configured format
    format_date: Datetime -> string using the configured format
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from typing import Union

from ..errors import DateParseError

__all__ = ["ensure_utc", "epoch_to_dt", "format_date", "parse_date"]


def epoch_to_dt(value: Union[int, float]) -> datetime:
    """Convert an epoch timestamp (milliseconds or seconds) to UTC datetime."""
    if abs(value) < 1_000_000_000_000:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)


def ensure_utc(value: Union[date, datetime], assume: tzinfo = timezone.utc) -> datetime:
    """Return ``value`` as a timezone-aware UTC datetime.

    A plain `date` becomes midnight of that day in ``assume``; a naive
    datetime is interpreted in ``assume``.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=assume)
    return value.astimezone(timezone.utc)


def parse_date(text: str, date_format: str, tz: tzinfo = timezone.utc) -> datetime:
    """Parse ``text`` with ``date_format``.

    Raises:
        DateParseError: when the text does not match the format.
    """
    try:
        parsed = datetime.strptime(text.strip(), date_format)
    except (ValueError, TypeError) as e:
        raise DateParseError(text, date_format) from e
    return ensure_utc(parsed, tz)


def format_date(value: Union[date, datetime], date_format: str, tz: tzinfo = timezone.utc) -> str:
    """Render a date in ``tz`` with ``date_format``."""
    return ensure_utc(value, tz).astimezone(tz).strftime(date_format)
