"""Shared date helpers used across the booking core."""

import math
from datetime import date, datetime, timedelta
from typing import Optional, Union

API_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

DateLike = Union[str, date, datetime, None]


def format_api_datetime(value: datetime) -> str:
    """Format a datetime the way the booking API expects it.

    Examples:
        >>> format_api_datetime(datetime(2026, 2, 16, 9, 0))
        '2026-02-16 09:00:00'
    """
    return value.strftime(API_DATETIME_FORMAT)


def parse_date(value: DateLike) -> Optional[date]:
    """Coerce a date, datetime or ISO-ish string to a ``date``.

    Accepts ``YYYY-MM-DD`` and ``YYYY-MM-DD HH:MM[:SS]`` strings. Returns
    None for blanks and anything unparseable.

    Examples:
        >>> parse_date("2024-06-15")
        datetime.date(2024, 6, 15)
        >>> parse_date("2026-02-16 09:00:00")
        datetime.date(2026, 2, 16)
        >>> parse_date("not a date") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace(" ", "T", 1)).date()
    except ValueError:
        return None


def combine_date_time(day: str, time_of_day: str) -> Optional[datetime]:
    """Combine separate ``YYYY-MM-DD`` and ``HH:MM`` form values."""
    try:
        return datetime.strptime(f"{day.strip()} {time_of_day.strip()}", "%Y-%m-%d %H:%M")
    except (ValueError, AttributeError):
        return None


def rental_days_between(start: datetime, end: datetime) -> int:
    """Number of started 24-hour periods between pickup and return."""
    return math.ceil((end - start) / timedelta(days=1))
