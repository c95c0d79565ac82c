"""
Calendar-day helpers shared by the status engine and the reminder scan.

All comparisons happen at day granularity: datetimes are truncated to their
date before any arithmetic.
"""
from datetime import date, datetime
from typing import Union
from zoneinfo import ZoneInfo

from app.core.config import APP_TIMEZONE

DateLike = Union[date, datetime]


def to_date(value: DateLike) -> date:
    """Normalize a date or datetime to a calendar date (midnight)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def local_today() -> date:
    """Today's date in the application timezone."""
    return datetime.now(ZoneInfo(APP_TIMEZONE)).date()


def days_until(target: DateLike, today: DateLike) -> int:
    """
    Whole calendar days from today to target.

    0 when target is today, negative when target is in the past.
    """
    return (to_date(target) - to_date(today)).days


def is_past(value: DateLike, today: DateLike) -> bool:
    """Strictly before today. Today itself is not past."""
    return to_date(value) < to_date(today)


def format_expiry_date(value: DateLike) -> str:
    """Long US format, e.g. 'October 17, 2026'."""
    d = to_date(value)
    return f"{d:%B} {d.day}, {d.year}"
