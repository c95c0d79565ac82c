"""
Tests for calendar-day helpers.
"""
from datetime import date, datetime

from app.core.dates import days_until, is_past, format_expiry_date, to_date


def test_days_until_today_is_zero():
    assert days_until(date(2026, 10, 17), date(2026, 10, 17)) == 0


def test_days_until_future_and_past():
    today = date(2026, 10, 17)
    assert days_until(date(2026, 10, 24), today) == 7
    assert days_until(date(2026, 10, 16), today) == -1


def test_days_until_ignores_time_of_day():
    """Late-evening today vs early-morning target still counts whole calendar days."""
    today = datetime(2026, 10, 17, 23, 59, 59)
    target = datetime(2026, 10, 20, 0, 0, 1)
    assert days_until(target, today) == 3


def test_days_until_across_month_boundary():
    assert days_until(date(2026, 11, 2), date(2026, 10, 30)) == 3


def test_is_past_is_strict():
    today = date(2026, 10, 17)
    assert is_past(date(2026, 10, 16), today) is True
    assert is_past(date(2026, 10, 17), today) is False
    assert is_past(datetime(2026, 10, 17, 0, 0), datetime(2026, 10, 17, 18, 30)) is False


def test_format_expiry_date():
    assert format_expiry_date(date(2026, 10, 7)) == "October 7, 2026"
    assert to_date(datetime(2026, 1, 2, 3, 4)) == date(2026, 1, 2)
