"""Unit tests for reporting period ranges."""
from datetime import datetime

import pytest

from app.errors import BadRequestError
from app.services.periods import get_date_range

# A Thursday
NOW = datetime(2026, 3, 12, 15, 30, 45)


def test_today_covers_the_whole_day():
    start, end = get_date_range("today", NOW)
    assert start == datetime(2026, 3, 12)
    assert end == datetime(2026, 3, 12, 23, 59, 59, 999999)


def test_yesterday():
    start, end = get_date_range("yesterday", NOW)
    assert start == datetime(2026, 3, 11)
    assert end == datetime(2026, 3, 11, 23, 59, 59, 999999)


def test_this_week_starts_on_monday():
    start, end = get_date_range("thisWeek", NOW)
    assert start == datetime(2026, 3, 9)
    assert end.date() == NOW.date()


def test_this_month_and_year():
    assert get_date_range("thisMonth", NOW)[0] == datetime(2026, 3, 1)
    assert get_date_range("thisYear", NOW)[0] == datetime(2026, 1, 1)


def test_lifetime_has_no_range():
    assert get_date_range("lifetime", NOW) is None


def test_unknown_period_is_rejected():
    with pytest.raises(BadRequestError):
        get_date_range("lastDecade", NOW)
