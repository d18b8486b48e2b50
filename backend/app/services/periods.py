"""Reporting periods shared by every earnings and revenue aggregation."""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from app.errors import BadRequestError

TODAY = "today"
YESTERDAY = "yesterday"
THIS_WEEK = "thisWeek"
THIS_MONTH = "thisMonth"
THIS_YEAR = "thisYear"
LIFETIME = "lifetime"

PERIODS = (TODAY, YESTERDAY, THIS_WEEK, THIS_MONTH, THIS_YEAR, LIFETIME)
BOUNDED_PERIODS = PERIODS[:-1]

DateRange = Tuple[datetime, datetime]


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def get_date_range(period: str, now: Optional[datetime] = None) -> Optional[DateRange]:
    """Resolve ``period`` to an inclusive ``(start, end)`` range.

    Timestamps are naive UTC like the stored columns. ``lifetime`` returns
    None, meaning "no date filter". Weeks start on Monday.
    """
    now = now or datetime.utcnow()
    today_start = start_of_day(now)
    today_end = end_of_day(now)

    if period == TODAY:
        return today_start, today_end
    if period == YESTERDAY:
        yesterday = today_start - timedelta(days=1)
        return yesterday, end_of_day(yesterday)
    if period == THIS_WEEK:
        return today_start - timedelta(days=now.weekday()), today_end
    if period == THIS_MONTH:
        return today_start.replace(day=1), today_end
    if period == THIS_YEAR:
        return today_start.replace(month=1, day=1), today_end
    if period == LIFETIME:
        return None
    raise BadRequestError(f"Unknown period '{period}'")


def within(column, period: str, now: Optional[datetime] = None):
    """SQL clause restricting ``column`` to ``period``, or None for lifetime."""
    date_range = get_date_range(period, now)
    if date_range is None:
        return None
    start, end = date_range
    return column.between(start, end)
