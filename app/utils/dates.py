"""
Calendar helpers shared by the budgeting services.

Weekdays follow the client convention: 0=Sunday .. 6=Saturday.
Python's date.weekday() is 0=Monday .. 6=Sunday, so convert at the edges.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length (Jan 31 + 1 -> Feb 28/29)."""
    idx = d.year * 12 + (d.month - 1) + months
    year, month = divmod(idx, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last))


def sunday_based_weekday(d: date) -> int:
    return (d.weekday() + 1) % 7


def most_recent_weekday(today: date, weekday: int) -> date:
    """Latest date on or before `today` falling on `weekday` (0=Sunday)."""
    back = (sunday_based_weekday(today) - weekday) % 7
    return today - timedelta(days=back)


def next_weekday_on_or_after(d: date, weekday: int) -> date:
    ahead = (weekday - sunday_based_weekday(d)) % 7
    return d + timedelta(days=ahead)


def parse_iso_date(value: str | date) -> date:
    """Accept 'YYYY-MM-DD' (optionally followed by a time part) or a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def end_of_day(d: date, tzinfo=None) -> datetime:
    """Instant at which `d` ends, i.e. midnight starting the following day."""
    return datetime.combine(d + timedelta(days=1), time.min, tzinfo=tzinfo)
