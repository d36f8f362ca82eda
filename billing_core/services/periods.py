import calendar
import datetime

"""
    Calendar-month windows. Every "this month" question is answered
    relative to an explicit `as_of`, never the system clock.
"""


def _as_date(value):
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def start_of_month(value):
    d = _as_date(value)
    return d.replace(day=1)


def end_of_month(value):
    d = _as_date(value)
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def month_key(value):
    """'yyyy-MM' key used to identify a billing month."""
    d = _as_date(value)
    return f"{d.year:04d}-{d.month:02d}"


def in_month(value, as_of):
    """True if `value` falls within the calendar month of `as_of`."""
    if value is None:
        return False
    d = _as_date(value)
    return start_of_month(as_of) <= d <= end_of_month(as_of)


def shift_month(year, month, delta):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def trailing_months(as_of, count):
    """[(year, month), ...] for the `count` months ending with as_of's month, oldest first."""
    d = _as_date(as_of)
    return [shift_month(d.year, d.month, -offset) for offset in range(count - 1, -1, -1)]


def due_date_for(year, month, day_code):
    # Day 31 on a 30-day month (or 29+ in February) falls on the last day
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, min(max(int(day_code), 1), last_day))
