"""
Calendar helpers: stepping dates by a Frequency and budget month windows.

Month arithmetic clamps to the last day of the target month, so
January 31 + one month is February 28 (or 29), never March 3.
"""

import calendar
import datetime as dt
import re

from finledger.errors import InvalidMonthError
from finledger.models.base import Frequency


_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

_DAY_STEPS = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
    Frequency.BI_WEEKLY: 14,
}

_MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}


def add_months(value: dt.date, months: int) -> dt.date:
    total = value.year * 12 + (value.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return dt.date(year, month, day)


def advance_date(value: dt.date, frequency: Frequency, steps: int = 1) -> dt.date:
    """
    Move ``value`` forward by ``steps`` periods of ``frequency``.

    ONE_TIME never moves.
    """
    frequency = Frequency(frequency)
    if frequency in _DAY_STEPS:
        return value + dt.timedelta(days=_DAY_STEPS[frequency] * steps)
    if frequency in _MONTH_STEPS:
        return add_months(value, _MONTH_STEPS[frequency] * steps)
    return value


def parse_month(month: str) -> tuple[int, int]:
    """'2024-03' -> (2024, 3). Raises InvalidMonthError."""
    match = _MONTH_RE.match(month) if isinstance(month, str) else None
    if not match:
        raise InvalidMonthError(month)
    return int(match.group(1)), int(match.group(2))


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_of(value: dt.date, start_day: int = 1) -> str:
    """The budget month a date falls in."""
    if value.day < start_day:
        previous = add_months(value.replace(day=1), -1)
        return format_month(previous.year, previous.month)
    return format_month(value.year, value.month)


def month_window(month: str, start_day: int = 1) -> tuple[dt.date, dt.date]:
    """
    Inclusive (first_day, last_day) of a budget month.

    With start_day=1 this is the calendar month. With start_day=25,
    "2024-03" runs from March 25 to April 24.
    """
    year, mon = parse_month(month)
    start = dt.date(year, mon, start_day)
    end = add_months(start, 1) - dt.timedelta(days=1)
    return start, end


def previous_month(month: str) -> str:
    year, mon = parse_month(month)
    prior = add_months(dt.date(year, mon, 1), -1)
    return format_month(prior.year, prior.month)


def current_month(today: dt.date, start_day: int = 1) -> str:
    return month_of(today, start_day)
