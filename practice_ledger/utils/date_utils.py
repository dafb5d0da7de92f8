"""Calendar arithmetic for billing cycles and recurring schedules"""

import calendar
import re
from datetime import date, timedelta
from typing import Tuple

from dateutil.relativedelta import relativedelta

_CYCLE_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_cycle_month(value: str) -> Tuple[int, int]:
    """
    Parse a "YYYY-MM" string into (year, month).

    Raises:
        ValueError: If the string is not a valid year-month
    """
    match = _CYCLE_MONTH_RE.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Invalid cycle month {value!r}, expected YYYY-MM")

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid cycle month {value!r}, month must be 01-12")
    return year, month


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """Move (year, month) by offset months, rolling over year boundaries"""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def overflow_date(year: int, month: int, day: int) -> date:
    """
    Build a date letting out-of-range days spill into the following month.

    date(2024, 2, 31) is invalid; overflow_date(2024, 2, 31) is 2024-03-02.
    Month may also be outside 1-12 and is normalized first.
    """
    year, month = shift_month(year, month, 0)
    return date(year, month, 1) + timedelta(days=day - 1)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping day to the last day of the month (31 in April -> 30)"""
    return date(year, month, min(day, days_in_month(year, month)))


def add_months(from_date: date, months: int) -> date:
    """Add calendar months; relativedelta clamps to month end"""
    return from_date + relativedelta(months=months)


def to_date(value) -> date:
    """Coerce an ISO string or date into a date (datetimes drop their time part)"""
    if isinstance(value, date):
        return value if type(value) is date else value.date()
    return date.fromisoformat(str(value)[:10])
