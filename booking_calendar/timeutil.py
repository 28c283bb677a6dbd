"""Wall-clock and calendar-date helpers.

Times are "HH:MM" strings on a 24-hour scale compared as minutes since
midnight. Dates are plain ``datetime.date`` values: equality and formatting
only ever look at the local year/month/day fields, never at an instant.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime

from .errors import ParseError

_TIME_RE = re.compile(r"(?P<hour>[0-9]{1,2}):(?P<minute>[0-9]{2})")
_DATE_RE = re.compile(r"(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})")

MINUTES_PER_DAY = 24 * 60


def time_to_minutes(value: str) -> int:
    """Parse "HH:MM" into minutes since midnight.

    Raises ParseError for anything that is not two numeric parts with an
    hour in 0-23 and a minute in 0-59.
    """
    if not isinstance(value, str):
        raise ParseError(f"Time must be a string in HH:MM format: {value!r}")

    match = _TIME_RE.fullmatch(value)
    if match is None:
        raise ParseError(f"Invalid time format: {value!r}")

    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if hour > 23 or minute > 59:
        raise ParseError(f"Time out of range: {value!r}")
    return hour * 60 + minute


def minutes_to_time(minutes: int) -> str:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ParseError(f"Minutes out of range for a single day: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval intersection: [a) and [b) overlap by at least one minute.

    Touching boundaries (10:00-11:00 and 11:00-12:00) do not overlap.
    """
    return start_a < end_b and start_b < end_a


def is_same_day(first: date, second: date) -> bool:
    if isinstance(first, datetime) or isinstance(second, datetime):
        first = _local_date(first)
        second = _local_date(second)
    return (first.year, first.month, first.day) == (second.year, second.month, second.day)


def _local_date(value: date) -> date:
    # A datetime is reduced to its own wall-clock fields, never converted to UTC first.
    return date(value.year, value.month, value.day)


def format_local_date(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_local_date(value: str) -> date:
    if not isinstance(value, str):
        raise ParseError(f"Date must be a string in YYYY-MM-DD format: {value!r}")

    match = _DATE_RE.fullmatch(value)
    if match is None:
        raise ParseError(f"Invalid date format: {value!r}")

    try:
        return date(int(match.group("year")), int(match.group("month")), int(match.group("day")))
    except ValueError as error:
        raise ParseError(f"Invalid calendar date: {value!r}") from error


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last calendar day of ``year``/``month``."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12: {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def in_month(value: date, year: int, month: int) -> bool:
    return value.year == year and value.month == month
