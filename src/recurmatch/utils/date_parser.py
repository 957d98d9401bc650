"""Date parsing utilities."""

import calendar
import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
_OFFSET = re.compile(r"^(?:in\s+)?([+-]?\d+)\s*(day|week|month)s?(\s+ago)?$")
_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _shift(today: date, amount: int, unit: str) -> date:
    if unit == "day":
        return today + timedelta(days=amount)
    if unit == "week":
        return today + timedelta(weeks=amount)
    return today + relativedelta(months=amount)


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Named days: "today", "yesterday", "tomorrow"
    - Period starts: "this month", "next month", "last year", "this week", ...
    - Weekdays: "next friday", "last monday"
    - Offsets: "in 3 days", "+2 weeks", "1 month ago"

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    named = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in named:
        return named[text]

    offset = _OFFSET.match(text)
    if offset:
        amount = int(offset.group(1))
        if offset.group(3):
            amount = -amount
        return _shift(today, amount, offset.group(2))

    parts = text.split(maxsplit=1)
    if len(parts) == 2 and parts[0] in ("last", "this", "next"):
        step = {"last": -1, "this": 0, "next": 1}[parts[0]]
        period = parts[1]
        if period == "month":
            return _month_start(today + relativedelta(months=step))
        if period == "year":
            return date(today.year + step, 1, 1)
        if period == "week":
            return today - timedelta(days=today.weekday()) + timedelta(weeks=step)
        if period in _WEEKDAYS and step != 0:
            delta = (_WEEKDAYS.index(period) - today.weekday()) * step % 7 or 7
            return today + timedelta(days=delta * step)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month.

    Raises:
        ValueError: If month is not 1-12
    """
    if month < 1 or month > 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def parse_month(month_str: str) -> tuple[int, int]:
    """Parse a month into ``(year, month)``.

    Accepts "2024-03", "this month", "last month", "next month", or anything
    ``parse_date`` understands (the month containing that date).

    Raises:
        ValueError: If the string cannot be parsed
    """
    text = month_str.strip().lower()
    match = _MONTH.match(text)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if month < 1 or month > 12:
            raise ValueError(f"Invalid month '{month_str}'")
        return year, month

    day = parse_date(text)
    return day.year, day.month


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a whole named period.

    Args:
        period: One of this-month, last-month, next-month, this-year,
            last-year, next-year, this-week, last-week, next-week

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If period string is not recognized
    """
    text = period.strip().lower()
    today = date.today()
    steps = {"last": -1, "this": 0, "next": 1}

    try:
        which, unit = text.split("-")
        step = steps[which]
    except (ValueError, KeyError):
        raise ValueError(_unknown_period(period))

    if unit == "month":
        start = _month_start(today + relativedelta(months=step))
        return month_bounds(start.year, start.month)
    if unit == "year":
        year = today.year + step
        return date(year, 1, 1), date(year, 12, 31)
    if unit == "week":
        start = today - timedelta(days=today.weekday()) + timedelta(weeks=step)
        return start, start + timedelta(days=6)

    raise ValueError(_unknown_period(period))


def _unknown_period(period: str) -> str:
    return (
        f"Unknown period: '{period}'. Supported periods: "
        "{this,last,next}-{week,month,year}"
    )
