"""Tests for date parser with relative dates."""

import pytest
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from recurmatch.utils.date_parser import get_date_range, month_bounds, parse_date, parse_month


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2026-01-15") == date(2026, 1, 15)
    assert parse_date("January 15, 2026") == date(2026, 1, 15)


def test_parse_named_days():
    """Test parsing 'today', 'yesterday' and 'tomorrow'."""
    today = date.today()
    assert parse_date("today") == today
    assert parse_date("Yesterday") == today - timedelta(days=1)
    assert parse_date(" tomorrow ") == today + timedelta(days=1)


def test_parse_offsets():
    """Test parsing relative offsets."""
    today = date.today()
    assert parse_date("in 3 days") == today + timedelta(days=3)
    assert parse_date("+2 weeks") == today + timedelta(weeks=2)
    assert parse_date("1 month ago") == today - relativedelta(months=1)
    assert parse_date("-1 day") == today - timedelta(days=1)


def test_parse_period_starts():
    """Test parsing 'this/last/next month|year|week'."""
    today = date.today()
    assert parse_date("this month") == today.replace(day=1)
    assert parse_date("next month") == (today + relativedelta(months=1)).replace(day=1)
    assert parse_date("last year") == date(today.year - 1, 1, 1)
    this_week = parse_date("this week")
    assert this_week.weekday() == 0
    assert parse_date("last week") == this_week - timedelta(weeks=1)


def test_parse_weekdays():
    """Test parsing 'next friday' and 'last monday'."""
    today = date.today()
    next_friday = parse_date("next friday")
    assert next_friday.weekday() == 4
    assert 1 <= (next_friday - today).days <= 7
    last_monday = parse_date("last monday")
    assert last_monday.weekday() == 0
    assert 1 <= (today - last_monday).days <= 7


def test_parse_invalid():
    """Test that garbage raises ValueError."""
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("not a date")


def test_month_bounds():
    """Test month bounds including leap February."""
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2026, 12) == (date(2026, 12, 1), date(2026, 12, 31))
    with pytest.raises(ValueError):
        month_bounds(2026, 0)


def test_parse_month():
    """Test parsing months."""
    assert parse_month("2026-03") == (2026, 3)
    assert parse_month("2026-3") == (2026, 3)
    today = date.today()
    assert parse_month("this month") == (today.year, today.month)
    assert parse_month("2026-02-14") == (2026, 2)
    with pytest.raises(ValueError):
        parse_month("2026-13")


def test_get_date_range_month():
    """Test full-month ranges."""
    start, end = get_date_range("last-month")
    assert start.day == 1
    assert end == month_bounds(start.year, start.month)[1]
    assert end < date.today().replace(day=1)


def test_get_date_range_week_and_year():
    """Test week and year ranges."""
    start, end = get_date_range("this-week")
    assert start.weekday() == 0
    assert (end - start).days == 6
    assert get_date_range("next-year") == (date(date.today().year + 1, 1, 1), date(date.today().year + 1, 12, 31))


def test_get_date_range_invalid():
    """Test that unknown periods raise ValueError."""
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("someday")
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("this-decade")
