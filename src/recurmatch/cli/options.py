"""Reusable click options."""

from __future__ import annotations

import click

from recurmatch.domain.recurrence import DayOfWeek, RecurrenceFrequency, RecurrencePattern

FREQUENCIES = [f.value for f in RecurrenceFrequency]


def pattern_options(command):
    """Add the options describing a recurrence pattern."""
    options = [
        click.option(
            "--frequency",
            type=click.Choice(FREQUENCIES, case_sensitive=False),
            default="monthly",
            show_default=True,
            help="How often the schedule recurs",
        ),
        click.option("--interval", type=int, default=1, show_default=True, help="Every N days/weeks/months"),
        click.option("--day-of-month", type=int, help="Day of month (monthly, quarterly, yearly)"),
        click.option("--day-of-week", help="Day of week, e.g. 'friday' (weekly, biweekly)"),
        click.option("--month", "month_of_year", type=int, help="Month of year 1-12 (yearly)"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def build_pattern(
    frequency: str,
    interval: int,
    day_of_month: int | None,
    day_of_week: str | None,
    month_of_year: int | None,
    start_date=None,
) -> RecurrencePattern:
    """Build a RecurrencePattern from CLI options.

    Missing day fields default to the start date's day, weekday or month.

    Raises:
        ValidationError: If the combination is invalid
    """
    weekday = DayOfWeek.parse(day_of_week) if day_of_week else None
    if start_date is not None:
        if day_of_month is None:
            day_of_month = start_date.day
        if weekday is None:
            weekday = DayOfWeek(start_date.weekday())
        if month_of_year is None:
            month_of_year = start_date.month

    return RecurrencePattern.from_fields(
        frequency=frequency.lower(),
        interval=interval,
        day_of_month=day_of_month,
        day_of_week=weekday,
        month_of_year=month_of_year,
    )


def tolerance_options(command):
    """Add options overriding individual matching tolerances."""
    options = [
        click.option("--date-days", type=int, help="Days an instance may be early or late"),
        click.option("--amount-percent", help="Relative amount tolerance, e.g. 0.10"),
        click.option("--amount-absolute", help="Absolute amount tolerance, e.g. 10.00"),
        click.option("--similarity", help="Minimum description similarity 0-1"),
        click.option("--auto-match", help="Confidence at which matches are confirmed automatically"),
    ]
    for option in reversed(options):
        command = option(command)
    return command
