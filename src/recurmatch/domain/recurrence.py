"""Recurrence patterns for scheduled transactions and transfers."""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum, IntEnum
from typing import Optional

from dateutil.relativedelta import relativedelta

from recurmatch.domain.errors import DomainError, ValidationError


class RecurrenceFrequency(Enum):
    """How often a schedule recurs."""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class DayOfWeek(IntEnum):
    """Day of week, numbered like ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def parse(cls, value: str) -> "DayOfWeek":
        """Parse a day name ("monday", "Mon") or weekday number."""
        text = value.strip()
        if text.isdigit():
            return cls(int(text))
        for day in cls:
            if day.name.startswith(text.upper()) and len(text) >= 2:
                return day
        raise ValidationError(f"Unknown day of week '{value}'")


_WEEKLY = (RecurrenceFrequency.WEEKLY, RecurrenceFrequency.BIWEEKLY)
_MONTH_BASED = (
    RecurrenceFrequency.MONTHLY,
    RecurrenceFrequency.QUARTERLY,
    RecurrenceFrequency.YEARLY,
)


def _days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _validate_interval(interval: int) -> None:
    if interval < 1:
        raise ValidationError("Interval must be at least 1.")


def _validate_day_of_month(day_of_month: int) -> None:
    if day_of_month < 1 or day_of_month > 31:
        raise ValidationError("Day of month must be between 1 and 31.")


def _validate_month_of_year(month_of_year: int) -> None:
    if month_of_year < 1 or month_of_year > 12:
        raise ValidationError("Month of year must be between 1 and 12.")


@dataclass(frozen=True)
class RecurrencePattern:
    """Immutable schedule descriptor.

    Only the fields relevant to ``frequency`` are set: ``day_of_week`` for
    weekly patterns, ``day_of_month`` for month-based ones and
    ``month_of_year`` for yearly ones. Use the named constructors
    (``monthly``, ``yearly``, ...) rather than building one directly.
    """

    frequency: RecurrenceFrequency
    interval: int = 1
    day_of_month: Optional[int] = None
    day_of_week: Optional[DayOfWeek] = None
    month_of_year: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.frequency, RecurrenceFrequency):
            raise DomainError(f"Unsupported frequency: {self.frequency}")

        _validate_interval(self.interval)

        if self.frequency in _WEEKLY:
            if self.day_of_week is None:
                raise ValidationError(f"Day of week is required for {self.frequency.value} patterns.")
        elif self.day_of_week is not None:
            raise ValidationError(f"Day of week is not used by {self.frequency.value} patterns.")

        if self.frequency in _MONTH_BASED:
            if self.day_of_month is None:
                raise ValidationError(f"Day of month is required for {self.frequency.value} patterns.")
            _validate_day_of_month(self.day_of_month)
        elif self.day_of_month is not None:
            raise ValidationError(f"Day of month is not used by {self.frequency.value} patterns.")

        if self.frequency == RecurrenceFrequency.YEARLY:
            if self.month_of_year is None:
                raise ValidationError("Month of year is required for yearly patterns.")
            _validate_month_of_year(self.month_of_year)
        elif self.month_of_year is not None:
            raise ValidationError(f"Month of year is not used by {self.frequency.value} patterns.")

        if self.frequency == RecurrenceFrequency.BIWEEKLY and self.interval != 2:
            raise ValidationError("Biweekly patterns always have an interval of 2.")
        if self.frequency == RecurrenceFrequency.QUARTERLY and self.interval != 3:
            raise ValidationError("Quarterly patterns always have an interval of 3.")
        if self.frequency == RecurrenceFrequency.YEARLY and self.interval != 1:
            raise ValidationError("Yearly patterns always have an interval of 1.")

    @classmethod
    def daily(cls, interval: int = 1) -> "RecurrencePattern":
        """Every ``interval`` days."""
        _validate_interval(interval)
        return cls(RecurrenceFrequency.DAILY, interval)

    @classmethod
    def weekly(cls, interval: int, day_of_week: DayOfWeek) -> "RecurrencePattern":
        """Every ``interval`` weeks on ``day_of_week``."""
        _validate_interval(interval)
        return cls(RecurrenceFrequency.WEEKLY, interval, day_of_week=DayOfWeek(day_of_week))

    @classmethod
    def biweekly(cls, day_of_week: DayOfWeek) -> "RecurrencePattern":
        """Every two weeks on ``day_of_week``."""
        return cls(RecurrenceFrequency.BIWEEKLY, 2, day_of_week=DayOfWeek(day_of_week))

    @classmethod
    def monthly(cls, interval: int, day_of_month: int) -> "RecurrencePattern":
        """Every ``interval`` months on ``day_of_month`` (clamped to month end)."""
        _validate_interval(interval)
        _validate_day_of_month(day_of_month)
        return cls(RecurrenceFrequency.MONTHLY, interval, day_of_month=day_of_month)

    @classmethod
    def quarterly(cls, day_of_month: int) -> "RecurrencePattern":
        """Every three months on ``day_of_month``."""
        _validate_day_of_month(day_of_month)
        return cls(RecurrenceFrequency.QUARTERLY, 3, day_of_month=day_of_month)

    @classmethod
    def yearly(cls, day_of_month: int, month_of_year: int) -> "RecurrencePattern":
        """Once a year on ``month_of_year``/``day_of_month``."""
        _validate_day_of_month(day_of_month)
        _validate_month_of_year(month_of_year)
        return cls(
            RecurrenceFrequency.YEARLY, 1, day_of_month=day_of_month, month_of_year=month_of_year
        )

    @classmethod
    def from_fields(
        cls,
        frequency: RecurrenceFrequency | str,
        interval: int = 1,
        day_of_month: Optional[int] = None,
        day_of_week: Optional[int] = None,
        month_of_year: Optional[int] = None,
    ) -> "RecurrencePattern":
        """Rebuild a pattern from loose fields (storage rows, CLI options).

        Fields that the frequency does not use are ignored.

        Raises:
            ValidationError: If a field the frequency requires is missing or invalid
        """
        try:
            frequency = RecurrenceFrequency(frequency)
        except ValueError:
            raise ValidationError(f"Unsupported frequency: {frequency}")

        if frequency == RecurrenceFrequency.DAILY:
            return cls.daily(interval)

        if frequency in _WEEKLY and day_of_week is None:
            raise ValidationError(f"Day of week is required for {frequency.value} patterns.")
        if frequency in _MONTH_BASED and day_of_month is None:
            raise ValidationError(f"Day of month is required for {frequency.value} patterns.")

        if frequency == RecurrenceFrequency.WEEKLY:
            return cls.weekly(interval, day_of_week)
        if frequency == RecurrenceFrequency.BIWEEKLY:
            return cls.biweekly(day_of_week)
        if frequency == RecurrenceFrequency.MONTHLY:
            return cls.monthly(interval, day_of_month)
        if frequency == RecurrenceFrequency.QUARTERLY:
            return cls.quarterly(day_of_month)

        if month_of_year is None:
            raise ValidationError("Month of year is required for yearly patterns.")
        return cls.yearly(day_of_month, month_of_year)

    def calculate_next_occurrence(self, from_date: date) -> date:
        """Return the occurrence that follows ``from_date``."""
        if self.frequency == RecurrenceFrequency.DAILY:
            return from_date + timedelta(days=self.interval)
        if self.frequency == RecurrenceFrequency.WEEKLY:
            return from_date + timedelta(days=7 * self.interval)
        if self.frequency == RecurrenceFrequency.BIWEEKLY:
            return from_date + timedelta(days=14)
        if self.frequency in (RecurrenceFrequency.MONTHLY, RecurrenceFrequency.QUARTERLY):
            return self._next_monthly(from_date)
        if self.frequency == RecurrenceFrequency.YEARLY:
            return self._next_yearly(from_date)
        raise DomainError(f"Unsupported frequency: {self.frequency}")

    def _next_monthly(self, from_date: date) -> date:
        next_month = from_date + relativedelta(months=self.interval)
        day = min(self.day_of_month, _days_in_month(next_month.year, next_month.month))
        return next_month.replace(day=day)

    def _next_yearly(self, from_date: date) -> date:
        year = from_date.year + 1
        day = min(self.day_of_month, _days_in_month(year, self.month_of_year))
        return date(year, self.month_of_year, day)

    def describe(self) -> str:
        """Human-readable label, e.g. "Monthly on day 15"."""
        day_name = self.day_of_week.name.capitalize() if self.day_of_week is not None else ""

        if self.frequency == RecurrenceFrequency.DAILY:
            return "Daily" if self.interval == 1 else f"Every {self.interval} days"
        if self.frequency == RecurrenceFrequency.WEEKLY:
            if self.interval == 1:
                return f"Weekly on {day_name}"
            return f"Every {self.interval} weeks on {day_name}"
        if self.frequency == RecurrenceFrequency.BIWEEKLY:
            return f"Every 2 weeks on {day_name}"
        if self.frequency == RecurrenceFrequency.MONTHLY:
            if self.interval == 1:
                return f"Monthly on day {self.day_of_month}"
            return f"Every {self.interval} months on day {self.day_of_month}"
        if self.frequency == RecurrenceFrequency.QUARTERLY:
            return f"Quarterly on day {self.day_of_month}"
        return f"Yearly on {self.month_of_year}/{self.day_of_month}"

    def __str__(self) -> str:
        return self.describe()
