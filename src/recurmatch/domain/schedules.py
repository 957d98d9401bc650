"""Recurring schedules and per-occurrence overrides.

Schedules are mutable aggregates: they change only through their lifecycle
methods (``advance_to_next_occurrence``, ``skip_next_occurrence``, ``pause``,
``resume``, ``update``). Each method computes every new value before
assigning any of them, so a rejected transition leaves the schedule as it
was.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import ClassVar, Iterator, Optional

from recurmatch.domain.entities import BudgetScope, OverrideType
from recurmatch.domain.errors import InvalidStateError, ValidationError, inactive_schedule
from recurmatch.domain.recurrence import RecurrencePattern


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


def _require_description(description: Optional[str]) -> str:
    if description is None or not description.strip():
        raise ValidationError("Description is required.")
    return description.strip()


def _require_pattern(pattern: Optional[RecurrencePattern]) -> RecurrencePattern:
    if pattern is None:
        raise ValidationError("Recurrence pattern is required.")
    return pattern


def _check_end_date(start_date: date, end_date: Optional[date]) -> None:
    if end_date is not None and end_date < start_date:
        raise ValidationError("End date must be on or after start date.")


def _resolve_owner(scope: BudgetScope, owner_user_id: Optional[str]) -> Optional[str]:
    if scope == BudgetScope.PERSONAL:
        if not owner_user_id:
            raise ValidationError("Owner user ID is required for Personal scope.")
        return owner_user_id
    return None


class OccurrenceSequence:
    """Lazy, restartable run of occurrence dates in ``[from_date, to_date]``.

    Every iteration walks the pattern again from the schedule start, so the
    sequence can be iterated any number of times with identical results.
    """

    def __init__(
        self,
        pattern: RecurrencePattern,
        start_date: date,
        end_date: Optional[date],
        is_active: bool,
        from_date: date,
        to_date: date,
    ):
        self.pattern = pattern
        self.start_date = start_date
        self.end_date = end_date
        self.is_active = is_active
        self.from_date = from_date
        self.to_date = to_date

    def _before_end(self, current: date) -> bool:
        return self.end_date is None or current <= self.end_date

    def __iter__(self) -> Iterator[date]:
        if not self.is_active:
            return

        current = self.start_date
        while current < self.from_date and self._before_end(current):
            current = self.pattern.calculate_next_occurrence(current)

        while current <= self.to_date and self._before_end(current):
            if current >= self.from_date:
                yield current
            current = self.pattern.calculate_next_occurrence(current)

    def __repr__(self) -> str:
        return (
            f"OccurrenceSequence({self.pattern}, {self.from_date.isoformat()}"
            f"..{self.to_date.isoformat()})"
        )


@dataclass(kw_only=True, eq=False)
class RecurringSchedule:
    """State shared by recurring transactions and recurring transfers."""

    kind: ClassVar[str] = "recurring schedule"

    id: str
    description: str
    amount: Decimal
    pattern: RecurrencePattern
    start_date: date
    end_date: Optional[date] = None
    next_occurrence: Optional[date] = None
    is_active: bool = True
    last_generated_date: Optional[date] = None
    scope: BudgetScope = BudgetScope.SHARED
    owner_user_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if self.next_occurrence is None:
            self.next_occurrence = self.start_date

    def _require_active(self, action: str) -> None:
        if not self.is_active:
            raise InvalidStateError(inactive_schedule(self.kind, action))

    def _is_past_end(self, day: date) -> bool:
        return self.end_date is not None and day > self.end_date

    def pause(self) -> None:
        """Stop the schedule from producing occurrences."""
        self.is_active = False
        self.updated_at = _utcnow()

    def resume(self, from_date: date) -> None:
        """Reactivate a paused schedule with its next occurrence after ``from_date``.

        Resuming an active schedule does nothing.
        """
        if self.is_active:
            return

        next_occurrence = self.pattern.calculate_next_occurrence(from_date)
        self.next_occurrence = next_occurrence
        self.is_active = True
        self.updated_at = _utcnow()

    def advance_to_next_occurrence(self) -> None:
        """Record the pending occurrence as generated and move to the next one.

        Raises:
            InvalidStateError: If the schedule is inactive
        """
        self._require_active("advance")

        last_generated = self.next_occurrence
        next_occurrence = self.pattern.calculate_next_occurrence(self.next_occurrence)
        still_active = not self._is_past_end(next_occurrence)

        self.last_generated_date = last_generated
        self.next_occurrence = next_occurrence
        self.is_active = still_active
        self.updated_at = _utcnow()

    def skip_next_occurrence(self) -> None:
        """Move past the pending occurrence without recording it as generated.

        Raises:
            InvalidStateError: If the schedule is inactive
        """
        self._require_active("skip an occurrence of")

        next_occurrence = self.pattern.calculate_next_occurrence(self.next_occurrence)
        still_active = not self._is_past_end(next_occurrence)

        self.next_occurrence = next_occurrence
        self.is_active = still_active
        self.updated_at = _utcnow()

    def get_occurrences_between(self, from_date: date, to_date: date) -> OccurrenceSequence:
        """Occurrence dates within ``[from_date, to_date]``, inclusive."""
        return OccurrenceSequence(
            pattern=self.pattern,
            start_date=self.start_date,
            end_date=self.end_date,
            is_active=self.is_active,
            from_date=from_date,
            to_date=to_date,
        )


@dataclass(kw_only=True, eq=False)
class RecurringTransaction(RecurringSchedule):
    """A transaction expected on an account according to a recurrence pattern."""

    kind: ClassVar[str] = "recurring transaction"

    account_id: str
    category: Optional[str] = None

    @classmethod
    def create(
        cls,
        account_id: str,
        description: str,
        amount: Decimal,
        pattern: RecurrencePattern,
        start_date: date,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
        scope: BudgetScope = BudgetScope.SHARED,
        owner_user_id: Optional[str] = None,
    ) -> "RecurringTransaction":
        """Create an active recurring transaction starting at ``start_date``.

        Raises:
            ValidationError: If any field is missing or inconsistent
        """
        if not account_id:
            raise ValidationError("Account ID is required.")
        if amount is None:
            raise ValidationError("Amount is required.")
        description = _require_description(description)
        pattern = _require_pattern(pattern)
        _check_end_date(start_date, end_date)
        owner_user_id = _resolve_owner(scope, owner_user_id)

        now = _utcnow()
        return cls(
            id=_new_id(),
            account_id=account_id,
            description=description,
            amount=Decimal(amount),
            pattern=pattern,
            start_date=start_date,
            end_date=end_date,
            category=category,
            next_occurrence=start_date,
            is_active=True,
            scope=scope,
            owner_user_id=owner_user_id,
            created_at=now,
            updated_at=now,
        )

    def update(
        self,
        description: str,
        amount: Decimal,
        pattern: RecurrencePattern,
        end_date: Optional[date],
        category: Optional[str],
    ) -> None:
        """Replace the editable fields.

        Raises:
            ValidationError: If any field is missing or inconsistent
        """
        if amount is None:
            raise ValidationError("Amount is required.")
        description = _require_description(description)
        pattern = _require_pattern(pattern)
        _check_end_date(self.start_date, end_date)

        self.description = description
        self.amount = Decimal(amount)
        self.pattern = pattern
        self.end_date = end_date
        self.category = category
        self.updated_at = _utcnow()


@dataclass(kw_only=True, eq=False)
class RecurringTransfer(RecurringSchedule):
    """A transfer expected between two accounts according to a recurrence pattern."""

    kind: ClassVar[str] = "recurring transfer"

    source_account_id: str
    destination_account_id: str

    @staticmethod
    def _check_amount(amount: Optional[Decimal]) -> Decimal:
        if amount is None:
            raise ValidationError("Amount is required.")
        amount = Decimal(amount)
        if amount <= 0:
            raise ValidationError("Transfer amount must be positive.")
        return amount

    @classmethod
    def create(
        cls,
        source_account_id: str,
        destination_account_id: str,
        description: str,
        amount: Decimal,
        pattern: RecurrencePattern,
        start_date: date,
        end_date: Optional[date] = None,
        scope: BudgetScope = BudgetScope.SHARED,
        owner_user_id: Optional[str] = None,
    ) -> "RecurringTransfer":
        """Create an active recurring transfer starting at ``start_date``.

        Raises:
            ValidationError: If any field is missing or inconsistent
        """
        if not source_account_id:
            raise ValidationError("Source account ID is required.")
        if not destination_account_id:
            raise ValidationError("Destination account ID is required.")
        if source_account_id == destination_account_id:
            raise ValidationError("Source and destination accounts must be different.")
        description = _require_description(description)
        amount = cls._check_amount(amount)
        pattern = _require_pattern(pattern)
        _check_end_date(start_date, end_date)
        owner_user_id = _resolve_owner(scope, owner_user_id)

        now = _utcnow()
        return cls(
            id=_new_id(),
            source_account_id=source_account_id,
            destination_account_id=destination_account_id,
            description=description,
            amount=amount,
            pattern=pattern,
            start_date=start_date,
            end_date=end_date,
            next_occurrence=start_date,
            is_active=True,
            scope=scope,
            owner_user_id=owner_user_id,
            created_at=now,
            updated_at=now,
        )

    def update(
        self,
        description: str,
        amount: Decimal,
        pattern: RecurrencePattern,
        end_date: Optional[date],
    ) -> None:
        """Replace the editable fields.

        Raises:
            ValidationError: If any field is missing or inconsistent
        """
        description = _require_description(description)
        amount = self._check_amount(amount)
        pattern = _require_pattern(pattern)
        _check_end_date(self.start_date, end_date)

        self.description = description
        self.amount = amount
        self.pattern = pattern
        self.end_date = end_date
        self.updated_at = _utcnow()


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    description = description.strip()
    return description or None


@dataclass(kw_only=True, eq=False)
class ScheduleOverride:
    """Change to, or cancellation of, a single occurrence of a schedule."""

    id: str
    schedule_id: str
    original_date: date
    override_type: OverrideType
    modified_amount: Optional[Decimal] = None
    modified_description: Optional[str] = None
    modified_date: Optional[date] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create_modified(
        cls,
        schedule_id: str,
        original_date: date,
        modified_amount: Optional[Decimal] = None,
        modified_description: Optional[str] = None,
        modified_date: Optional[date] = None,
    ) -> "ScheduleOverride":
        """Override the amount, description and/or date of one occurrence.

        Raises:
            ValidationError: If no modification is given
        """
        if not schedule_id:
            raise ValidationError("Schedule ID is required.")
        modified_description = _clean_description(modified_description)
        if modified_amount is None and modified_description is None and modified_date is None:
            raise ValidationError(
                "At least one modification is required (amount, description, or date)."
            )

        now = _utcnow()
        return cls(
            id=_new_id(),
            schedule_id=schedule_id,
            original_date=original_date,
            override_type=OverrideType.MODIFIED,
            modified_amount=modified_amount,
            modified_description=modified_description,
            modified_date=modified_date,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def create_skipped(cls, schedule_id: str, original_date: date) -> "ScheduleOverride":
        """Cancel one occurrence."""
        if not schedule_id:
            raise ValidationError("Schedule ID is required.")

        now = _utcnow()
        return cls(
            id=_new_id(),
            schedule_id=schedule_id,
            original_date=original_date,
            override_type=OverrideType.SKIPPED,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_skipped(self) -> bool:
        return self.override_type == OverrideType.SKIPPED

    @property
    def effective_date(self) -> date:
        return self.modified_date or self.original_date

    def skip(self) -> None:
        """Turn this override into a skip, dropping any modifications."""
        self.override_type = OverrideType.SKIPPED
        self.modified_amount = None
        self.modified_description = None
        self.modified_date = None
        self.updated_at = _utcnow()

    def update(
        self,
        modified_amount: Optional[Decimal],
        modified_description: Optional[str],
        modified_date: Optional[date],
    ) -> None:
        """Replace the modifications, turning a skip into a modification.

        Raises:
            ValidationError: If no modification is given
        """
        modified_description = _clean_description(modified_description)
        if modified_amount is None and modified_description is None and modified_date is None:
            raise ValidationError(
                "At least one modification is required (amount, description, or date)."
            )

        self.override_type = OverrideType.MODIFIED
        self.modified_amount = modified_amount
        self.modified_description = modified_description
        self.modified_date = modified_date
        self.updated_at = _utcnow()
