"""Tests for recurring schedules and overrides."""

import pytest
from datetime import date
from decimal import Decimal

from recurmatch.domain.entities import BudgetScope, OverrideType
from recurmatch.domain.errors import InvalidStateError, ValidationError
from recurmatch.domain.recurrence import DayOfWeek, RecurrencePattern
from recurmatch.domain.schedules import RecurringTransaction, RecurringTransfer, ScheduleOverride


def make_schedule(**kwargs) -> RecurringTransaction:
    values = {
        "account_id": "acc-1",
        "description": "Netflix",
        "amount": Decimal("-15.99"),
        "pattern": RecurrencePattern.monthly(1, 15),
        "start_date": date(2026, 1, 15),
    }
    values.update(kwargs)
    return RecurringTransaction.create(**values)


class TestRecurringTransactionCreate:
    """Tests for RecurringTransaction.create."""

    def test_create_defaults(self):
        schedule = make_schedule()
        assert schedule.id
        assert schedule.is_active
        assert schedule.next_occurrence == date(2026, 1, 15)
        assert schedule.last_generated_date is None
        assert schedule.scope == BudgetScope.SHARED
        assert schedule.owner_user_id is None

    def test_create_generates_distinct_ids(self):
        assert make_schedule().id != make_schedule().id

    def test_blank_description_rejected(self):
        with pytest.raises(ValidationError):
            make_schedule(description="   ")

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            make_schedule(end_date=date(2026, 1, 1))

    def test_personal_scope_requires_owner(self):
        with pytest.raises(ValidationError):
            make_schedule(scope=BudgetScope.PERSONAL)

    def test_shared_scope_drops_owner(self):
        schedule = make_schedule(owner_user_id="user-1")
        assert schedule.owner_user_id is None

    def test_update_replaces_fields(self):
        schedule = make_schedule()
        schedule.update("Netflix Premium", Decimal("-22.99"), RecurrencePattern.monthly(1, 20), None, "TV")
        assert schedule.description == "Netflix Premium"
        assert schedule.amount == Decimal("-22.99")
        assert schedule.pattern.day_of_month == 20
        assert schedule.category == "TV"


class TestLifecycle:
    """Tests for advance, skip, pause and resume."""

    def test_advance_records_generated_date(self):
        schedule = make_schedule()
        schedule.advance_to_next_occurrence()
        assert schedule.last_generated_date == date(2026, 1, 15)
        assert schedule.next_occurrence == date(2026, 2, 15)
        assert schedule.is_active

    def test_skip_does_not_record_generated_date(self):
        schedule = make_schedule()
        schedule.skip_next_occurrence()
        assert schedule.last_generated_date is None
        assert schedule.next_occurrence == date(2026, 2, 15)

    def test_advance_past_end_deactivates(self):
        schedule = make_schedule(end_date=date(2026, 2, 20))
        schedule.advance_to_next_occurrence()
        assert schedule.is_active
        schedule.advance_to_next_occurrence()
        assert schedule.last_generated_date == date(2026, 2, 15)
        assert schedule.next_occurrence == date(2026, 3, 15)
        assert not schedule.is_active

    def test_advance_inactive_raises_and_keeps_state(self):
        schedule = make_schedule()
        schedule.pause()
        with pytest.raises(InvalidStateError):
            schedule.advance_to_next_occurrence()
        assert schedule.next_occurrence == date(2026, 1, 15)
        assert schedule.last_generated_date is None

    def test_skip_inactive_raises(self):
        schedule = make_schedule()
        schedule.pause()
        with pytest.raises(InvalidStateError):
            schedule.skip_next_occurrence()

    def test_resume_computes_next_from_date(self):
        schedule = make_schedule()
        schedule.pause()
        schedule.resume(date(2026, 3, 15))
        assert schedule.is_active
        assert schedule.next_occurrence == date(2026, 4, 15)

    def test_resume_active_is_noop(self):
        schedule = make_schedule()
        schedule.resume(date(2026, 6, 1))
        assert schedule.next_occurrence == date(2026, 1, 15)


class TestOccurrences:
    """Tests for get_occurrences_between."""

    def test_monthly_occurrences(self):
        schedule = make_schedule()
        occurrences = list(schedule.get_occurrences_between(date(2026, 1, 1), date(2026, 4, 30)))
        assert occurrences == [date(2026, 1, 15), date(2026, 2, 15), date(2026, 3, 15), date(2026, 4, 15)]

    def test_range_is_inclusive(self):
        schedule = make_schedule()
        occurrences = list(schedule.get_occurrences_between(date(2026, 2, 15), date(2026, 3, 15)))
        assert occurrences == [date(2026, 2, 15), date(2026, 3, 15)]

    def test_month_end_clamping_sequence(self):
        schedule = make_schedule(pattern=RecurrencePattern.monthly(1, 31), start_date=date(2024, 1, 31))
        occurrences = list(schedule.get_occurrences_between(date(2024, 1, 1), date(2024, 3, 31)))
        assert occurrences == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]

    def test_nothing_before_start(self):
        schedule = make_schedule()
        assert list(schedule.get_occurrences_between(date(2025, 1, 1), date(2025, 12, 31))) == []

    def test_end_date_bounds_occurrences(self):
        schedule = make_schedule(end_date=date(2026, 3, 1))
        occurrences = list(schedule.get_occurrences_between(date(2026, 1, 1), date(2026, 12, 31)))
        assert occurrences == [date(2026, 1, 15), date(2026, 2, 15)]

    def test_inactive_schedule_yields_nothing(self):
        schedule = make_schedule()
        schedule.pause()
        assert list(schedule.get_occurrences_between(date(2026, 1, 1), date(2026, 12, 31))) == []

    def test_sequence_is_restartable(self):
        schedule = make_schedule()
        sequence = schedule.get_occurrences_between(date(2026, 1, 1), date(2026, 6, 30))
        assert list(sequence) == list(sequence)
        assert len(list(sequence)) == 6

    def test_weekly_occurrences(self):
        schedule = make_schedule(
            pattern=RecurrencePattern.weekly(1, DayOfWeek.MONDAY), start_date=date(2026, 1, 5)
        )
        occurrences = list(schedule.get_occurrences_between(date(2026, 1, 10), date(2026, 1, 31)))
        assert occurrences == [date(2026, 1, 12), date(2026, 1, 19), date(2026, 1, 26)]


class TestRecurringTransfer:
    """Tests for RecurringTransfer.create."""

    def test_create(self):
        transfer = RecurringTransfer.create(
            "acc-1", "acc-2", "Savings", Decimal("500"), RecurrencePattern.monthly(1, 1), date(2026, 1, 1)
        )
        assert transfer.amount == Decimal("500")
        assert transfer.is_active

    def test_same_accounts_rejected(self):
        with pytest.raises(ValidationError):
            RecurringTransfer.create(
                "acc-1", "acc-1", "Savings", Decimal("500"), RecurrencePattern.monthly(1, 1), date(2026, 1, 1)
            )

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            RecurringTransfer.create(
                "acc-1", "acc-2", "Savings", amount, RecurrencePattern.monthly(1, 1), date(2026, 1, 1)
            )


class TestScheduleOverride:
    """Tests for per-occurrence overrides."""

    def test_modified_requires_a_change(self):
        with pytest.raises(ValidationError):
            ScheduleOverride.create_modified("sched-1", date(2026, 2, 15), modified_description="  ")

    def test_modified(self):
        override = ScheduleOverride.create_modified("sched-1", date(2026, 2, 15), modified_amount=Decimal("-19.99"))
        assert override.override_type == OverrideType.MODIFIED
        assert not override.is_skipped
        assert override.effective_date == date(2026, 2, 15)

    def test_effective_date_uses_modified_date(self):
        override = ScheduleOverride.create_modified(
            "sched-1", date(2026, 2, 15), modified_date=date(2026, 2, 17)
        )
        assert override.effective_date == date(2026, 2, 17)

    def test_skip_clears_modifications(self):
        override = ScheduleOverride.create_modified("sched-1", date(2026, 2, 15), modified_amount=Decimal("-1"))
        override.skip()
        assert override.is_skipped
        assert override.modified_amount is None

    def test_update_turns_skip_into_modification(self):
        override = ScheduleOverride.create_skipped("sched-1", date(2026, 2, 15))
        override.update(Decimal("-20"), None, None)
        assert override.override_type == OverrideType.MODIFIED
        assert override.modified_amount == Decimal("-20")
