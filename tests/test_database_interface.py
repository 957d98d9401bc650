"""Tests for the SQLAlchemy Database implementation."""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal

from recurmatch.domain import entities
from recurmatch.domain.entities import OverrideType, ReconciliationMatchStatus
from recurmatch.domain.errors import ConflictError, NotFoundError
from recurmatch.domain.matches import ReconciliationMatch
from recurmatch.domain.recurrence import DayOfWeek, RecurrencePattern
from recurmatch.domain.schedules import RecurringTransaction, ScheduleOverride
from recurmatch.domain.tolerances import MatchingTolerances


def add_transaction(db, account_id, txn_id="txn-1", on=date(2026, 1, 15), amount="-15.99"):
    txn = entities.Transaction(
        id=txn_id,
        account_id=account_id,
        date=on,
        amount=Decimal(amount),
        description="NETFLIX.COM",
        category=None,
        imported_at=datetime.now(UTC),
    )
    db.add_transaction(txn)
    return txn


def make_match(transaction_id, schedule_id, score="0.70", on=date(2026, 1, 15)):
    return ReconciliationMatch.create(
        imported_transaction_id=transaction_id,
        schedule_id=schedule_id,
        instance_date=on,
        confidence_score=Decimal(score),
        amount_variance=Decimal("0"),
        date_offset_days=0,
    )


class TestAccounts:
    """Tests for account persistence."""

    def test_get_account_returns_domain_model(self, temp_db, sample_account):
        """Test that get_account returns a domain Account entity."""
        account = temp_db.get_account(sample_account.id)
        assert isinstance(account, entities.Account)
        assert account.name == "Test Account"
        assert account.bank_name == "Test Bank"

    def test_get_missing_account(self, temp_db):
        assert temp_db.get_account("missing") is None

    def test_list_accounts_ordered_by_name(self, temp_db, sample_account, savings_account):
        names = [acc.name for acc in temp_db.list_accounts()]
        assert names == ["Savings", "Test Account"]

    def test_duplicate_name_conflicts(self, temp_db, sample_account):
        duplicate = entities.Account(
            id="other-id", name="Test Account", bank_name="Other", created_at=datetime.now(UTC)
        )
        with pytest.raises(ConflictError):
            temp_db.add_account(duplicate)
        assert len(temp_db.list_accounts()) == 1


class TestTransactions:
    """Tests for imported transaction persistence."""

    def test_round_trip(self, temp_db, sample_account):
        add_transaction(temp_db, sample_account.id)
        txn = temp_db.get_transaction("txn-1")
        assert isinstance(txn, entities.Transaction)
        assert txn.amount == Decimal("-15.99")
        assert txn.date == date(2026, 1, 15)
        assert not txn.is_from_recurring

    def test_list_filters(self, temp_db, sample_account, savings_account):
        add_transaction(temp_db, sample_account.id, "a", date(2026, 1, 5))
        add_transaction(temp_db, sample_account.id, "b", date(2026, 2, 5))
        add_transaction(temp_db, savings_account.id, "c", date(2026, 1, 20))

        january = temp_db.list_transactions(start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
        assert [t.id for t in january] == ["a", "c"]
        checking = temp_db.list_transactions(account_id=sample_account.id)
        assert [t.id for t in checking] == ["a", "b"]

    def test_link_to_instance(self, temp_db, sample_account):
        add_transaction(temp_db, sample_account.id)
        temp_db.link_transaction_to_instance("txn-1", "sched-1", date(2026, 1, 15))
        txn = temp_db.get_transaction("txn-1")
        assert txn.recurring_transaction_id == "sched-1"
        assert txn.recurring_instance_date == date(2026, 1, 15)
        assert txn.is_from_recurring

    def test_link_missing_transaction(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.link_transaction_to_instance("missing", "sched-1", date(2026, 1, 15))


class TestSchedules:
    """Tests for recurring schedule persistence."""

    def test_pattern_round_trip(self, temp_db, sample_account):
        schedule = RecurringTransaction.create(
            account_id=sample_account.id,
            description="Gym",
            amount=Decimal("-30"),
            pattern=RecurrencePattern.weekly(2, DayOfWeek.TUESDAY),
            start_date=date(2026, 1, 6),
        )
        temp_db.save_recurring_transaction(schedule)
        loaded = temp_db.get_recurring_transaction(schedule.id)
        assert loaded.pattern == RecurrencePattern.weekly(2, DayOfWeek.TUESDAY)
        assert loaded.next_occurrence == date(2026, 1, 6)

    def test_save_updates_existing(self, temp_db, netflix_schedule):
        netflix_schedule.advance_to_next_occurrence()
        temp_db.save_recurring_transaction(netflix_schedule)
        loaded = temp_db.get_recurring_transaction(netflix_schedule.id)
        assert loaded.last_generated_date == date(2026, 1, 15)
        assert loaded.next_occurrence == date(2026, 2, 15)
        assert len(temp_db.list_recurring_transactions()) == 1

    def test_active_only(self, temp_db, netflix_schedule, rent_schedule):
        netflix_schedule.pause()
        temp_db.save_recurring_transaction(netflix_schedule)
        active = temp_db.list_recurring_transactions(active_only=True)
        assert [s.id for s in active] == [rent_schedule.id]


class TestOverrides:
    """Tests for override persistence."""

    def test_save_and_get(self, temp_db, netflix_schedule):
        override = ScheduleOverride.create_skipped(netflix_schedule.id, date(2026, 2, 15))
        temp_db.save_override(override)
        loaded = temp_db.get_override(netflix_schedule.id, date(2026, 2, 15))
        assert loaded.id == override.id
        assert loaded.override_type == OverrideType.SKIPPED

    def test_one_override_per_occurrence(self, temp_db, netflix_schedule):
        temp_db.save_override(ScheduleOverride.create_skipped(netflix_schedule.id, date(2026, 2, 15)))
        with pytest.raises(ConflictError):
            temp_db.save_override(ScheduleOverride.create_skipped(netflix_schedule.id, date(2026, 2, 15)))

    def test_list_by_range(self, temp_db, netflix_schedule):
        for month in (1, 2, 3):
            temp_db.save_override(ScheduleOverride.create_skipped(netflix_schedule.id, date(2026, month, 15)))
        overrides = temp_db.list_overrides([netflix_schedule.id], date(2026, 2, 1), date(2026, 3, 31))
        assert [o.original_date for o in overrides] == [date(2026, 2, 15), date(2026, 3, 15)]

    def test_delete(self, temp_db, netflix_schedule):
        override = ScheduleOverride.create_skipped(netflix_schedule.id, date(2026, 2, 15))
        temp_db.save_override(override)
        temp_db.delete_override(override.id)
        assert temp_db.get_override(netflix_schedule.id, date(2026, 2, 15)) is None


class TestMatches:
    """Tests for reconciliation match persistence."""

    def test_add_and_get(self, temp_db, sample_account, netflix_schedule):
        add_transaction(temp_db, sample_account.id)
        match = make_match("txn-1", netflix_schedule.id)
        temp_db.add_match(match)
        loaded = temp_db.get_match(match.id)
        assert loaded.status == ReconciliationMatchStatus.SUGGESTED
        assert loaded.confidence_score == Decimal("0.70")
        assert temp_db.match_exists("txn-1", netflix_schedule.id, date(2026, 1, 15))
        assert not temp_db.match_exists("txn-1", netflix_schedule.id, date(2026, 2, 15))

    def test_duplicate_triple_conflicts(self, temp_db, sample_account, netflix_schedule):
        add_transaction(temp_db, sample_account.id)
        temp_db.add_match(make_match("txn-1", netflix_schedule.id))
        with pytest.raises(ConflictError):
            temp_db.add_match(make_match("txn-1", netflix_schedule.id, score="0.9"))
        assert len(temp_db.list_matches_by_transaction("txn-1")) == 1

    def test_save_persists_status(self, temp_db, sample_account, netflix_schedule):
        add_transaction(temp_db, sample_account.id)
        match = make_match("txn-1", netflix_schedule.id)
        temp_db.add_match(match)
        match.accept()
        temp_db.save_match(match)
        loaded = temp_db.get_match(match.id)
        assert loaded.status == ReconciliationMatchStatus.ACCEPTED
        assert loaded.resolved_at is not None
        assert temp_db.list_pending_matches() == []

    def test_pending_ordered_by_confidence(self, temp_db, sample_account, netflix_schedule):
        add_transaction(temp_db, sample_account.id, "a")
        add_transaction(temp_db, sample_account.id, "b")
        temp_db.add_match(make_match("a", netflix_schedule.id, score="0.65"))
        temp_db.add_match(make_match("b", netflix_schedule.id, score="0.80"))
        pending = temp_db.list_pending_matches()
        assert [m.imported_transaction_id for m in pending] == ["b", "a"]

    def test_list_by_period_and_schedule(self, temp_db, sample_account, netflix_schedule):
        add_transaction(temp_db, sample_account.id)
        temp_db.add_match(make_match("txn-1", netflix_schedule.id, on=date(2026, 1, 15)))
        temp_db.add_match(make_match("txn-1", netflix_schedule.id, on=date(2026, 2, 15)))
        assert len(temp_db.list_matches_by_period(2026, 2)) == 1
        in_january = temp_db.list_matches_by_schedule(netflix_schedule.id, end_date=date(2026, 1, 31))
        assert [m.instance_date for m in in_january] == [date(2026, 1, 15)]


class TestTolerances:
    """Tests for tolerance settings persistence."""

    def test_none_until_saved(self, temp_db):
        assert temp_db.get_matching_tolerances() is None

    def test_save_and_overwrite(self, temp_db):
        temp_db.save_matching_tolerances(MatchingTolerances.create(3, "0.05", "5", "0.7", "0.9"))
        temp_db.save_matching_tolerances(MatchingTolerances.create(4, "0.05", "5", "0.7", "0.9"))
        assert temp_db.get_matching_tolerances() == MatchingTolerances.create(4, "0.05", "5", "0.7", "0.9")
