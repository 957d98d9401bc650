"""Mapper functions to convert between domain models and SQLAlchemy models.

``*_to_domain`` functions build domain objects from rows; ``apply_*``
functions copy a domain object's state onto a (new or existing) row so that
saving an aggregate is a plain upsert.
"""

from decimal import Decimal

from recurmatch.domain import entities as domain
from recurmatch.domain.entities import (
    BudgetScope,
    MatchConfidenceLevel,
    OverrideType,
    ReconciliationMatchStatus,
)
from recurmatch.domain.matches import ReconciliationMatch
from recurmatch.domain.recurrence import RecurrencePattern
from recurmatch.domain.schedules import (
    RecurringSchedule,
    RecurringTransaction,
    RecurringTransfer,
    ScheduleOverride,
)
from recurmatch.domain.tolerances import MatchingTolerances
from recurmatch.database.models import (
    Account as ORMAccount,
    Transaction as ORMTransaction,
    RecurringTransaction as ORMRecurringTransaction,
    RecurringTransfer as ORMRecurringTransfer,
    ScheduleOverride as ORMScheduleOverride,
    ReconciliationMatch as ORMReconciliationMatch,
    MatchingTolerancesSetting as ORMMatchingTolerances,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        created_at=orm_account.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=Decimal(orm_transaction.amount),
        description=orm_transaction.description,
        category=orm_transaction.category,
        imported_at=orm_transaction.imported_at,
        recurring_transaction_id=orm_transaction.recurring_transaction_id,
        recurring_instance_date=orm_transaction.recurring_instance_date,
    )


def _pattern_from_row(row) -> RecurrencePattern:
    return RecurrencePattern.from_fields(
        frequency=row.frequency,
        interval=row.interval,
        day_of_month=row.day_of_month,
        day_of_week=row.day_of_week,
        month_of_year=row.month_of_year,
    )


def _schedule_fields(row) -> dict:
    return {
        "id": row.id,
        "description": row.description,
        "amount": Decimal(row.amount),
        "pattern": _pattern_from_row(row),
        "start_date": row.start_date,
        "end_date": row.end_date,
        "next_occurrence": row.next_occurrence,
        "is_active": row.is_active,
        "last_generated_date": row.last_generated_date,
        "scope": BudgetScope(row.scope),
        "owner_user_id": row.owner_user_id,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


def recurring_transaction_to_domain(row: ORMRecurringTransaction) -> RecurringTransaction:
    """Convert SQLAlchemy RecurringTransaction model to the domain aggregate."""
    return RecurringTransaction(
        account_id=row.account_id,
        category=row.category,
        **_schedule_fields(row),
    )


def recurring_transfer_to_domain(row: ORMRecurringTransfer) -> RecurringTransfer:
    """Convert SQLAlchemy RecurringTransfer model to the domain aggregate."""
    return RecurringTransfer(
        source_account_id=row.source_account_id,
        destination_account_id=row.destination_account_id,
        **_schedule_fields(row),
    )


def _apply_schedule(row, schedule: RecurringSchedule) -> None:
    pattern = schedule.pattern
    row.id = schedule.id
    row.description = schedule.description
    row.amount = schedule.amount
    row.frequency = pattern.frequency.value
    row.interval = pattern.interval
    row.day_of_month = pattern.day_of_month
    row.day_of_week = int(pattern.day_of_week) if pattern.day_of_week is not None else None
    row.month_of_year = pattern.month_of_year
    row.start_date = schedule.start_date
    row.end_date = schedule.end_date
    row.next_occurrence = schedule.next_occurrence
    row.is_active = schedule.is_active
    row.last_generated_date = schedule.last_generated_date
    row.scope = schedule.scope.value
    row.owner_user_id = schedule.owner_user_id
    row.created_at = schedule.created_at
    row.updated_at = schedule.updated_at


def apply_recurring_transaction(row: ORMRecurringTransaction, schedule: RecurringTransaction) -> None:
    """Copy a recurring transaction onto its row."""
    _apply_schedule(row, schedule)
    row.account_id = schedule.account_id
    row.category = schedule.category


def apply_recurring_transfer(row: ORMRecurringTransfer, transfer: RecurringTransfer) -> None:
    """Copy a recurring transfer onto its row."""
    _apply_schedule(row, transfer)
    row.source_account_id = transfer.source_account_id
    row.destination_account_id = transfer.destination_account_id


def override_to_domain(row: ORMScheduleOverride) -> ScheduleOverride:
    """Convert SQLAlchemy ScheduleOverride model to domain entity."""
    return ScheduleOverride(
        id=row.id,
        schedule_id=row.schedule_id,
        original_date=row.original_date,
        override_type=OverrideType(row.override_type),
        modified_amount=Decimal(row.modified_amount) if row.modified_amount is not None else None,
        modified_description=row.modified_description,
        modified_date=row.modified_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def apply_override(row: ORMScheduleOverride, override: ScheduleOverride) -> None:
    """Copy an override onto its row."""
    row.id = override.id
    row.schedule_id = override.schedule_id
    row.original_date = override.original_date
    row.override_type = override.override_type.value
    row.modified_amount = override.modified_amount
    row.modified_description = override.modified_description
    row.modified_date = override.modified_date
    row.created_at = override.created_at
    row.updated_at = override.updated_at


def match_to_domain(row: ORMReconciliationMatch) -> ReconciliationMatch:
    """Convert SQLAlchemy ReconciliationMatch model to domain aggregate."""
    return ReconciliationMatch(
        id=row.id,
        imported_transaction_id=row.imported_transaction_id,
        schedule_id=row.schedule_id,
        instance_date=row.instance_date,
        confidence_score=Decimal(row.confidence_score),
        confidence_level=MatchConfidenceLevel(row.confidence_level),
        amount_variance=Decimal(row.amount_variance),
        date_offset_days=row.date_offset_days,
        status=ReconciliationMatchStatus(row.status),
        scope=BudgetScope(row.scope),
        owner_user_id=row.owner_user_id,
        created_at=row.created_at,
        resolved_at=row.resolved_at,
    )


def apply_match(row: ORMReconciliationMatch, match: ReconciliationMatch) -> None:
    """Copy a match onto its row."""
    row.id = match.id
    row.imported_transaction_id = match.imported_transaction_id
    row.schedule_id = match.schedule_id
    row.instance_date = match.instance_date
    row.confidence_score = match.confidence_score
    row.confidence_level = match.confidence_level.value
    row.amount_variance = match.amount_variance
    row.date_offset_days = match.date_offset_days
    row.status = match.status.value
    row.scope = match.scope.value
    row.owner_user_id = match.owner_user_id
    row.created_at = match.created_at
    row.resolved_at = match.resolved_at


def tolerances_to_domain(row: ORMMatchingTolerances) -> MatchingTolerances:
    """Convert the settings row to MatchingTolerances."""
    return MatchingTolerances.create(
        date_tolerance_days=row.date_tolerance_days,
        amount_tolerance_percent=row.amount_tolerance_percent,
        amount_tolerance_absolute=row.amount_tolerance_absolute,
        description_similarity_threshold=row.description_similarity_threshold,
        auto_match_threshold=row.auto_match_threshold,
    )
