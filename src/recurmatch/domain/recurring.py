"""Recurring transaction and transfer domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from recurmatch.database.base import Database
from recurmatch.domain.entities import (
    BudgetScope,
    RecurringInstanceInfo,
    RecurringTransferInstanceInfo,
)
from recurmatch.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    recurring_transaction_not_found,
    recurring_transfer_not_found,
)
from recurmatch.domain.projection import (
    flatten_instances,
    index_overrides,
    project_instances_for_date,
    project_transaction_instances,
    project_transfer_instances,
)
from recurmatch.domain.recurrence import RecurrencePattern
from recurmatch.domain.schedules import (
    RecurringSchedule,
    RecurringTransaction,
    RecurringTransfer,
    ScheduleOverride,
)

logger = logging.getLogger(__name__)

Schedule = Union[RecurringTransaction, RecurringTransfer]


def _check_range(from_date: date, to_date: date) -> None:
    if from_date > to_date:
        raise ValidationError("Start date must be on or before end date.")


class RecurringService:
    """Service for managing recurring schedules, their overrides and projections."""

    def __init__(self, db: Database):
        """Initialize recurring service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_account(self, account_id: str) -> None:
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

    def _account_names(self) -> dict[str, str]:
        return {acc.id: acc.name for acc in self.db.list_accounts()}

    def _save(self, schedule: Schedule) -> None:
        if isinstance(schedule, RecurringTransfer):
            self.db.save_recurring_transfer(schedule)
        else:
            self.db.save_recurring_transaction(schedule)

    def _require_schedule(self, schedule_id: str) -> Schedule:
        """Look up a schedule of either kind."""
        schedule = self.db.get_recurring_transaction(schedule_id)
        if schedule is None:
            schedule = self.db.get_recurring_transfer(schedule_id)
        if schedule is None:
            raise NotFoundError(f"Recurring schedule {schedule_id} not found")
        return schedule

    # Recurring transactions
    def create_recurring_transaction(
        self,
        account_id: str,
        description: str,
        amount: Decimal,
        pattern: RecurrencePattern,
        start_date: date,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
        scope: BudgetScope = BudgetScope.SHARED,
        owner_user_id: Optional[str] = None,
    ) -> RecurringTransaction:
        """Create a recurring transaction.

        Args:
            account_id: Account the transaction is expected on
            description: Expected description
            amount: Signed expected amount (negative for outflows)
            pattern: Recurrence pattern
            start_date: First occurrence
            end_date: Optional last possible occurrence
            category: Optional category name
            scope: Shared or personal budget
            owner_user_id: Owner, required for personal scope

        Returns:
            Created recurring transaction

        Raises:
            NotFoundError: If account doesn't exist
            ValidationError: If any field is invalid
        """
        self._require_account(account_id)
        schedule = RecurringTransaction.create(
            account_id=account_id,
            description=description,
            amount=amount,
            pattern=pattern,
            start_date=start_date,
            end_date=end_date,
            category=category,
            scope=scope,
            owner_user_id=owner_user_id,
        )
        self.db.save_recurring_transaction(schedule)
        logger.info(f"Created recurring transaction {schedule.id}: {schedule.description} ({pattern})")
        return schedule

    def get_recurring_transaction(self, schedule_id: str) -> Optional[RecurringTransaction]:
        """Get recurring transaction by ID, or None if not found."""
        return self.db.get_recurring_transaction(schedule_id)

    def require_recurring_transaction(self, schedule_id: str) -> RecurringTransaction:
        """Get recurring transaction by ID.

        Raises:
            NotFoundError: If not found
        """
        schedule = self.db.get_recurring_transaction(schedule_id)
        if schedule is None:
            raise NotFoundError(recurring_transaction_not_found(schedule_id))
        return schedule

    def list_recurring_transactions(
        self, active_only: bool = False, account_id: Optional[str] = None
    ) -> list[RecurringTransaction]:
        """List recurring transactions."""
        return self.db.list_recurring_transactions(active_only=active_only, account_id=account_id)

    def update_recurring_transaction(
        self,
        schedule_id: str,
        description: Optional[str] = None,
        amount: Optional[Decimal] = None,
        pattern: Optional[RecurrencePattern] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
        clear_end_date: bool = False,
    ) -> RecurringTransaction:
        """Update a recurring transaction.

        Only provided fields are changed. Pass ``clear_end_date`` to remove
        the end date.

        Raises:
            NotFoundError: If the schedule doesn't exist
            ValidationError: If the resulting schedule is invalid
        """
        schedule = self.require_recurring_transaction(schedule_id)
        new_end_date = None if clear_end_date else (end_date or schedule.end_date)
        schedule.update(
            description=description if description is not None else schedule.description,
            amount=amount if amount is not None else schedule.amount,
            pattern=pattern or schedule.pattern,
            end_date=new_end_date,
            category=category if category is not None else schedule.category,
        )
        self.db.save_recurring_transaction(schedule)
        return schedule

    # Recurring transfers
    def create_recurring_transfer(
        self,
        source_account_id: str,
        destination_account_id: str,
        description: str,
        amount: Decimal,
        pattern: RecurrencePattern,
        start_date: date,
        end_date: Optional[date] = None,
        scope: BudgetScope = BudgetScope.SHARED,
        owner_user_id: Optional[str] = None,
    ) -> RecurringTransfer:
        """Create a recurring transfer between two accounts.

        Raises:
            NotFoundError: If either account doesn't exist
            ValidationError: If any field is invalid
        """
        self._require_account(source_account_id)
        self._require_account(destination_account_id)
        transfer = RecurringTransfer.create(
            source_account_id=source_account_id,
            destination_account_id=destination_account_id,
            description=description,
            amount=amount,
            pattern=pattern,
            start_date=start_date,
            end_date=end_date,
            scope=scope,
            owner_user_id=owner_user_id,
        )
        self.db.save_recurring_transfer(transfer)
        logger.info(f"Created recurring transfer {transfer.id}: {transfer.description} ({pattern})")
        return transfer

    def get_recurring_transfer(self, transfer_id: str) -> Optional[RecurringTransfer]:
        """Get recurring transfer by ID, or None if not found."""
        return self.db.get_recurring_transfer(transfer_id)

    def require_recurring_transfer(self, transfer_id: str) -> RecurringTransfer:
        """Get recurring transfer by ID.

        Raises:
            NotFoundError: If not found
        """
        transfer = self.db.get_recurring_transfer(transfer_id)
        if transfer is None:
            raise NotFoundError(recurring_transfer_not_found(transfer_id))
        return transfer

    def list_recurring_transfers(self, active_only: bool = False) -> list[RecurringTransfer]:
        """List recurring transfers."""
        return self.db.list_recurring_transfers(active_only=active_only)

    def update_recurring_transfer(
        self,
        transfer_id: str,
        description: Optional[str] = None,
        amount: Optional[Decimal] = None,
        pattern: Optional[RecurrencePattern] = None,
        end_date: Optional[date] = None,
        clear_end_date: bool = False,
    ) -> RecurringTransfer:
        """Update a recurring transfer. Only provided fields are changed."""
        transfer = self.require_recurring_transfer(transfer_id)
        new_end_date = None if clear_end_date else (end_date or transfer.end_date)
        transfer.update(
            description=description if description is not None else transfer.description,
            amount=amount if amount is not None else transfer.amount,
            pattern=pattern or transfer.pattern,
            end_date=new_end_date,
        )
        self.db.save_recurring_transfer(transfer)
        return transfer

    # Lifecycle, shared by both schedule kinds
    def pause(self, schedule_id: str) -> RecurringSchedule:
        """Pause a schedule so it stops producing occurrences."""
        schedule = self._require_schedule(schedule_id)
        schedule.pause()
        self._save(schedule)
        logger.info(f"Paused {schedule.kind} {schedule.id}")
        return schedule

    def resume(self, schedule_id: str, from_date: Optional[date] = None) -> RecurringSchedule:
        """Resume a paused schedule after ``from_date`` (default: today)."""
        schedule = self._require_schedule(schedule_id)
        schedule.resume(from_date or date.today())
        self._save(schedule)
        logger.info(f"Resumed {schedule.kind} {schedule.id}, next on {schedule.next_occurrence}")
        return schedule

    def skip_next(self, schedule_id: str) -> RecurringSchedule:
        """Skip the pending occurrence of a schedule.

        Raises:
            InvalidStateError: If the schedule is inactive
        """
        schedule = self._require_schedule(schedule_id)
        schedule.skip_next_occurrence()
        self._save(schedule)
        return schedule

    def advance(self, schedule_id: str) -> RecurringSchedule:
        """Mark the pending occurrence as generated and move to the next one.

        Raises:
            InvalidStateError: If the schedule is inactive
        """
        schedule = self._require_schedule(schedule_id)
        schedule.advance_to_next_occurrence()
        self._save(schedule)
        if not schedule.is_active:
            logger.info(f"{schedule.kind.capitalize()} {schedule.id} reached its end date")
        return schedule

    def get_occurrences(self, schedule_id: str, from_date: date, to_date: date) -> list[date]:
        """Raw occurrence dates of a schedule in ``[from_date, to_date]``, ignoring overrides."""
        _check_range(from_date, to_date)
        schedule = self._require_schedule(schedule_id)
        return list(schedule.get_occurrences_between(from_date, to_date))

    # Per-occurrence overrides
    def _require_occurrence(self, schedule: Schedule, instance_date: date) -> None:
        if instance_date not in schedule.get_occurrences_between(instance_date, instance_date):
            raise ValidationError(
                f"{instance_date.isoformat()} is not an occurrence of {schedule.kind} {schedule.id}"
            )

    def modify_instance(
        self,
        schedule_id: str,
        instance_date: date,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        new_date: Optional[date] = None,
    ) -> ScheduleOverride:
        """Change the amount, description and/or date of one occurrence.

        Args:
            schedule_id: Recurring transaction or transfer ID
            instance_date: Scheduled date of the occurrence
            amount: Replacement amount
            description: Replacement description
            new_date: Date the occurrence is actually expected

        Returns:
            The stored override

        Raises:
            NotFoundError: If the schedule doesn't exist
            ValidationError: If the date is not an occurrence or nothing changes
        """
        schedule = self._require_schedule(schedule_id)
        self._require_occurrence(schedule, instance_date)

        override = self.db.get_override(schedule_id, instance_date)
        if override is None:
            override = ScheduleOverride.create_modified(
                schedule_id=schedule_id,
                original_date=instance_date,
                modified_amount=amount,
                modified_description=description,
                modified_date=new_date,
            )
        else:
            override.update(
                modified_amount=amount,
                modified_description=description,
                modified_date=new_date,
            )
        self.db.save_override(override)
        logger.info(f"Modified {schedule.kind} {schedule_id} on {instance_date}")
        return override

    def skip_instance(self, schedule_id: str, instance_date: date) -> ScheduleOverride:
        """Cancel one occurrence.

        Raises:
            NotFoundError: If the schedule doesn't exist
            ValidationError: If the date is not an occurrence
        """
        schedule = self._require_schedule(schedule_id)
        self._require_occurrence(schedule, instance_date)

        override = self.db.get_override(schedule_id, instance_date)
        if override is None:
            override = ScheduleOverride.create_skipped(schedule_id, instance_date)
        else:
            override.skip()
        self.db.save_override(override)
        logger.info(f"Skipped {schedule.kind} {schedule_id} on {instance_date}")
        return override

    def restore_instance(self, schedule_id: str, instance_date: date) -> None:
        """Remove any override from one occurrence.

        Raises:
            NotFoundError: If the schedule doesn't exist or the occurrence has no override
        """
        self._require_schedule(schedule_id)
        override = self.db.get_override(schedule_id, instance_date)
        if override is None:
            raise NotFoundError(
                f"No override for schedule {schedule_id} on {instance_date.isoformat()}"
            )
        self.db.delete_override(override.id)

    # Projections
    def get_instances(
        self, schedule_id: str, from_date: date, to_date: date
    ) -> list[RecurringInstanceInfo]:
        """Instances of one recurring transaction, skipped ones flagged.

        Raises:
            NotFoundError: If the recurring transaction doesn't exist
        """
        _check_range(from_date, to_date)
        schedule = self.require_recurring_transaction(schedule_id)
        overrides = index_overrides(self.db.list_overrides([schedule_id], from_date, to_date))
        projected = project_transaction_instances(
            [schedule],
            overrides,
            from_date,
            to_date,
            account_names=self._account_names(),
            include_skipped=True,
        )
        return flatten_instances(projected)

    def get_projected_instances(
        self, from_date: date, to_date: date, account_id: Optional[str] = None
    ) -> list[RecurringInstanceInfo]:
        """Expected instances of all active recurring transactions, ordered by date.

        Skipped occurrences are omitted.
        """
        _check_range(from_date, to_date)
        schedules = self.db.list_recurring_transactions(active_only=True, account_id=account_id)
        overrides = index_overrides(
            self.db.list_overrides([s.id for s in schedules], from_date, to_date)
        )
        projected = project_transaction_instances(
            schedules, overrides, from_date, to_date, account_names=self._account_names()
        )
        return flatten_instances(projected)

    def get_instances_for_date(
        self, on_date: date, account_id: Optional[str] = None
    ) -> list[RecurringInstanceInfo]:
        """Instances of active recurring transactions due on one date.

        Skipped occurrences are kept and flagged ``is_skipped``.
        """
        schedules = self.db.list_recurring_transactions(active_only=True, account_id=account_id)
        overrides = index_overrides(
            self.db.list_overrides([s.id for s in schedules], on_date, on_date)
        )
        return project_instances_for_date(
            schedules, overrides, on_date, account_names=self._account_names()
        )

    def get_transfer_instances(
        self, transfer_id: str, from_date: date, to_date: date
    ) -> list[RecurringTransferInstanceInfo]:
        """Both sides of each occurrence of one transfer, skipped ones flagged.

        Raises:
            NotFoundError: If the recurring transfer doesn't exist
        """
        _check_range(from_date, to_date)
        transfer = self.require_recurring_transfer(transfer_id)
        overrides = index_overrides(self.db.list_overrides([transfer_id], from_date, to_date))
        projected = project_transfer_instances(
            [transfer],
            overrides,
            from_date,
            to_date,
            account_names=self._account_names(),
            include_skipped=True,
        )
        return flatten_instances(projected)

    def get_projected_transfer_instances(
        self, from_date: date, to_date: date, account_id: Optional[str] = None
    ) -> list[RecurringTransferInstanceInfo]:
        """Expected sides of all active transfers, ordered by date.

        With ``account_id`` only the side touching that account is returned.
        """
        _check_range(from_date, to_date)
        transfers = self.db.list_recurring_transfers(active_only=True)
        overrides = index_overrides(
            self.db.list_overrides([t.id for t in transfers], from_date, to_date)
        )
        projected = project_transfer_instances(
            transfers,
            overrides,
            from_date,
            to_date,
            account_names=self._account_names(),
            account_id=account_id,
        )
        return flatten_instances(projected)
