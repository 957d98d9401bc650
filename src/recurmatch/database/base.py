"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from datetime import date

# Import domain modules directly to avoid circular import through domain/__init__.py
from recurmatch.domain.entities import Account, Transaction
from recurmatch.domain.matches import ReconciliationMatch
from recurmatch.domain.schedules import RecurringTransaction, RecurringTransfer, ScheduleOverride
from recurmatch.domain.tolerances import MatchingTolerances


class Database(ABC):
    """Abstract database interface for recurmatch."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def add_account(self, account: Account) -> None:
        """Persist a new account."""
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts, ordered by name."""
        pass

    # Imported transaction operations
    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> None:
        """Persist a new imported transaction."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions ordered by date, optionally filtered."""
        pass

    @abstractmethod
    def link_transaction_to_instance(
        self, transaction_id: str, schedule_id: str, instance_date: date
    ) -> None:
        """Record which recurring instance a transaction realises."""
        pass

    # Recurring transaction operations
    @abstractmethod
    def save_recurring_transaction(self, schedule: RecurringTransaction) -> None:
        """Insert or update a recurring transaction."""
        pass

    @abstractmethod
    def get_recurring_transaction(self, schedule_id: str) -> Optional[RecurringTransaction]:
        """Get recurring transaction by ID."""
        pass

    @abstractmethod
    def list_recurring_transactions(
        self, active_only: bool = False, account_id: Optional[str] = None
    ) -> list[RecurringTransaction]:
        """List recurring transactions ordered by creation time."""
        pass

    # Recurring transfer operations
    @abstractmethod
    def save_recurring_transfer(self, transfer: RecurringTransfer) -> None:
        """Insert or update a recurring transfer."""
        pass

    @abstractmethod
    def get_recurring_transfer(self, transfer_id: str) -> Optional[RecurringTransfer]:
        """Get recurring transfer by ID."""
        pass

    @abstractmethod
    def list_recurring_transfers(self, active_only: bool = False) -> list[RecurringTransfer]:
        """List recurring transfers ordered by creation time."""
        pass

    # Override operations
    @abstractmethod
    def save_override(self, override: ScheduleOverride) -> None:
        """Insert or update a schedule override."""
        pass

    @abstractmethod
    def get_override(self, schedule_id: str, original_date: date) -> Optional[ScheduleOverride]:
        """Get the override for one occurrence, if any."""
        pass

    @abstractmethod
    def list_overrides(
        self,
        schedule_ids: Optional[Iterable[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ScheduleOverride]:
        """List overrides, optionally restricted to schedules and a date range."""
        pass

    @abstractmethod
    def delete_override(self, override_id: str) -> None:
        """Delete an override."""
        pass

    # Reconciliation match operations
    @abstractmethod
    def add_match(self, match: ReconciliationMatch) -> None:
        """Persist a new match.

        Raises:
            ConflictError: If a match already exists for the same transaction,
                schedule and instance date
        """
        pass

    @abstractmethod
    def save_match(self, match: ReconciliationMatch) -> None:
        """Update an existing match."""
        pass

    @abstractmethod
    def get_match(self, match_id: str) -> Optional[ReconciliationMatch]:
        """Get match by ID."""
        pass

    @abstractmethod
    def match_exists(self, transaction_id: str, schedule_id: str, instance_date: date) -> bool:
        """Check whether a match already covers this transaction/instance pair."""
        pass

    @abstractmethod
    def find_match(
        self, transaction_id: str, schedule_id: str, instance_date: date
    ) -> Optional[ReconciliationMatch]:
        """Get the match for a transaction/instance pair, if any."""
        pass

    @abstractmethod
    def list_pending_matches(self) -> list[ReconciliationMatch]:
        """List suggested matches, best confidence first."""
        pass

    @abstractmethod
    def list_matches_by_transaction(self, transaction_id: str) -> list[ReconciliationMatch]:
        """List matches for one imported transaction, best confidence first."""
        pass

    @abstractmethod
    def list_matches_by_schedule(
        self,
        schedule_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ReconciliationMatch]:
        """List matches for one schedule, ordered by instance date."""
        pass

    @abstractmethod
    def list_matches_by_period(self, year: int, month: int) -> list[ReconciliationMatch]:
        """List matches whose instance date falls in the given month."""
        pass

    # Settings
    @abstractmethod
    def get_matching_tolerances(self) -> Optional[MatchingTolerances]:
        """Get persisted matching tolerances, or None if never saved."""
        pass

    @abstractmethod
    def save_matching_tolerances(self, tolerances: MatchingTolerances) -> None:
        """Persist matching tolerances."""
        pass
