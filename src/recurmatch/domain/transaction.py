"""Imported transaction domain service."""

import uuid
from typing import Optional
from datetime import date, datetime, UTC
from decimal import Decimal
from recurmatch.database.base import Database
from recurmatch.domain.entities import Transaction as TransactionEntity
from recurmatch.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    transaction_not_found,
)


class TransactionService:
    """Service for recording and querying imported bank transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_transaction(
        self,
        account_id: str,
        date: date,
        amount: Decimal,
        description: str,
        category: Optional[str] = None,
    ) -> TransactionEntity:
        """Record an imported transaction.

        Args:
            account_id: Account ID
            date: Transaction date
            amount: Signed transaction amount (negative for outflows)
            description: Bank description
            category: Optional category name

        Returns:
            Created transaction

        Raises:
            NotFoundError: If account doesn't exist
            ValidationError: If the description is blank
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        description = (description or "").strip()
        if not description:
            raise ValidationError("Description is required.")

        transaction = TransactionEntity(
            id=str(uuid.uuid4()),
            account_id=account_id,
            date=date,
            amount=Decimal(amount),
            description=description,
            category=category,
            imported_at=datetime.now(UTC),
        )
        self.db.add_transaction(transaction)
        return transaction

    def get_transaction(self, transaction_id: str) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def require_transaction(self, transaction_id: str) -> TransactionEntity:
        """Get transaction by ID, raising NotFoundError if missing."""
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[str] = None,
    ) -> list[TransactionEntity]:
        """List transactions with optional date range and account filters.

        Raises:
            ValidationError: If start_date is after end_date
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError("Start date must be on or before end date.")
        return self.db.list_transactions(
            start_date=start_date, end_date=end_date, account_id=account_id
        )

    def link_to_instance(self, transaction_id: str, schedule_id: str, instance_date: date) -> None:
        """Mark a transaction as the realisation of a recurring instance.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        self.require_transaction(transaction_id)
        self.db.link_transaction_to_instance(transaction_id, schedule_id, instance_date)
