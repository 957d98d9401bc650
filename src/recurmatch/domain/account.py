"""Account domain service."""

import uuid
from datetime import datetime, UTC
from typing import Optional
from recurmatch.database.base import Database
from recurmatch.domain.entities import Account as AccountEntity
from recurmatch.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_account_name,
)


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, name: str, bank_name: str) -> AccountEntity:
        """Create a new account.

        Args:
            name: Account name
            bank_name: Bank name

        Returns:
            Created account

        Raises:
            ValidationError: If the name is blank
            ConflictError: If account name already exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required.")

        for acc in self.db.list_accounts():
            if acc.name == name:
                raise ConflictError(duplicate_account_name(name))

        account = AccountEntity(
            id=str(uuid.uuid4()),
            name=name,
            bank_name=(bank_name or "").strip(),
            created_at=datetime.now(UTC),
        )
        self.db.add_account(account)
        return account

    def get_account(self, account_id: str) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: str) -> AccountEntity:
        """Get account by ID, raising NotFoundError if missing."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts.

        Returns:
            List of account entities
        """
        return self.db.list_accounts()

    def account_names(self) -> dict[str, str]:
        """Map account IDs to names, for labelling projected instances."""
        return {acc.id: acc.name for acc in self.db.list_accounts()}
