"""Shared pytest fixtures for recurmatch tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from recurmatch.database.factories import create_sqlite_database
from recurmatch.domain.account import AccountService
from recurmatch.domain.reconciliation import ReconciliationService
from recurmatch.domain.recurrence import RecurrencePattern
from recurmatch.domain.recurring import RecurringService
from recurmatch.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that drive the CLI
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def recurring_service(temp_db):
    """Create a RecurringService with a temporary database."""
    return RecurringService(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def sample_account(account_service):
    """Create a sample account for testing."""
    return account_service.create_account(name="Test Account", bank_name="Test Bank")


@pytest.fixture
def savings_account(account_service):
    """Create a second account, for transfers."""
    return account_service.create_account(name="Savings", bank_name="Test Bank")


@pytest.fixture
def netflix_schedule(recurring_service, sample_account):
    """Monthly streaming subscription on the 15th, starting January 2026."""
    return recurring_service.create_recurring_transaction(
        account_id=sample_account.id,
        description="Netflix",
        amount=Decimal("-15.99"),
        pattern=RecurrencePattern.monthly(1, 15),
        start_date=date(2026, 1, 15),
        category="Entertainment",
    )


@pytest.fixture
def rent_schedule(recurring_service, sample_account):
    """Monthly rent on the 1st, starting January 2026."""
    return recurring_service.create_recurring_transaction(
        account_id=sample_account.id,
        description="Rent Payment",
        amount=Decimal("-1500.00"),
        pattern=RecurrencePattern.monthly(1, 1),
        start_date=date(2026, 1, 1),
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
