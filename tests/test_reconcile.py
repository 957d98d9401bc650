"""Tests for reconcile commands."""

from datetime import date
from decimal import Decimal
from recurmatch.cli.main import cli

JANUARY = ["--start-date", "2026-01-01", "--end-date", "2026-01-31"]


def invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def add_txn(transaction_service, account, on, amount, description):
    return transaction_service.create_transaction(account.id, on, Decimal(amount), description)


def test_find_auto_matches_exact(cli_runner, temp_db, transaction_service, sample_account, netflix_schedule):
    """Test that an exact transaction is matched automatically."""
    txn = add_txn(transaction_service, sample_account, date(2026, 1, 15), "-15.99", "NETFLIX")

    result = invoke(cli_runner, temp_db, "reconcile", "find", *JANUARY)

    assert result.exit_code == 0
    assert "Found 1 match(es), 1 auto-matched." in result.output
    assert "auto_matched" in result.output
    assert transaction_service.get_transaction(txn.id).recurring_transaction_id == netflix_schedule.id


def test_find_nothing(cli_runner, temp_db, transaction_service, sample_account, netflix_schedule):
    """Test the message when no transaction matches."""
    add_txn(transaction_service, sample_account, date(2026, 1, 20), "-80.00", "GROCERY OUTLET")

    result = invoke(cli_runner, temp_db, "reconcile", "find", *JANUARY)

    assert result.exit_code == 0
    assert "No new matches found for 1 transaction(s)." in result.output


def test_find_skips_linked_transactions(cli_runner, temp_db, transaction_service, sample_account, netflix_schedule):
    """Test that already linked transactions are not reconsidered by default."""
    add_txn(transaction_service, sample_account, date(2026, 1, 15), "-15.99", "NETFLIX")
    invoke(cli_runner, temp_db, "reconcile", "find", *JANUARY)

    result = invoke(cli_runner, temp_db, "reconcile", "find", *JANUARY)

    assert result.exit_code == 0
    assert "No new matches found for 0 transaction(s)." in result.output


def test_find_with_run_tolerances(cli_runner, temp_db, transaction_service, sample_account, netflix_schedule):
    """Test that tolerance options apply to one run only."""
    txn = add_txn(transaction_service, sample_account, date(2026, 1, 17), "-15.99", "Netflix.com")

    result = invoke(cli_runner, temp_db, "reconcile", "find", "--transaction", txn.id[:8], "--date-days", "1", *JANUARY)
    assert "No new matches found" in result.output

    result = invoke(cli_runner, temp_db, "reconcile", "find", "--transaction", txn.id[:8], *JANUARY)
    assert "Found 1 match(es), 0 auto-matched." in result.output


def test_pending_accept_reject(cli_runner, temp_db, transaction_service, reconciliation_service, sample_account, netflix_schedule, rent_schedule):
    """Test reviewing suggestions."""
    netflix = add_txn(transaction_service, sample_account, date(2026, 1, 17), "-15.99", "Netflix.com")
    rent = add_txn(transaction_service, sample_account, date(2026, 1, 3), "-1500.00", "Rent Pmt")
    invoke(cli_runner, temp_db, "reconcile", "find", *JANUARY)

    pending = reconciliation_service.get_pending_matches()
    assert len(pending) == 2
    by_txn = {m.imported_transaction_id: m for m in pending}

    result = invoke(cli_runner, temp_db, "reconcile", "pending")
    assert result.exit_code == 0
    assert "Netflix" in result.output
    assert "Rent Payment" in result.output

    result = invoke(cli_runner, temp_db, "reconcile", "accept", by_txn[netflix.id].id[:8])
    assert result.exit_code == 0
    assert "Accepted 1 match(es)." in result.output

    result = invoke(cli_runner, temp_db, "reconcile", "reject", by_txn[rent.id].id[:8])
    assert result.exit_code == 0
    assert "Rejected match" in result.output

    result = invoke(cli_runner, temp_db, "reconcile", "pending")
    assert "No pending matches." in result.output


def test_accept_resolved_match_fails(cli_runner, temp_db, transaction_service, reconciliation_service, sample_account, netflix_schedule):
    """Test that a resolved match cannot be accepted again."""
    add_txn(transaction_service, sample_account, date(2026, 1, 15), "-15.99", "NETFLIX")
    invoke(cli_runner, temp_db, "reconcile", "find", *JANUARY)
    match = reconciliation_service.get_matches_for_schedule(netflix_schedule.id)[0]

    result = invoke(cli_runner, temp_db, "reconcile", "accept", match.id)

    assert result.exit_code == 1
    assert "already resolved" in result.output


def test_link_manual(cli_runner, temp_db, transaction_service, sample_account, rent_schedule):
    """Test linking a transaction to an instance by hand."""
    txn = add_txn(transaction_service, sample_account, date(2026, 1, 5), "-1400.00", "ZELLE LANDLORD")

    result = invoke(cli_runner, temp_db, "reconcile", "link", txn.id[:8], rent_schedule.id[:8], "2026-01-01")

    assert result.exit_code == 0
    assert "Linked transaction" in result.output
    assert "accepted" in result.output
    assert transaction_service.get_transaction(txn.id).recurring_instance_date == date(2026, 1, 1)


def test_status(cli_runner, temp_db, transaction_service, sample_account, netflix_schedule, rent_schedule):
    """Test the monthly status report."""
    add_txn(transaction_service, sample_account, date(2026, 1, 15), "-15.99", "NETFLIX")
    invoke(cli_runner, temp_db, "reconcile", "find", *JANUARY)

    result = invoke(cli_runner, temp_db, "reconcile", "status", "--month", "2026-01")

    assert result.exit_code == 0
    assert "Reconciliation status for 2026-01" in result.output
    assert "MATCHED" in result.output
    assert "MISSING" in result.output
    assert "2 expected: 1 matched, 0 pending, 1 missing" in result.output


def test_status_invalid_month(cli_runner, temp_db):
    """Test that an invalid month is reported."""
    result = invoke(cli_runner, temp_db, "reconcile", "status", "--month", "2026-13")

    assert result.exit_code == 1
    assert "Invalid month" in result.output


def test_tolerances_show_and_update(cli_runner, temp_db, reconciliation_service):
    """Test showing and updating persisted tolerances."""
    result = invoke(cli_runner, temp_db, "reconcile", "tolerances")
    assert result.exit_code == 0
    assert "+/- 7 day(s)" in result.output
    assert "Auto-match threshold:  0.85" in result.output

    result = invoke(cli_runner, temp_db, "reconcile", "tolerances", "--date-days", "3", "--auto-match", "0.9")
    assert result.exit_code == 0
    assert "Updated matching tolerances." in result.output
    assert "+/- 3 day(s)" in result.output

    tolerances = reconciliation_service.get_tolerances()
    assert tolerances.date_tolerance_days == 3
    assert tolerances.auto_match_threshold == Decimal("0.9")


def test_tolerances_invalid(cli_runner, temp_db):
    """Test that out-of-range tolerances are rejected."""
    result = invoke(cli_runner, temp_db, "reconcile", "tolerances", "--similarity", "1.5")

    assert result.exit_code == 1
    assert "between 0 and 1" in result.output


def test_debug_logs_matching_decisions(cli_runner, temp_db, transaction_service, sample_account, netflix_schedule):
    """Test that --debug logs rejected candidates."""
    add_txn(transaction_service, sample_account, date(2026, 1, 20), "-80.00", "GROCERY OUTLET")

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--debug", "reconcile", "find", *JANUARY])

    assert result.exit_code == 0
    assert "DEBUG recurmatch.domain.matcher" in result.output
    assert "amount -80.00 vs expected -15.99" in result.output
