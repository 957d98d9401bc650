"""Imported transaction commands."""

import click
from recurmatch.cli.error_handling import handle_domain_error
from recurmatch.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    short_id,
)
from recurmatch.domain.account import AccountService
from recurmatch.domain.transaction import TransactionService


@click.group()
def transaction_group():
    """Record and view imported bank transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--date", "date_str", default="today", show_default=True, help="Transaction date")
@click.option("--amount", required=True, help="Signed amount (e.g., -45.99 for a payment)")
@click.option("--description", required=True, help="Description as shown by the bank")
@click.option("--category", help="Category name")
@click.pass_context
def add_transaction(ctx, account: str, date_str: str, amount: str, description: str, category: str | None):
    """Record a transaction reported by the bank.

    Examples:
        recurmatch transaction add --account Checking --date 2024-03-15 --amount -1500 --description "RENT PAYMENT"
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    txn_date = parse_date_or_exit(ctx, date_str)
    txn_amount = parse_amount_or_exit(ctx, amount)

    try:
        txn = TransactionService(db).create_transaction(
            account_id=account_id,
            date=txn_date,
            amount=txn_amount,
            description=description,
            category=category,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Added transaction {short_id(txn.id)}: {txn.date} {txn.amount:>10.2f} {txn.description}")


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--account", help="Account name or ID")
@click.option("--unlinked", is_flag=True, help="Only transactions not yet linked to a recurring instance")
@click.pass_context
def list_transactions(ctx, start_date: str | None, end_date: str | None, account: str | None, unlinked: bool):
    """View transactions with optional filters."""
    db = ctx.obj["db"]
    account_service = AccountService(db)

    start = parse_date_or_exit(ctx, start_date, "start date") if start_date else None
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None
    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None

    try:
        transactions = TransactionService(db).list_transactions(
            start_date=start, end_date=end, account_id=account_id
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if unlinked:
        transactions = [t for t in transactions if not t.is_from_recurring]

    if not transactions:
        click.echo("No transactions found.")
        return

    names = account_service.account_names()
    click.echo(f"\n{'ID':8s}  {'Date':10s}  {'Account':15s}  {'Amount':>10s}  {'Description':30s}  Linked")
    click.echo("-" * 90)
    for txn in transactions:
        linked = ""
        if txn.is_from_recurring:
            linked = f"{short_id(txn.recurring_transaction_id)} @ {txn.recurring_instance_date}"
        click.echo(
            f"{short_id(txn.id):8s}  {txn.date.isoformat():10s}  {names.get(txn.account_id, '')[:15]:15s}  "
            f"{txn.amount:>10.2f}  {txn.description[:30]:30s}  {linked}"
        )
    click.echo(f"\nTotal: {len(transactions)} transaction(s)")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
