"""Recurring transfer commands.

Pausing, resuming, skipping and per-occurrence changes go through the
``recurring`` commands, which accept transfer IDs too.
"""

import click
from recurmatch.cli.commands.recurring import format_schedule_line
from recurmatch.cli.error_handling import handle_domain_error
from recurmatch.cli.options import build_pattern, pattern_options
from recurmatch.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_date_range,
    resolve_id_or_exit,
    short_id,
)
from recurmatch.domain.account import AccountService
from recurmatch.domain.entities import BudgetScope
from recurmatch.domain.recurring import RecurringService


def resolve_transfer_id(ctx, service: RecurringService, value: str) -> str:
    return resolve_id_or_exit(ctx, service.list_recurring_transfers(), value, "recurring transfer").id


@click.group()
def transfer_group():
    """Manage recurring transfers between accounts."""
    pass


@transfer_group.command("create")
@click.option("--from-account", "source", required=True, help="Account money leaves")
@click.option("--to-account", "destination", required=True, help="Account money arrives in")
@click.option("--description", required=True, help="Transfer description")
@click.option("--amount", required=True, help="Positive amount moved each time")
@pattern_options
@click.option("--start-date", default="today", show_default=True, help="First occurrence")
@click.option("--end-date", help="Last possible occurrence")
@click.option("--owner", help="Make the transfer personal to this user")
@click.pass_context
def create_transfer(
    ctx,
    source: str,
    destination: str,
    description: str,
    amount: str,
    frequency: str,
    interval: int,
    day_of_month: int | None,
    day_of_week: str | None,
    month_of_year: int | None,
    start_date: str,
    end_date: str | None,
    owner: str | None,
):
    """Create a recurring transfer.

    Examples:
        recurmatch transfer create --from-account Checking --to-account Savings \\
            --description "Monthly savings" --amount 500 --day-of-month 2
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    source_id = resolve_account_or_exit(ctx, account_service, source)
    destination_id = resolve_account_or_exit(ctx, account_service, destination)
    transfer_amount = parse_amount_or_exit(ctx, amount)
    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None

    try:
        pattern = build_pattern(frequency, interval, day_of_month, day_of_week, month_of_year, start)
        transfer = RecurringService(db).create_recurring_transfer(
            source_account_id=source_id,
            destination_account_id=destination_id,
            description=description,
            amount=transfer_amount,
            pattern=pattern,
            start_date=start,
            end_date=end,
            scope=BudgetScope.PERSONAL if owner else BudgetScope.SHARED,
            owner_user_id=owner,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created recurring transfer '{transfer.description}' (ID: {short_id(transfer.id)})")
    click.echo(f"Schedule: {transfer.pattern}, starting {transfer.start_date}")


@transfer_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include paused and ended transfers")
@click.pass_context
def list_transfers(ctx, show_all: bool):
    """List recurring transfers."""
    db = ctx.obj["db"]
    transfers = RecurringService(db).list_recurring_transfers(active_only=not show_all)
    if not transfers:
        click.echo("No recurring transfers found.")
        return

    names = AccountService(db).account_names()
    click.echo("\nRecurring transfers:")
    click.echo("-" * 110)
    for transfer in transfers:
        click.echo(format_schedule_line(transfer, names))


@transfer_group.command("occurrences")
@click.argument("transfer")
@click.option("--start-date", help="Start date (default: start of this month)")
@click.option("--end-date", help="End date (default: end of this month)")
@click.pass_context
def list_occurrences(ctx, transfer: str, start_date: str | None, end_date: str | None):
    """List raw occurrence dates of a transfer."""
    service = RecurringService(ctx.obj["db"])
    transfer_id = resolve_transfer_id(ctx, service, transfer)
    start, end = resolve_date_range(ctx, start_date, end_date)

    occurrences = service.get_occurrences(transfer_id, start, end)
    if not occurrences:
        click.echo("No occurrences in range.")
        return
    for occurrence in occurrences:
        click.echo(f"{occurrence.isoformat()}  {occurrence:%A}")


@transfer_group.command("instances")
@click.argument("transfer", required=False)
@click.option("--start-date", help="Start date (default: start of this month)")
@click.option("--end-date", help="End date (default: end of this month)")
@click.option("--account", help="Only the side touching this account")
@click.pass_context
def list_instances(ctx, transfer: str | None, start_date: str | None, end_date: str | None, account: str | None):
    """List both sides of expected transfer instances."""
    db = ctx.obj["db"]
    service = RecurringService(db)
    start, end = resolve_date_range(ctx, start_date, end_date)

    if transfer:
        instances = service.get_transfer_instances(resolve_transfer_id(ctx, service, transfer), start, end)
    else:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None
        instances = service.get_projected_transfer_instances(start, end, account_id=account_id)

    if not instances:
        click.echo("No instances in range.")
        return

    for instance in instances:
        flag = "SKIPPED" if instance.is_skipped else ("modified" if instance.is_modified else "")
        click.echo(
            f"{instance.instance_date.isoformat()}  {short_id(instance.schedule_id):8s}  "
            f"{instance.transfer_direction.value:11s}  {instance.description[:40]:40s}  "
            f"{instance.amount:>10.2f}  {flag}"
        )


def register_commands(cli):
    """Register transfer commands with main CLI."""
    cli.add_command(transfer_group, name="transfer")
