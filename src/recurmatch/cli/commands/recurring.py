"""Recurring transaction commands."""

from datetime import date

import click
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
from recurmatch.domain.schedules import RecurringSchedule, RecurringTransfer


def resolve_schedule_id(ctx, service: RecurringService, value: str) -> str:
    """Resolve a recurring transaction or transfer ID (or prefix)."""
    schedules = service.list_recurring_transactions() + service.list_recurring_transfers()
    return resolve_id_or_exit(ctx, schedules, value, "recurring schedule").id


def format_schedule_line(schedule: RecurringSchedule, account_names: dict[str, str]) -> str:
    """One-line summary used by the list commands."""
    if isinstance(schedule, RecurringTransfer):
        where = (
            f"{account_names.get(schedule.source_account_id, '?')} -> "
            f"{account_names.get(schedule.destination_account_id, '?')}"
        )
    else:
        where = account_names.get(schedule.account_id, "?")
    state = f"next {schedule.next_occurrence}" if schedule.is_active else "paused"
    return (
        f"{short_id(schedule.id):8s}  {schedule.description[:25]:25s}  {schedule.amount:>10.2f}  "
        f"{str(schedule.pattern):28s}  {where[:20]:20s}  {state}"
    )


def echo_schedule_state(schedule: RecurringSchedule) -> None:
    if schedule.is_active:
        click.echo(f"Next occurrence: {schedule.next_occurrence}")
    else:
        click.echo("Schedule is inactive.")


@click.group()
def recurring_group():
    """Manage recurring transactions and their occurrences."""
    pass


@recurring_group.command("create")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--description", required=True, help="Expected description")
@click.option("--amount", required=True, help="Signed amount (e.g., -1500.00 for rent)")
@pattern_options
@click.option("--start-date", default="today", show_default=True, help="First occurrence")
@click.option("--end-date", help="Last possible occurrence")
@click.option("--category", help="Category name")
@click.option("--owner", help="Make the schedule personal to this user")
@click.pass_context
def create_recurring(
    ctx,
    account: str,
    description: str,
    amount: str,
    frequency: str,
    interval: int,
    day_of_month: int | None,
    day_of_week: str | None,
    month_of_year: int | None,
    start_date: str,
    end_date: str | None,
    category: str | None,
    owner: str | None,
):
    """Create a recurring transaction.

    Day options default to the start date's day, weekday and month.

    Examples:
        recurmatch recurring create --account Checking --description "Rent" --amount -1500 --day-of-month 1
        recurmatch recurring create --account Checking --description "Paycheck" --amount 2500 \\
            --frequency biweekly --day-of-week friday --start-date 2024-01-05
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    schedule_amount = parse_amount_or_exit(ctx, amount)
    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None

    try:
        pattern = build_pattern(frequency, interval, day_of_month, day_of_week, month_of_year, start)
        schedule = RecurringService(db).create_recurring_transaction(
            account_id=account_id,
            description=description,
            amount=schedule_amount,
            pattern=pattern,
            start_date=start,
            end_date=end,
            category=category,
            scope=BudgetScope.PERSONAL if owner else BudgetScope.SHARED,
            owner_user_id=owner,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created recurring transaction '{schedule.description}' (ID: {short_id(schedule.id)})")
    click.echo(f"Schedule: {schedule.pattern}, starting {schedule.start_date}")


@recurring_group.command("list")
@click.option("--account", help="Account name or ID")
@click.option("--all", "show_all", is_flag=True, help="Include paused and ended schedules")
@click.pass_context
def list_recurring(ctx, account: str | None, show_all: bool):
    """List recurring transactions."""
    db = ctx.obj["db"]
    account_service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None

    schedules = RecurringService(db).list_recurring_transactions(
        active_only=not show_all, account_id=account_id
    )
    if not schedules:
        click.echo("No recurring transactions found.")
        return

    names = account_service.account_names()
    click.echo("\nRecurring transactions:")
    click.echo("-" * 110)
    for schedule in schedules:
        click.echo(format_schedule_line(schedule, names))


@recurring_group.command("show")
@click.argument("schedule")
@click.pass_context
def show_recurring(ctx, schedule: str):
    """Show details of a recurring transaction or transfer."""
    db = ctx.obj["db"]
    service = RecurringService(db)
    schedule_id = resolve_schedule_id(ctx, service, schedule)
    names = AccountService(db).account_names()

    item = service.get_recurring_transaction(schedule_id) or service.get_recurring_transfer(schedule_id)
    click.echo(f"ID:          {item.id}")
    click.echo(f"Kind:        {item.kind}")
    click.echo(f"Description: {item.description}")
    click.echo(f"Amount:      {item.amount:.2f}")
    if isinstance(item, RecurringTransfer):
        click.echo(f"From:        {names.get(item.source_account_id, item.source_account_id)}")
        click.echo(f"To:          {names.get(item.destination_account_id, item.destination_account_id)}")
    else:
        click.echo(f"Account:     {names.get(item.account_id, item.account_id)}")
        click.echo(f"Category:    {item.category or '-'}")
    click.echo(f"Schedule:    {item.pattern}")
    click.echo(f"Start date:  {item.start_date}")
    click.echo(f"End date:    {item.end_date or '-'}")
    click.echo(f"Active:      {'yes' if item.is_active else 'no'}")
    click.echo(f"Next:        {item.next_occurrence}")
    click.echo(f"Last done:   {item.last_generated_date or '-'}")
    click.echo(f"Scope:       {item.scope.value}" + (f" ({item.owner_user_id})" if item.owner_user_id else ""))


@recurring_group.command("occurrences")
@click.argument("schedule")
@click.option("--start-date", help="Start date (default: start of this month)")
@click.option("--end-date", help="End date (default: end of this month)")
@click.pass_context
def list_occurrences(ctx, schedule: str, start_date: str | None, end_date: str | None):
    """List raw occurrence dates of a schedule, ignoring per-date changes."""
    service = RecurringService(ctx.obj["db"])
    schedule_id = resolve_schedule_id(ctx, service, schedule)
    start, end = resolve_date_range(ctx, start_date, end_date)

    occurrences = service.get_occurrences(schedule_id, start, end)
    if not occurrences:
        click.echo("No occurrences in range.")
        return
    for occurrence in occurrences:
        click.echo(f"{occurrence.isoformat()}  {occurrence:%A}")


@recurring_group.command("pause")
@click.argument("schedule")
@click.pass_context
def pause_recurring(ctx, schedule: str):
    """Pause a recurring transaction or transfer."""
    service = RecurringService(ctx.obj["db"])
    item = service.pause(resolve_schedule_id(ctx, service, schedule))
    click.echo(f"Paused '{item.description}'")


@recurring_group.command("resume")
@click.argument("schedule")
@click.option("--from-date", help="Resume after this date (default: today)")
@click.pass_context
def resume_recurring(ctx, schedule: str, from_date: str | None):
    """Resume a paused recurring transaction or transfer."""
    service = RecurringService(ctx.obj["db"])
    schedule_id = resolve_schedule_id(ctx, service, schedule)
    resume_from = parse_date_or_exit(ctx, from_date, "from date") if from_date else date.today()

    item = service.resume(schedule_id, resume_from)
    click.echo(f"Resumed '{item.description}'")
    echo_schedule_state(item)


@recurring_group.command("skip")
@click.argument("schedule")
@click.pass_context
def skip_next(ctx, schedule: str):
    """Skip the next pending occurrence."""
    service = RecurringService(ctx.obj["db"])
    schedule_id = resolve_schedule_id(ctx, service, schedule)
    try:
        item = service.skip_next(schedule_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Skipped an occurrence of '{item.description}'")
    echo_schedule_state(item)


@recurring_group.command("advance")
@click.argument("schedule")
@click.pass_context
def advance(ctx, schedule: str):
    """Mark the next pending occurrence as done and move on."""
    service = RecurringService(ctx.obj["db"])
    schedule_id = resolve_schedule_id(ctx, service, schedule)
    try:
        item = service.advance(schedule_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded {item.last_generated_date} for '{item.description}'")
    echo_schedule_state(item)


@recurring_group.command("instances")
@click.argument("schedule", required=False)
@click.option("--start-date", help="Start date (default: start of this month)")
@click.option("--end-date", help="End date (default: end of this month)")
@click.option("--account", help="Only schedules on this account (when no SCHEDULE is given)")
@click.option("--on", "on_date", help="Only instances due on this date, skipped ones included")
@click.pass_context
def list_instances(
    ctx,
    schedule: str | None,
    start_date: str | None,
    end_date: str | None,
    account: str | None,
    on_date: str | None,
):
    """List expected instances with per-date changes applied.

    With SCHEDULE, shows that recurring transaction including skipped dates.
    Without it, shows every active recurring transaction; --on narrows that
    to a single day.
    """
    db = ctx.obj["db"]
    service = RecurringService(db)
    start, end = resolve_date_range(ctx, start_date, end_date)

    if schedule:
        schedule_id = resolve_schedule_id(ctx, service, schedule)
        try:
            instances = service.get_instances(schedule_id, start, end)
        except ValueError as e:
            handle_domain_error(ctx, e)
    elif on_date:
        day = parse_date_or_exit(ctx, on_date)
        account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None
        instances = service.get_instances_for_date(day, account_id=account_id)
    else:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None
        instances = service.get_projected_instances(start, end, account_id=account_id)

    if not instances:
        click.echo("No instances in range.")
        return

    for instance in instances:
        flag = "SKIPPED" if instance.is_skipped else ("modified" if instance.is_modified else "")
        click.echo(
            f"{instance.instance_date.isoformat()}  {short_id(instance.schedule_id):8s}  "
            f"{instance.description[:30]:30s}  {instance.amount:>10.2f}  "
            f"{instance.account_name[:15]:15s}  {flag}"
        )


@recurring_group.command("modify-instance")
@click.argument("schedule")
@click.argument("instance_date", metavar="DATE")
@click.option("--amount", help="Amount for this occurrence only")
@click.option("--description", help="Description for this occurrence only")
@click.option("--date", "new_date", help="Date this occurrence is actually expected")
@click.pass_context
def modify_instance(
    ctx, schedule: str, instance_date: str, amount: str | None, description: str | None, new_date: str | None
):
    """Change a single occurrence of a schedule.

    Examples:
        recurmatch recurring modify-instance 3f2a91c0 2024-03-01 --amount -1550
    """
    service = RecurringService(ctx.obj["db"])
    schedule_id = resolve_schedule_id(ctx, service, schedule)
    original = parse_date_or_exit(ctx, instance_date)
    modified_amount = parse_amount_or_exit(ctx, amount) if amount is not None else None
    modified_date = parse_date_or_exit(ctx, new_date, "new date") if new_date else None

    try:
        service.modify_instance(
            schedule_id,
            original,
            amount=modified_amount,
            description=description,
            new_date=modified_date,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Modified occurrence on {original}")


@recurring_group.command("skip-instance")
@click.argument("schedule")
@click.argument("instance_date", metavar="DATE")
@click.pass_context
def skip_instance(ctx, schedule: str, instance_date: str):
    """Cancel a single occurrence of a schedule."""
    service = RecurringService(ctx.obj["db"])
    schedule_id = resolve_schedule_id(ctx, service, schedule)
    original = parse_date_or_exit(ctx, instance_date)

    try:
        service.skip_instance(schedule_id, original)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Skipped occurrence on {original}")


@recurring_group.command("restore-instance")
@click.argument("schedule")
@click.argument("instance_date", metavar="DATE")
@click.pass_context
def restore_instance(ctx, schedule: str, instance_date: str):
    """Undo changes to (or the skip of) a single occurrence."""
    service = RecurringService(ctx.obj["db"])
    schedule_id = resolve_schedule_id(ctx, service, schedule)
    original = parse_date_or_exit(ctx, instance_date)

    try:
        service.restore_instance(schedule_id, original)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Restored occurrence on {original}")


def register_commands(cli):
    """Register recurring commands with main CLI."""
    cli.add_command(recurring_group, name="recurring")
