"""Reconciliation commands."""

import click
from recurmatch.cli.commands.recurring import resolve_schedule_id
from recurmatch.cli.error_handling import handle_domain_error
from recurmatch.cli.options import tolerance_options
from recurmatch.cli.resolution import (
    parse_date_or_exit,
    resolve_date_range,
    resolve_id_or_exit,
    short_id,
)
from recurmatch.domain.entities import InstanceStatus
from recurmatch.domain.matches import ReconciliationMatch
from recurmatch.domain.reconciliation import ReconciliationService
from recurmatch.domain.recurring import RecurringService
from recurmatch.domain.tolerances import MatchingTolerances
from recurmatch.domain.transaction import TransactionService
from recurmatch.utils.date_parser import parse_month


def _tolerance_changes(date_days, amount_percent, amount_absolute, similarity, auto_match) -> dict:
    return {
        "date_tolerance_days": date_days,
        "amount_tolerance_percent": amount_percent,
        "amount_tolerance_absolute": amount_absolute,
        "description_similarity_threshold": similarity,
        "auto_match_threshold": auto_match,
    }


def _echo_tolerances(tolerances: MatchingTolerances) -> None:
    click.echo(f"Date tolerance:        +/- {tolerances.date_tolerance_days} day(s)")
    click.echo(f"Amount tolerance:      {tolerances.amount_tolerance_percent * 100:.1f}% "
               f"or {tolerances.amount_tolerance_absolute:.2f}")
    click.echo(f"Description threshold: {tolerances.description_similarity_threshold}")
    click.echo(f"Auto-match threshold:  {tolerances.auto_match_threshold}")


def _echo_match(match: ReconciliationMatch, descriptions: dict[str, str]) -> None:
    click.echo(
        f"{short_id(match.id):8s}  txn {short_id(match.imported_transaction_id):8s}  "
        f"{descriptions.get(match.schedule_id, short_id(match.schedule_id))[:25]:25s}  "
        f"{match.instance_date.isoformat()}  {match.confidence_score:.2f} {match.confidence_level.value:6s}  "
        f"var {match.amount_variance:>8.2f}  {match.date_offset_days:+d}d  {match.status.value}"
    )


def _schedule_descriptions(db) -> dict[str, str]:
    return {s.id: s.description for s in RecurringService(db).list_recurring_transactions()}


def _resolve_match_id(ctx, service: ReconciliationService, value: str) -> str:
    # Prefixes resolve among pending matches only
    if service.db.get_match(value) is not None:
        return value
    pending = service.get_pending_matches()
    return resolve_id_or_exit(ctx, pending, value, "match").id


@click.group()
def reconcile_group():
    """Match imported transactions to recurring instances."""
    pass


@reconcile_group.command("find")
@click.option("--transaction", "transaction_ids", multiple=True, help="Transaction ID (repeatable)")
@click.option("--start-date", help="Start of the range to project (default: start of this month)")
@click.option("--end-date", help="End of the range to project (default: end of this month)")
@tolerance_options
@click.pass_context
def find_matches(
    ctx,
    transaction_ids: tuple[str, ...],
    start_date: str | None,
    end_date: str | None,
    date_days,
    amount_percent,
    amount_absolute,
    similarity,
    auto_match,
):
    """Suggest matches for transactions.

    Without --transaction, every unlinked transaction dated within the range
    is considered. Tolerance options apply to this run only.
    """
    db = ctx.obj["db"]
    service = ReconciliationService(db)
    transaction_service = TransactionService(db)
    start, end = resolve_date_range(ctx, start_date, end_date)

    if transaction_ids:
        all_transactions = transaction_service.list_transactions()
        ids = [resolve_id_or_exit(ctx, all_transactions, t, "transaction").id for t in transaction_ids]
    else:
        ids = [
            t.id
            for t in transaction_service.list_transactions(start_date=start, end_date=end)
            if not t.is_from_recurring
        ]

    try:
        tolerances = service.get_tolerances().with_changes(
            **_tolerance_changes(date_days, amount_percent, amount_absolute, similarity, auto_match)
        )
        result = service.find_matches(ids, start, end, tolerances)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if result.total_matches_found == 0:
        click.echo(f"No new matches found for {len(ids)} transaction(s).")
        return

    descriptions = _schedule_descriptions(db)
    for matches in result.matches_by_transaction.values():
        for match in matches:
            _echo_match(match, descriptions)
    click.echo(
        f"\nFound {result.total_matches_found} match(es), "
        f"{result.auto_matched_count} auto-matched."
    )


@reconcile_group.command("pending")
@click.pass_context
def list_pending(ctx):
    """List suggested matches awaiting review."""
    db = ctx.obj["db"]
    matches = ReconciliationService(db).get_pending_matches()
    if not matches:
        click.echo("No pending matches.")
        return

    descriptions = _schedule_descriptions(db)
    for match in matches:
        _echo_match(match, descriptions)


@reconcile_group.command("accept")
@click.argument("match_ids", nargs=-1, required=True, metavar="MATCH_ID...")
@click.pass_context
def accept_matches(ctx, match_ids: tuple[str, ...]):
    """Accept one or more suggested matches."""
    service = ReconciliationService(ctx.obj["db"])
    resolved = [_resolve_match_id(ctx, service, value) for value in match_ids]

    try:
        accepted = service.bulk_accept(resolved)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Accepted {len(accepted)} match(es).")


@reconcile_group.command("reject")
@click.argument("match_id")
@click.pass_context
def reject_match(ctx, match_id: str):
    """Reject a suggested match."""
    service = ReconciliationService(ctx.obj["db"])
    resolved = _resolve_match_id(ctx, service, match_id)

    try:
        match = service.reject_match(resolved)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Rejected match {short_id(match.id)}.")


@reconcile_group.command("link")
@click.argument("transaction")
@click.argument("schedule")
@click.argument("instance_date", metavar="DATE")
@click.pass_context
def link_transaction(ctx, transaction: str, schedule: str, instance_date: str):
    """Match a transaction to a recurring instance by hand."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)
    txn = resolve_id_or_exit(ctx, TransactionService(db).list_transactions(), transaction, "transaction")
    schedule_id = resolve_schedule_id(ctx, RecurringService(db), schedule)
    on_date = parse_date_or_exit(ctx, instance_date)

    try:
        match = service.create_manual_match(txn.id, schedule_id, on_date)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Linked transaction {short_id(txn.id)} to {on_date} (match {short_id(match.id)}, {match.status.value}).")


@reconcile_group.command("status")
@click.option("--month", "month_str", default="this month", show_default=True, help="Month, e.g. 2024-03")
@click.pass_context
def show_status(ctx, month_str: str):
    """Show which expected instances of a month were matched."""
    try:
        year, month = parse_month(month_str)
    except ValueError as e:
        handle_domain_error(ctx, e)

    status = ReconciliationService(ctx.obj["db"]).get_reconciliation_status(year, month)
    click.echo(f"\nReconciliation status for {year}-{month:02d}")
    click.echo("-" * 80)
    if not status.instances:
        click.echo("No expected instances.")
        return

    labels = {
        InstanceStatus.MATCHED: "MATCHED",
        InstanceStatus.PENDING: "PENDING",
        InstanceStatus.MISSING: "MISSING",
    }
    for item in status.instances:
        line = (
            f"{item.instance_date.isoformat()}  {item.description[:30]:30s}  "
            f"{item.expected_amount:>10.2f}  {labels[item.status]:8s}"
        )
        if item.actual_amount is not None:
            line += f"  actual {item.actual_amount:.2f} (var {item.amount_variance:.2f})"
        click.echo(line)

    click.echo(
        f"\n{status.total_expected} expected: {status.matched_count} matched, "
        f"{status.pending_count} pending, {status.missing_count} missing"
    )


@reconcile_group.command("tolerances")
@tolerance_options
@click.pass_context
def tolerances(ctx, date_days, amount_percent, amount_absolute, similarity, auto_match):
    """Show matching tolerances, or update them when options are given."""
    service = ReconciliationService(ctx.obj["db"])
    changes = _tolerance_changes(date_days, amount_percent, amount_absolute, similarity, auto_match)

    if any(value is not None for value in changes.values()):
        try:
            service.update_tolerances(service.get_tolerances().with_changes(**changes))
        except ValueError as e:
            handle_domain_error(ctx, e)
        click.echo("Updated matching tolerances.")

    _echo_tolerances(service.get_tolerances())


def register_commands(cli):
    """Register reconcile commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
