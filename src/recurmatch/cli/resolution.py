"""CLI helpers for turning user input into domain values, or exiting with an error.

This keeps error messaging and exit behavior consistent across commands.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import click

from recurmatch.cli.error_handling import handle_domain_error
from recurmatch.domain.account import AccountService
from recurmatch.utils.amount_parser import parse_amount
from recurmatch.utils.date_parser import get_date_range, parse_date
from recurmatch.utils.id_resolver import resolve_account, resolve_id


def short_id(value: str) -> str:
    """First eight characters of an ID, as shown in listings."""
    return value[:8]


def resolve_account_or_exit(ctx: click.Context, account_service: AccountService, account: str) -> str:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def resolve_id_or_exit(ctx: click.Context, candidates, value: str, label: str):
    """Resolve a full ID or unique prefix among candidates, or exit with a CLI error."""
    try:
        return resolve_id(candidates, value, label)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def parse_date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    """Parse a date option, or exit with a CLI error."""
    try:
        return parse_date(value)
    except ValueError as exc:
        click.echo(f"Error: Invalid {label}: {exc}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str) -> Decimal:
    """Parse an amount option, or exit with a CLI error."""
    try:
        return parse_amount(value)
    except ValueError as exc:
        click.echo(f"Error: Invalid amount format: {exc}", err=True)
        ctx.exit(1)


def resolve_date_range(
    ctx: click.Context,
    start_date: str | None,
    end_date: str | None,
    default_period: str = "this-month",
) -> tuple[date, date]:
    """Resolve --start-date/--end-date, filling gaps from a default period."""
    default_start, default_end = get_date_range(default_period)
    start = parse_date_or_exit(ctx, start_date, "start date") if start_date else default_start
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else default_end

    if start > end:
        click.echo("Error: Start date must be on or before end date.", err=True)
        ctx.exit(1)
    return start, end
