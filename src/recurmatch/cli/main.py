"""Main CLI entry point."""

import logging

import click
from recurmatch.database.factories import DB_PATH_ENV_VAR, create_sqlite_database

# Import and register all commands at module level
from recurmatch.cli.commands import (
    account,
    transaction,
    recurring,
    transfer,
    reconcile,
)


class ClickEchoHandler(logging.Handler):
    """Log handler that writes through click.echo to whatever stderr is current."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(debug: bool) -> None:
    """Send recurmatch log records to stderr; DEBUG and up when debugging."""
    logger = logging.getLogger("recurmatch")
    if not any(isinstance(h, ClickEchoHandler) for h in logger.handlers):
        handler = ClickEchoHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV_VAR} environment variable)",
    envvar=DB_PATH_ENV_VAR,
)
@click.option("--debug", is_flag=True, help="Log matching decisions and other details to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, debug: bool):
    """Recurmatch - recurring transaction projection and reconciliation.

    Define recurring bills, income and transfers, record the transactions
    your bank reports, and match the two.
    """
    ctx.ensure_object(dict)
    setup_logging(debug)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
recurring.register_commands(cli)
transfer.register_commands(cli)
reconcile.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
