"""Main CLI entry point."""

import logging

import click
from budgetbook.database.factories import create_sqlite_store
from budgetbook.domain.ledger import LedgerState

# Import and register all commands at module level
from budgetbook.cli.commands import (
    income,
    expense,
    template,
    goal,
    savings,
    month,
    stats,
    theme,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BUDGETBOOK_DB_PATH environment variable)",
    envvar="BUDGETBOOK_DB_PATH",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show informational log messages",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="BUDGETBOOK_LOG_LEVEL",
    help="Logging level (default WARNING, or INFO with --verbose)",
)
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool, log_level: str):
    """Budgetbook - monthly budget tracker.

    Record income, expenses and savings goals month by month, keep a
    savings pool across months, and review where the money went.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.INFO if verbose else getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Open the store only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        store = create_sqlite_store(database_path=db_path)
        store.connect()
        store.initialize_schema()
        ctx.call_on_close(store.disconnect)
        ctx.obj["store"] = store
        ctx.obj["ledger"] = LedgerState.load(store)


# Register all commands
income.register_commands(cli)
expense.register_commands(cli)
template.register_commands(cli)
goal.register_commands(cli)
savings.register_commands(cli)
month.register_commands(cli)
stats.register_commands(cli)
theme.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
