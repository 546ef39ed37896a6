"""CLI error handling helpers."""

from datetime import date

import click

from budgetbook.domain.errors import DomainError
from budgetbook.utils.amount_parser import parse_amount
from budgetbook.utils.date_parser import parse_date


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str) -> float:
    """Parse an amount argument, or exit with a CLI error."""
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def parse_date_or_exit(ctx: click.Context, value: str, today: date) -> date:
    """Parse a date option relative to the ledger's today, or exit with a CLI error."""
    try:
        return parse_date(value, today=today)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)
