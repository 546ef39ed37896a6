"""Month commands: inspect history and roll over to a new month."""

import click
from budgetbook.cli.error_handling import handle_domain_error
from budgetbook.domain.errors import DomainError
from budgetbook.domain.metrics import leftover, total_expenses, total_goal_contributions
from budgetbook.utils.amount_parser import format_amount
from budgetbook.utils.month import month_label


@click.group()
def month_group():
    """Inspect months and close the active month."""
    pass


@month_group.command("show")
@click.argument("key", required=False, metavar="[YYYY-MM]")
@click.pass_context
def show_month(ctx, key: str | None):
    """Show income, totals and leftover for a month (default: active month)."""
    ledger = ctx.obj["ledger"]
    try:
        month = ledger.get_month(key) if key else ledger.active_month
    except DomainError as e:
        handle_domain_error(ctx, e)

    status = "open" if month.is_open else "closed"
    click.echo(f"\n{month_label(month.key)} ({status})")
    click.echo("-" * 40)
    click.echo(f"Income:             {format_amount(month.income):>16s}")
    click.echo(f"Expenses:           {format_amount(total_expenses(month)):>16s}")
    click.echo(f"Goal contributions: {format_amount(total_goal_contributions(month)):>16s}")
    click.echo(f"Leftover:           {format_amount(leftover(month)):>16s}")
    if month.closing_leftover is not None:
        click.echo(f"Closed with:        {format_amount(month.closing_leftover):>16s}")


@month_group.command("list")
@click.pass_context
def list_months(ctx):
    """List all months, newest first."""
    ledger = ctx.obj["ledger"]
    click.echo("\nMonths:")
    click.echo("-" * 72)
    for key in sorted(ledger.months, reverse=True):
        month = ledger.months[key]
        marker = "*" if key == ledger.current_month else " "
        closed = (
            f" | closed with {format_amount(month.closing_leftover)}"
            if month.closing_leftover is not None
            else ""
        )
        click.echo(
            f"{marker} {key} | income {format_amount(month.income):>12s} | "
            f"spent {format_amount(total_expenses(month)):>12s} | "
            f"leftover {format_amount(leftover(month)):>12s}{closed}"
        )


@month_group.command("close")
@click.option(
    "--carryover/--no-carryover",
    default=True,
    show_default=True,
    help="Move a positive leftover into the savings pool",
)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def close_month(ctx, carryover: bool, yes: bool):
    """Close the active month and start a new one.

    Closed months can no longer be changed. Goals and templates carry over
    unchanged.
    """
    ledger = ctx.obj["ledger"]
    closing_key = ledger.current_month
    projected = ledger.projected_closing_leftover()

    if not yes and not click.confirm(
        f"Close {month_label(closing_key)} with leftover {format_amount(projected)}?"
    ):
        click.echo("Month not closed.")
        return

    opened = ledger.close_month_and_advance(carryover_leftover_to_savings=carryover)
    remaining = ledger.get_month(closing_key).closing_leftover
    click.echo(f"Closed {month_label(closing_key)} with leftover {format_amount(remaining)}")
    if carryover and remaining > 0:
        click.echo(f"  Moved {format_amount(remaining)} to savings (now {format_amount(ledger.global_savings)})")
    click.echo(f"Started {month_label(opened.key)}")


def register_commands(cli):
    """Register month commands with main CLI."""
    cli.add_command(month_group, name="month")
