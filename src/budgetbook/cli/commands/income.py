"""Income commands for the active month."""

import click
from budgetbook.cli.error_handling import handle_domain_error, parse_amount_or_exit
from budgetbook.domain.errors import DomainError
from budgetbook.utils.amount_parser import format_amount
from budgetbook.utils.month import month_label


@click.group()
def income_group():
    """Manage the active month's income."""
    pass


@income_group.command("show")
@click.pass_context
def show_income(ctx):
    """Show the active month's income."""
    ledger = ctx.obj["ledger"]
    month = ledger.active_month
    click.echo(f"Income for {month_label(month.key)}: {format_amount(month.income)}")


@income_group.command("set")
@click.argument("amount")
@click.pass_context
def set_income(ctx, amount: str):
    """Set the active month's income.

    Examples:
        budgetbook income set 5000
        budgetbook income set "৳45,000"
    """
    ledger = ctx.obj["ledger"]
    value = parse_amount_or_exit(ctx, amount)
    try:
        month = ledger.set_income(value)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Income for {month_label(month.key)} set to {format_amount(month.income)}")


@income_group.command("adjust", context_settings={"ignore_unknown_options": True})
@click.argument("delta")
@click.pass_context
def adjust_income(ctx, delta: str):
    """Add to (or subtract from) the active month's income.

    Income never drops below zero.

    Examples:
        budgetbook income adjust 500
        budgetbook income adjust -- -200
    """
    ledger = ctx.obj["ledger"]
    value = parse_amount_or_exit(ctx, delta)
    try:
        month = ledger.adjust_income(value)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Income for {month_label(month.key)} is now {format_amount(month.income)}")


def register_commands(cli):
    """Register income commands with main CLI."""
    cli.add_command(income_group, name="income")
