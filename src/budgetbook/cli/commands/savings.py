"""Savings pool commands."""

import click
from budgetbook.cli.error_handling import handle_domain_error, parse_amount_or_exit
from budgetbook.domain.errors import DomainError
from budgetbook.utils.amount_parser import format_amount


@click.group()
def savings_group():
    """Manage the savings pool."""
    pass


@savings_group.command("show")
@click.pass_context
def show_savings(ctx):
    """Show the savings balance."""
    ledger = ctx.obj["ledger"]
    click.echo(f"Savings: {format_amount(ledger.global_savings)}")


@savings_group.command("set")
@click.argument("value")
@click.option("--note", default="", help="Why the balance changed")
@click.pass_context
def set_savings(ctx, value: str, note: str):
    """Set the savings balance."""
    ledger = ctx.obj["ledger"]
    new_value = parse_amount_or_exit(ctx, value)
    try:
        ledger.set_savings(new_value, note=note)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Savings set to {format_amount(ledger.global_savings)}")


@savings_group.command("adjust", context_settings={"ignore_unknown_options": True})
@click.argument("delta")
@click.option("--note", default="", help="Why the balance changed")
@click.pass_context
def adjust_savings(ctx, delta: str, note: str):
    """Add to (or subtract from) savings. The balance never drops below zero.

    Examples:
        budgetbook savings adjust 1000 --note "Birthday gift"
        budgetbook savings adjust -- -250
    """
    ledger = ctx.obj["ledger"]
    change = parse_amount_or_exit(ctx, delta)
    try:
        ledger.adjust_savings(change, note=note)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Savings is now {format_amount(ledger.global_savings)}")


@savings_group.command("borrow")
@click.argument("amount")
@click.option("--note", default="", help="What the money is for")
@click.pass_context
def borrow(ctx, amount: str, note: str):
    """Move money from savings into this month's income."""
    ledger = ctx.obj["ledger"]
    value = parse_amount_or_exit(ctx, amount)
    try:
        ledger.borrow_from_savings(value, note=note)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Borrowed {format_amount(value)} from savings")
    click.echo(f"  Savings: {format_amount(ledger.global_savings)}")
    click.echo(f"  Income this month: {format_amount(ledger.active_month.income)}")


@savings_group.command("history")
@click.option("--limit", type=int, default=20, show_default=True, help="Number of entries to show")
@click.pass_context
def savings_history(ctx, limit: int):
    """Show savings changes, newest first."""
    ledger = ctx.obj["ledger"]
    history = ledger.savings_history[:limit]
    if not history:
        click.echo("No savings history yet.")
        return

    click.echo("\nSavings history:")
    click.echo("-" * 80)
    for entry in history:
        sign = "+" if entry.difference >= 0 else "-"
        click.echo(
            f"{entry.timestamp:%Y-%m-%d %H:%M} | {entry.action.value:19s} | "
            f"{sign}{format_amount(abs(entry.difference)):>13s} | "
            f"{format_amount(entry.old_value)} -> {format_amount(entry.new_value)} | {entry.note}"
        )


def register_commands(cli):
    """Register savings commands with main CLI."""
    cli.add_command(savings_group, name="savings")
