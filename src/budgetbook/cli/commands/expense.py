"""Expense commands."""

import time

import click
from budgetbook.cli.error_handling import (
    handle_domain_error,
    parse_amount_or_exit,
    parse_date_or_exit,
)
from budgetbook.domain.entities import Category
from budgetbook.domain.errors import DomainError
from budgetbook.utils.amount_parser import format_amount
from budgetbook.utils.month import month_label

CATEGORY_NAMES = [c.value for c in Category]


@click.group()
def expense_group():
    """Record and remove expenses in the active month."""
    pass


@expense_group.command("add")
@click.option("--amount", help="Expense amount (e.g., 250 or 1,250.50)")
@click.option(
    "--category",
    type=click.Choice(CATEGORY_NAMES, case_sensitive=False),
    help="Expense category",
)
@click.option("--date", "date_str", default="today", help="Expense date (YYYY-MM-DD or 'today', 'yesterday', '3 days ago')")
@click.option("--note", help="Optional note")
@click.option("--save-template", is_flag=True, help="Also save this expense as a template (needs --note)")
@click.option("--template", "template_id", type=int, help="Pre-fill category, amount and note from a template")
@click.pass_context
def add_expense(
    ctx,
    amount: str | None,
    category: str | None,
    date_str: str,
    note: str | None,
    save_template: bool,
    template_id: int | None,
):
    """Add an expense to the active month.

    Examples:
        budgetbook expense add --amount 250 --category Food --note "Lunch"
        budgetbook expense add --amount 1200 --category Bills --date 2024-01-05
        budgetbook expense add --template 1712345678901
    """
    ledger = ctx.obj["ledger"]
    day = parse_date_or_exit(ctx, date_str, ledger.today())
    value = parse_amount_or_exit(ctx, amount) if amount is not None else None

    try:
        if template_id is not None:
            txn = ledger.add_expense_from_template(template_id, day=day, amount=value)
        else:
            if value is None or category is None:
                click.echo("Error: --amount and --category are required without --template", err=True)
                ctx.exit(1)
            txn = ledger.add_expense(
                amount=value,
                category=category,
                day=day,
                note=note,
                save_as_template=save_template,
            )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Added expense {txn.id}")
    click.echo(f"  Amount: {format_amount(txn.amount)}")
    click.echo(f"  Category: {txn.category.icon} {txn.category.value}")
    click.echo(f"  Date: {txn.date}")
    if txn.note:
        click.echo(f"  Note: {txn.note}")
    if save_template and template_id is None:
        if txn.note:
            click.echo("  Saved as template")
        else:
            click.echo("  Not saved as template: a note is required")


@expense_group.command("list")
@click.pass_context
def list_expenses(ctx):
    """List the active month's transactions, newest first."""
    ledger = ctx.obj["ledger"]
    snapshot = ledger.snapshot()
    month = snapshot.active_month

    if not month.transactions:
        click.echo(f"No expenses yet for {month_label(month.key)}.")
        return

    click.echo(f"\nTransactions for {month_label(month.key)}:")
    click.echo("-" * 72)
    for txn in month.transactions:
        marker = " (pending deletion)" if snapshot.is_pending_deletion(txn.id) else ""
        if txn.is_expense:
            label = f"{txn.category.icon} {txn.category.value}"
            detail = txn.note or ""
        else:
            goal = snapshot.goal(txn.goal_id)
            label = "🎯 Goal"
            detail = goal.name if goal is not None else "(deleted goal)"
        click.echo(
            f"{txn.id} | {txn.date} | {label:18s} | {format_amount(txn.amount):>14s} | {detail}{marker}"
        )


@expense_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--wait", is_flag=True, help="Wait for the undo window to pass and delete immediately after")
@click.pass_context
def delete_expense(ctx, transaction_id: int, wait: bool):
    """Delete an expense, with a short window to undo.

    The expense is removed once the undo window has passed, the next time
    budgetbook runs. Use 'expense undo' within the window to keep it.

    Examples:
        budgetbook expense delete 1712345678901
        budgetbook expense undo 1712345678901
    """
    ledger = ctx.obj["ledger"]
    try:
        pending = ledger.delete_expense(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    window = ledger.undo_window.total_seconds()
    if not wait:
        click.echo(
            f"Expense {transaction_id} will be deleted in {window:g} seconds. "
            f"Undo with: budgetbook expense undo {transaction_id}"
        )
        return

    remaining = (pending.expires_at - ledger.now()).total_seconds()
    if remaining > 0:
        time.sleep(remaining)
    removed = ledger.process_due_deletions()
    if transaction_id in removed:
        click.echo(f"Deleted expense {transaction_id}")
    else:
        click.echo(f"Expense {transaction_id} was not deleted")


@expense_group.command("undo")
@click.argument("transaction_id", type=int)
@click.pass_context
def undo_delete(ctx, transaction_id: int):
    """Cancel a pending expense deletion."""
    ledger = ctx.obj["ledger"]
    if ledger.undo_delete(transaction_id):
        click.echo(f"Restored expense {transaction_id}")
    else:
        click.echo(f"No pending deletion for expense {transaction_id}")


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
