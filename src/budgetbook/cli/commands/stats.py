"""Statistics command."""

import click
from budgetbook.domain.metrics import goal_progress, summarize_month
from budgetbook.utils.amount_parser import format_amount
from budgetbook.utils.month import month_label

BAR_WIDTH = 30


def _bar(amount: float, largest: float) -> str:
    if largest <= 0 or amount <= 0:
        return ""
    return "█" * max(1, round(amount / largest * BAR_WIDTH))


@click.command("stats")
@click.pass_context
def stats(ctx):
    """Show spending statistics for the active month."""
    ledger = ctx.obj["ledger"]
    snapshot = ledger.snapshot()
    summary = summarize_month(snapshot.active_month, snapshot.goals, ledger.today())

    click.echo(f"\nStatistics for {month_label(summary.month_key)}")
    click.echo("=" * 60)
    click.echo(f"Total Income:       {format_amount(summary.income):>16s}")
    click.echo(f"Total Expenses:     {format_amount(summary.total_expenses):>16s}")
    click.echo(f"Goal Contributions: {format_amount(summary.total_goal_contributions):>16s}")
    click.echo(f"Leftover:           {format_amount(summary.leftover):>16s}")
    click.echo(f"Savings Pool:       {format_amount(snapshot.global_savings):>16s}")

    if summary.category_breakdown:
        click.echo("\nSpending by Category")
        click.echo("-" * 60)
        largest = summary.category_breakdown[0][1]
        for category, amount in summary.category_breakdown:
            click.echo(
                f"{category.icon} {category.value:13s} {format_amount(amount):>14s} {_bar(amount, largest)}"
            )

    click.echo("\nLast 7 Days")
    click.echo("-" * 60)
    largest_day = max((d.amount for d in summary.daily_series), default=0.0)
    for day in summary.daily_series:
        click.echo(f"{day.label} {day.day}  {format_amount(day.amount):>14s} {_bar(day.amount, largest_day)}")

    if summary.expense_count == 0:
        click.echo("\nNo expense data yet. Start tracking your expenses to see statistics!")
    else:
        click.echo("\nInsights")
        click.echo("-" * 60)
        if summary.top_category is not None:
            category, amount = summary.top_category
            click.echo(f"Top Spending Category:  {category.icon} {category.value} - {format_amount(amount)}")
        click.echo(f"Average Daily Spending: {format_amount(summary.average_daily_spend)}")
        click.echo(f"Total Transactions:     {summary.expense_count}")

    if snapshot.goals:
        click.echo("\nGoals")
        click.echo("-" * 60)
        for goal in snapshot.goals:
            progress = goal_progress(goal)
            click.echo(f"{goal.name:20s} {progress.percent:5.1f}%  {format_amount(progress.remaining)} to go")


def register_commands(cli):
    """Register stats command with main CLI."""
    cli.add_command(stats)
