"""Savings goal commands."""

from pathlib import Path

import click
from budgetbook.cli.error_handling import handle_domain_error, parse_amount_or_exit
from budgetbook.domain.entities import ContributionSource
from budgetbook.domain.errors import DomainError
from budgetbook.domain.metrics import goal_progress
from budgetbook.utils.amount_parser import format_amount

MAX_GOAL_IMAGE_BYTES = 2 * 1024 * 1024


def _image_reference_or_exit(ctx: click.Context, image: str | None) -> str | None:
    """Validate a goal image file and return its absolute path."""
    if image is None or image == "":
        return image
    path = Path(image)
    if path.stat().st_size > MAX_GOAL_IMAGE_BYTES:
        click.echo("Error: Image size should be less than 2MB", err=True)
        ctx.exit(1)
    return str(path.resolve())


@click.group()
def goal_group():
    """Manage savings goals."""
    pass


@goal_group.command("add")
@click.argument("name")
@click.option("--target", required=True, help="Target amount")
@click.option("--note", help="Motivational note")
@click.option("--image", type=click.Path(exists=True, dir_okay=False), help="Image file for the goal")
@click.pass_context
def add_goal(ctx, name: str, target: str, note: str | None, image: str | None):
    """Create a savings goal.

    Examples:
        budgetbook goal add "New Laptop" --target 80000
        budgetbook goal add "Vacation" --target 50000 --note "Beach in March"
    """
    ledger = ctx.obj["ledger"]
    target_amount = parse_amount_or_exit(ctx, target)
    image_ref = _image_reference_or_exit(ctx, image)
    try:
        goal = ledger.add_goal(name=name, target_amount=target_amount, note=note, image=image_ref)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created goal '{goal.name}' (ID: {goal.id})")
    click.echo(f"  Target: {format_amount(goal.target_amount)}")


@goal_group.command("edit")
@click.argument("goal_id", type=int)
@click.option("--name", help="New goal name")
@click.option("--target", help="New target amount")
@click.option("--note", help="New note (empty string to clear)")
@click.option("--image", help="New image file (empty string to clear)")
@click.pass_context
def edit_goal(ctx, goal_id: int, name: str | None, target: str | None, note: str | None, image: str | None):
    """Edit a goal's name, target, note or image.

    Progress collected so far is kept.
    """
    ledger = ctx.obj["ledger"]
    target_amount = parse_amount_or_exit(ctx, target) if target is not None else None
    if image:
        if not Path(image).is_file():
            click.echo(f"Error: Image file '{image}' does not exist", err=True)
            ctx.exit(1)
        image = _image_reference_or_exit(ctx, image)
    try:
        goal = ledger.edit_goal(
            goal_id, name=name, target_amount=target_amount, note=note, image=image
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated goal '{goal.name}'")


@goal_group.command("delete")
@click.argument("goal_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_goal(ctx, goal_id: int, yes: bool):
    """Delete a goal.

    Contributions already made stay recorded in their months.
    """
    ledger = ctx.obj["ledger"]
    try:
        goal = ledger.get_goal(goal_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete goal '{goal.name}'?"):
        click.echo("Deletion cancelled.")
        return

    ledger.delete_goal(goal_id)
    click.echo(f"Deleted goal '{goal.name}'")


@goal_group.command("list")
@click.pass_context
def list_goals(ctx):
    """List goals with their progress."""
    ledger = ctx.obj["ledger"]
    goals = ledger.goals
    if not goals:
        click.echo("No goals yet. Create your first savings goal to get started!")
        return

    click.echo(f"\nSavings pool: {format_amount(ledger.global_savings)}")
    click.echo("\nGoals:")
    click.echo("-" * 72)
    for goal in goals:
        progress = goal_progress(goal)
        status = " ✓" if progress.is_complete else ""
        click.echo(
            f"{goal.id} | {goal.name:20s} | "
            f"{format_amount(goal.collected_amount)} / {format_amount(goal.target_amount)} "
            f"({progress.percent:.1f}% Complete){status}"
        )
        if goal.note:
            click.echo(f"    {goal.note}")


@goal_group.command("contribute")
@click.argument("goal_id", type=int)
@click.argument("amount")
@click.option(
    "--from",
    "source",
    type=click.Choice([s.value for s in ContributionSource]),
    default=ContributionSource.LEFTOVER.value,
    show_default=True,
    help="Take the money from this month's leftover or from the savings pool",
)
@click.pass_context
def contribute(ctx, goal_id: int, amount: str, source: str):
    """Contribute money towards a goal.

    Examples:
        budgetbook goal contribute 1712345678901 500
        budgetbook goal contribute 1712345678901 2000 --from savings
    """
    ledger = ctx.obj["ledger"]
    value = parse_amount_or_exit(ctx, amount)
    try:
        goal = ledger.contribute_to_goal(goal_id, value, source)
    except DomainError as e:
        handle_domain_error(ctx, e)
    progress = goal_progress(goal)
    click.echo(f"Contributed {format_amount(value)} to '{goal.name}' from {source}")
    click.echo(
        f"  Progress: {format_amount(goal.collected_amount)} / "
        f"{format_amount(goal.target_amount)} ({progress.percent:.1f}%)"
    )


def register_commands(cli):
    """Register goal commands with main CLI."""
    cli.add_command(goal_group, name="goal")
