"""Expense template commands."""

import click
from budgetbook.cli.error_handling import handle_domain_error, parse_amount_or_exit
from budgetbook.cli.commands.expense import CATEGORY_NAMES
from budgetbook.domain.errors import DomainError
from budgetbook.utils.amount_parser import format_amount


@click.group()
def template_group():
    """Manage expense templates."""
    pass


@template_group.command("list")
@click.pass_context
def list_templates(ctx):
    """List saved expense templates."""
    ledger = ctx.obj["ledger"]
    templates = ledger.expense_templates
    if not templates:
        click.echo("No templates found.")
        return

    click.echo("\nTemplates:")
    click.echo("-" * 60)
    for template in templates:
        click.echo(
            f"{template.id} | {template.category.icon} {template.category.value:13s} | "
            f"{format_amount(template.amount):>12s} | {template.note or ''}"
        )


@template_group.command("add")
@click.option("--amount", required=True, help="Template amount")
@click.option(
    "--category",
    required=True,
    type=click.Choice(CATEGORY_NAMES, case_sensitive=False),
    help="Template category",
)
@click.option("--note", help="Note pre-filled on new expenses")
@click.pass_context
def add_template(ctx, amount: str, category: str, note: str | None):
    """Save an expense template.

    Examples:
        budgetbook template add --amount 60 --category Transport --note "Bus pass"
    """
    ledger = ctx.obj["ledger"]
    value = parse_amount_or_exit(ctx, amount)
    try:
        template = ledger.add_template(category=category, amount=value, note=note)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created template {template.id}")


@template_group.command("delete")
@click.argument("template_id", type=int)
@click.pass_context
def delete_template(ctx, template_id: int):
    """Delete an expense template."""
    ledger = ctx.obj["ledger"]
    try:
        ledger.delete_template(template_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted template {template_id}")


def register_commands(cli):
    """Register template commands with main CLI."""
    cli.add_command(template_group, name="template")
