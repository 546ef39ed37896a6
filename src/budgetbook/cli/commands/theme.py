"""Theme preference commands."""

import click
from budgetbook.domain.entities import Theme


@click.group()
def theme_group():
    """Show or change the display theme."""
    pass


@theme_group.command("show")
@click.pass_context
def show_theme(ctx):
    """Show the current theme."""
    click.echo(f"Theme: {ctx.obj['ledger'].theme.value}")


@theme_group.command("toggle")
@click.pass_context
def toggle_theme(ctx):
    """Switch between light and dark."""
    theme = ctx.obj["ledger"].toggle_theme()
    click.echo(f"Theme set to {theme.value}")


@theme_group.command("set")
@click.argument("theme", type=click.Choice([t.value for t in Theme]))
@click.pass_context
def set_theme(ctx, theme: str):
    """Set the theme explicitly."""
    resolved = ctx.obj["ledger"].set_theme(theme)
    click.echo(f"Theme set to {resolved.value}")


def register_commands(cli):
    """Register theme commands with main CLI."""
    cli.add_command(theme_group, name="theme")
