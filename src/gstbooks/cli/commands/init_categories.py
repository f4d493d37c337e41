"""Initialize default categories."""

import click
from gstbooks.domain.category import CategoryService


@click.command("init-categories")
@click.option("--force", is_flag=True, help="Delete existing categories first")
@click.pass_context
def init_categories(ctx, force: bool):
    """Initialize database with default expense categories."""
    service = CategoryService(ctx.obj["db"])

    if service.list_categories() and not force:
        click.echo("Categories already exist. Use --force to overwrite.")
        return

    click.echo("Creating default categories...")
    created, skipped = service.initialize_defaults(force=force)
    click.echo(f"Created {created} categories")
    if skipped:
        click.echo(f"Skipped {skipped} existing categories")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
