"""Category management commands."""

import click
from gstbooks.cli.error_handling import handle_domain_error
from gstbooks.domain.category import CategoryService


@click.group()
def category_group():
    """Manage expense categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories."""
    categories = CategoryService(ctx.obj["db"]).list_categories()
    if not categories:
        click.echo("No categories found. Run 'init-categories' to create default categories.")
        return

    click.echo("\nCategories:")
    for category in categories:
        click.echo(f"{category.name} (ID: {category.id})")


@category_group.command("create")
@click.argument("name")
@click.pass_context
def create_category(ctx, name: str):
    """Create a new category."""
    service = CategoryService(ctx.obj["db"])
    try:
        category_id = service.create_category(name=name)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created category '{name.strip()}' (ID: {category_id})")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
