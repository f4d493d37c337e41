"""CLI error handling helpers."""

import click

from gstbooks.domain.errors import DomainError, InvalidMapping


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, InvalidMapping) and error.missing:
        click.echo("Use --source or --map ROLE=COLUMN to supply them.", err=True)
    ctx.exit(1)
