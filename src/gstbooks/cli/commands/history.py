"""Import history command."""

import click
from gstbooks.utils.money import format_cents


@click.command("history")
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.pass_context
def show_history(ctx, limit: int):
    """List recent import runs."""
    jobs = ctx.obj["db"].list_import_jobs(limit=limit)
    if not jobs:
        click.echo("No imports found.")
        return

    click.echo("\nImports:")
    click.echo("-" * 90)
    for job in jobs:
        when = job.created_at.strftime("%Y-%m-%d %H:%M")
        click.echo(
            f"ID: {job.id:3d} | {when} | {job.kind:7s} | {job.status:9s} | "
            f"{job.imported_count}/{job.total_rows} imported, "
            f"{job.duplicate_count} duplicates | {format_cents(job.total_amount_cents)}"
            f" | {job.filename or '-'}"
        )


def register_commands(cli):
    """Register history command with main CLI."""
    cli.add_command(show_history)
