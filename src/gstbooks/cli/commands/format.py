"""CSV format commands."""

from pathlib import Path

import click
from gstbooks.cli.error_handling import handle_domain_error
from gstbooks.domain.csv_detect import detect_csv_type, parse_first_line
from gstbooks.domain.csv_format import CSVFormatService
from gstbooks.domain.errors import InvalidMapping
from gstbooks.domain.import_types import UNKNOWN


@click.group()
def format_group():
    """Inspect CSV templates and files."""
    pass


@format_group.command("list")
@click.option(
    "--kind",
    type=click.Choice(["expense", "income"], case_sensitive=False),
    help="Only show templates for this record kind",
)
def list_formats(kind: str | None):
    """List built-in column templates."""
    service = CSVFormatService()
    templates = service.list_templates(kind.lower() if kind else None)

    click.echo("\nCSV Templates:")
    click.echo("-" * 60)
    for template in templates:
        click.echo(f"{template.kind:8s} | {template.template}")
        for role, column in template.columns.items():
            click.echo(f"    {role:15s} -> {column}")
        if template.date_format:
            click.echo(f"    {'date format':15s}    {template.date_format}")
        if template.negate_amount:
            click.echo("    amounts are negated")


@format_group.command("detect")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def detect_format(ctx, csv_file: str):
    """Detect whether a CSV file holds expenses or incomes."""
    content = Path(csv_file).read_text(encoding="utf-8-sig", errors="replace")
    headers = parse_first_line(content)
    kind = detect_csv_type(headers)

    click.echo(f"Headers: {', '.join(headers) if headers else '(none)'}")
    click.echo(f"Detected kind: {kind}")
    if kind == UNKNOWN:
        click.echo("Use 'import --kind custom --map ROLE=COLUMN' to import this file.")
        return

    try:
        mapping = CSVFormatService().detect_mapping(kind, headers)
    except InvalidMapping as e:
        handle_domain_error(ctx, e)
        return

    click.echo("Suggested mapping:")
    for role, column in mapping.columns.items():
        click.echo(f"  {role:15s} -> {column}")


def register_commands(cli):
    """Register format commands with main CLI."""
    cli.add_command(format_group, name="format")
