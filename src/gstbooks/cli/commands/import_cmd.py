"""CSV import command."""

import json

import click
from gstbooks.cli.error_handling import handle_domain_error
from gstbooks.domain.csv_import import CSVImportService
from gstbooks.domain.import_types import DEFAULT_MATCH_THRESHOLD, INCOME, ImportRequest
from gstbooks.utils.date_parser import parse_date
from gstbooks.utils.money import format_cents


def _parse_mapping(ctx, values: tuple[str, ...]) -> dict[str, str] | None:
    mapping = {}
    for value in values:
        role, sep, column = value.partition("=")
        if not sep or not role.strip() or not column.strip():
            click.echo(f"Error: Invalid --map '{value}'. Expected ROLE=COLUMN", err=True)
            ctx.exit(1)
        mapping[role.strip()] = column.strip()
    return mapping or None


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--kind",
    type=click.Choice(["expense", "income", "custom"], case_sensitive=False),
    help="Record kind (detected from the header row if omitted)",
)
@click.option("--source", help="Built-in template name (e.g., custom, commbank, amex)")
@click.option(
    "--map",
    "mappings",
    multiple=True,
    metavar="ROLE=COLUMN",
    help="Explicit column mapping, repeatable (e.g., --map date=Date --map amount=Debit)",
)
@click.option(
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    default=DEFAULT_MATCH_THRESHOLD,
    show_default=True,
    help="Minimum similarity for matching vendors and clients",
)
@click.option(
    "--skip-duplicates/--no-skip-duplicates",
    default=True,
    show_default=True,
    help="Skip rows that already exist in the ledger",
)
@click.option("--dry-run", is_flag=True, help="Preview the import without saving anything")
@click.option("--mark-paid", is_flag=True, help="Mark imported incomes as paid")
@click.option("--default-date", help="Date for income rows with no date (e.g., 2025-07-01, today)")
@click.option("--workers", type=click.IntRange(min=1), help="Threads used to process rows")
@click.option("--json", "as_json", is_flag=True, help="Print the full report as JSON")
@click.pass_context
def import_csv(
    ctx,
    csv_file: str,
    kind: str | None,
    source: str | None,
    mappings: tuple[str, ...],
    threshold: float,
    skip_duplicates: bool,
    dry_run: bool,
    mark_paid: bool,
    default_date: str | None,
    workers: int | None,
    as_json: bool,
):
    """Import expenses or incomes from a CSV file.

    Examples:
        gstbooks import expenses.csv --source custom --dry-run
        gstbooks import bank.csv --kind expense --source commbank
        gstbooks import invoices.csv --kind income --mark-paid
        gstbooks import export.csv --kind custom --map date=When --map vendor=Payee --map amount=Paid
    """
    db = ctx.obj["db"]
    service = CSVImportService(db, max_workers=workers)

    try:
        request = ImportRequest(
            kind=kind.lower() if kind else None,
            source=source,
            mapping=_parse_mapping(ctx, mappings),
            match_threshold=threshold,
            skip_duplicates=skip_duplicates,
            dry_run=dry_run,
            mark_as_paid=mark_paid,
            default_date=parse_date(default_date) if default_date else None,
        )
        report = service.import_file(csv_file_path=csv_file, request=request)
    except (ValueError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    title = "Import preview (dry run, nothing saved)" if report.dry_run else "Import complete"
    click.echo(f"\n{title}:")
    click.echo(f"  Kind: {report.kind}")
    click.echo(f"  Rows: {report.total_rows}")
    click.echo(f"  Imported: {report.success_count}")
    click.echo(f"  Failed: {report.failed_count}")
    click.echo(f"  Duplicates: {report.duplicate_count}")
    if report.kind == INCOME:
        click.echo(f"  Warnings: {report.warning_count}")
    click.echo(f"  Total: {format_cents(report.total_amount_cents)}")
    click.echo(f"  GST: {format_cents(report.total_gst_cents)}")

    for row in report.rows:
        if row.error:
            click.echo(f"  Row {row.row_number}: {row.error}", err=True)
        elif row.warning:
            click.echo(f"  Row {row.row_number}: Warning: {row.warning}")


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
