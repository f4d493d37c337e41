"""Financial year and BAS quarter commands."""

import click
from gstbooks.cli.error_handling import handle_domain_error
from gstbooks.utils.date_parser import parse_date
from gstbooks.utils.fiscal_year import (
    all_quarters,
    assign_period,
    fiscal_year_date_range,
    quarter_date_range,
)


@click.command("period")
@click.argument("date_str", metavar="DATE", default="today")
@click.pass_context
def show_period(ctx, date_str: str):
    """Show the financial year and quarter a date falls in.

    Examples:
        gstbooks period 2025-07-01
        gstbooks period today
    """
    try:
        day = parse_date(date_str)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    period = assign_period(day)
    start, end = quarter_date_range(period.quarter, period.fiscal_year)
    click.echo(f"{day.isoformat()}: {period.quarter_label}")
    click.echo(f"  Quarter: {start.isoformat()} to {end.isoformat()}")


@click.command("quarter")
@click.argument("quarter")
@click.argument("fiscal_year", type=int, metavar="FY")
@click.pass_context
def show_quarter(ctx, quarter: str, fiscal_year: int):
    """Show the date range of a quarter, or of every quarter with ALL.

    Examples:
        gstbooks quarter Q3 2026
        gstbooks quarter all 2026
    """
    if quarter.lower() == "all":
        start, end = fiscal_year_date_range(fiscal_year)
        click.echo(f"FY{fiscal_year}: {start.isoformat()} to {end.isoformat()}")
        for name, q_start, q_end in all_quarters(fiscal_year):
            click.echo(f"  {name}: {q_start.isoformat()} to {q_end.isoformat()}")
        return

    try:
        start, end = quarter_date_range(quarter, fiscal_year)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"{quarter.upper()} FY{fiscal_year}: {start.isoformat()} to {end.isoformat()}")


def register_commands(cli):
    """Register period commands with main CLI."""
    cli.add_command(show_period)
    cli.add_command(show_quarter)
