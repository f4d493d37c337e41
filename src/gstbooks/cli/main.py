"""Main CLI entry point."""

import logging

import click
from gstbooks.database.factories import create_sqlite_database

# Import and register all commands at module level
from gstbooks.cli.commands import (
    import_cmd,
    category,
    format,
    counterparty,
    init_categories,
    period,
    history,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides GSTBOOKS_DB_PATH environment variable)",
    envvar="GSTBOOKS_DB_PATH",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """gstbooks - GST bookkeeping for small businesses.

    Import expense and income CSV exports, match vendors and clients, skip
    duplicates and place every record in its BAS quarter.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
import_cmd.register_commands(cli)
format.register_commands(cli)
category.register_commands(cli)
counterparty.register_commands(cli)
init_categories.register_commands(cli)
period.register_commands(cli)
history.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
