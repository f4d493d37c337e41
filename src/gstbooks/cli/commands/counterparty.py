"""Vendor and client management commands."""

import click
from gstbooks.cli.error_handling import handle_domain_error
from gstbooks.domain.counterparty import ClientService, VendorService


@click.group()
def vendor_group():
    """Manage vendors."""
    pass


@vendor_group.command("add")
@click.argument("name", metavar="VENDOR_NAME")
@click.option(
    "--international",
    is_flag=True,
    help="Vendor charges no Australian GST (imported expenses get zero GST)",
)
@click.option("--category", help="Default category for imported expenses")
@click.pass_context
def add_vendor(ctx, name: str, international: bool, category: str | None):
    """Add a vendor.

    Examples:
        gstbooks vendor add "Telstra" --category Phone
        gstbooks vendor add "GitHub" --international --category Software
    """
    service = VendorService(ctx.obj["db"])
    try:
        vendor_id = service.create_vendor(
            name=name, is_international=international, default_category=category
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created vendor '{name}' (ID: {vendor_id})")


@vendor_group.command("list")
@click.pass_context
def list_vendors(ctx):
    """List all vendors."""
    vendors = VendorService(ctx.obj["db"]).list_vendors()
    if not vendors:
        click.echo("No vendors found.")
        return

    click.echo("\nVendors:")
    click.echo("-" * 60)
    for vendor in vendors:
        flag = " (international)" if vendor.is_international else ""
        click.echo(f"ID: {vendor.id:3d} | {vendor.name}{flag}")


@click.group()
def client_group():
    """Manage clients."""
    pass


@client_group.command("add")
@click.argument("name", metavar="CLIENT_NAME")
@click.pass_context
def add_client(ctx, name: str):
    """Add a client."""
    service = ClientService(ctx.obj["db"])
    try:
        client_id = service.create_client(name=name)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created client '{name}' (ID: {client_id})")


@client_group.command("list")
@click.pass_context
def list_clients(ctx):
    """List all clients."""
    clients = ClientService(ctx.obj["db"]).list_clients()
    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\nClients:")
    click.echo("-" * 60)
    for client in clients:
        click.echo(f"ID: {client.id:3d} | {client.name}")


def register_commands(cli):
    """Register vendor and client commands with main CLI."""
    cli.add_command(vendor_group, name="vendor")
    cli.add_command(client_group, name="client")
