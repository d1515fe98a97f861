"""Contact management commands."""

import click

from autoledger.cli.error_handling import handle_domain_error
from autoledger.cli.resolution import resolve_account_or_exit, resolve_contact_or_exit
from autoledger.domain.entities import ContactRole
from autoledger.domain.errors import DomainError
from autoledger.domain.ledger import LedgerService


@click.group()
def contact_group():
    """Manage customers and suppliers."""
    pass


@contact_group.command("create")
@click.argument("name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in ContactRole], case_sensitive=False),
    default=ContactRole.SUPPLIER.value,
    show_default=True,
    help="Customer, Supplier or Both",
)
@click.option("--account", help="Default account code for this contact")
@click.pass_context
def create_contact(ctx, name: str, role: str, account: str | None):
    """Create a contact.

    Examples:
        autoledger contact create "Jansen Installatie" --account 4100
        autoledger contact create "Acme BV" --role Customer
    """
    service = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account) if account else None
    role = next(r for r in ContactRole if r.value.lower() == role.lower())
    try:
        contact_id = service.create_contact(name=name, role=role, default_account_id=account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created contact '{name}' (ID: {contact_id})")


@contact_group.command("list")
@click.pass_context
def list_contacts(ctx):
    """List contacts."""
    service = LedgerService(ctx.obj["db"])
    contacts = service.list_contacts()
    if not contacts:
        click.echo("No contacts found.")
        return

    click.echo("\nContacts:")
    click.echo("-" * 70)
    for contact in contacts:
        default = service.get_account(contact.default_account_id)
        default_text = default.code if default else "-"
        click.echo(
            f"ID: {contact.id:3d} | {contact.name:30s} | {contact.role.value:8s} | "
            f"Default: {default_text}"
        )


@contact_group.command("set-default")
@click.argument("contact")
@click.argument("account", required=False)
@click.pass_context
def set_default(ctx, contact: str, account: str | None):
    """Set or clear a contact's default account.

    CONTACT is a contact name or ID. Omit ACCOUNT to clear the default.
    """
    service = LedgerService(ctx.obj["db"])
    contact_id = resolve_contact_or_exit(ctx, service, contact)
    account_id = resolve_account_or_exit(ctx, service, account) if account else None
    try:
        service.set_default_account(contact_id, account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    if account:
        click.echo(f"Default account for '{contact}' set to {account}")
    else:
        click.echo(f"Default account for '{contact}' cleared")


def register_commands(cli):
    """Register contact commands with main CLI."""
    cli.add_command(contact_group, name="contact")
