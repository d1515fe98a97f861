"""Invoice commands."""

import click

from autoledger.cli.error_handling import handle_domain_error
from autoledger.cli.resolution import resolve_contact_or_exit
from autoledger.domain.entities import InvoiceKind
from autoledger.domain.errors import DomainError
from autoledger.domain.invoices import InvoiceService
from autoledger.domain.ledger import LedgerService
from autoledger.utils.amount_parser import parse_amount
from autoledger.utils.date_parser import parse_date


@click.group()
def invoice_group():
    """Manage sales and purchase invoices."""
    pass


@invoice_group.command("create")
@click.argument("number")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in InvoiceKind], case_sensitive=False),
    required=True,
    help="Sales or Purchase",
)
@click.option("--contact", required=True, help="Contact name or ID")
@click.option("--date", "invoice_date", required=True, help="Invoice date")
@click.option("--amount", required=True, help="Invoice total (e.g. 121.00)")
@click.pass_context
def create_invoice(ctx, number: str, kind: str, contact: str, invoice_date: str, amount: str):
    """Register an open invoice.

    Examples:
        autoledger invoice create F2024-001 --kind Sales --contact "Acme BV" --date 2024-03-01 --amount 1210.00
    """
    db = ctx.obj["db"]
    contact_id = resolve_contact_or_exit(ctx, LedgerService(db), contact)
    kind = next(k for k in InvoiceKind if k.value.lower() == kind.lower())
    try:
        invoice_id = InvoiceService(db).create_invoice(
            number=number,
            kind=kind,
            contact_id=contact_id,
            invoice_date=parse_date(invoice_date),
            total_amount=parse_amount(amount),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created {kind.value.lower()} invoice {number} (ID: {invoice_id})")


@invoice_group.command("list")
@click.option("--open", "open_only", is_flag=True, help="Only show open invoices")
@click.pass_context
def list_invoices(ctx, open_only: bool):
    """List invoices."""
    db = ctx.obj["db"]
    ledger = LedgerService(db)
    invoices = InvoiceService(db).list_invoices(open_only=open_only)
    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo("\nInvoices:")
    click.echo("-" * 80)
    for inv in invoices:
        contact = ledger.get_contact(inv.contact_id)
        click.echo(
            f"ID: {inv.id:3d} | {inv.number:12s} | {inv.kind.value:8s} | {inv.invoice_date} | "
            f"{inv.total_amount:>10.2f} | {inv.status.value:4s} | {contact.name if contact else '-'}"
        )


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
