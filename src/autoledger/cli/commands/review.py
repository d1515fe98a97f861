"""Review commands: accept, correct, settle and reverse bookings."""

import click

from autoledger.cli.error_handling import handle_domain_error
from autoledger.cli.resolution import resolve_account_or_exit, resolve_contact_or_exit
from autoledger.domain.booking import BookingEngine
from autoledger.domain.entities import PostingMode
from autoledger.domain.errors import DomainError
from autoledger.domain.ledger import LedgerService
from autoledger.domain.review import ReviewService
from autoledger.domain.settlement import SettlementService


def _echo_entries(entries):
    for entry in entries:
        click.echo(f"  Entry {entry.id} ({entry.entry_type}): {entry.total_debit:.2f}")


@click.command("accept")
@click.argument("transaction_id", type=int)
@click.pass_context
def accept(ctx, transaction_id: int):
    """Book a transaction as suggested and remember the decision."""
    service = ReviewService(ctx.obj["db"], ctx.obj["config"])
    try:
        entries = service.accept(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Booked transaction {transaction_id}")
    _echo_entries(entries)


@click.command("correct")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account code (required for Direct mode)")
@click.option("--contact", help="Contact name or ID (books in Relation mode)")
@click.option(
    "--new-contact",
    is_flag=True,
    help="Book in Relation mode against a contact named like the counterparty, creating it if needed",
)
@click.option("--description", help="Booking description")
@click.pass_context
def correct(
    ctx,
    transaction_id: int,
    account: str | None,
    contact: str | None,
    new_contact: bool,
    description: str | None,
):
    """Book a transaction your way and remember the decision.

    With --contact (or --new-contact) the transaction is booked in Relation
    mode against the suspense account; otherwise it is booked directly on
    --account.

    Examples:
        autoledger correct 12 --account 4310
        autoledger correct 13 --contact "Jansen Installatie"
        autoledger correct 14 --new-contact
    """
    db = ctx.obj["db"]
    ledger = LedgerService(db)
    account_id = resolve_account_or_exit(ctx, ledger, account) if account else None
    contact_id = resolve_contact_or_exit(ctx, ledger, contact) if contact else None
    relation = contact_id is not None or new_contact
    mode = PostingMode.RELATION if relation else PostingMode.DIRECT
    try:
        entries = ReviewService(db, ctx.obj["config"]).correct(
            transaction_id,
            mode,
            account_id=account_id,
            contact_id=contact_id,
            description=description,
            create_contact=new_contact,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Booked transaction {transaction_id} in {mode.value} mode")
    _echo_entries(entries)


@click.command("settle")
@click.argument("transaction_id", type=int)
@click.argument("invoice_ids", type=int, nargs=-1)
@click.pass_context
def settle(ctx, transaction_id: int, invoice_ids: tuple[int, ...]):
    """Settle a Pending transaction against an invoice.

    Without INVOICE_IDS the single open invoice that fits is used.
    """
    service = SettlementService(ctx.obj["db"], ctx.obj["config"])
    try:
        if invoice_ids:
            entry = service.settle(transaction_id, list(invoice_ids))
        else:
            entry = service.auto_settle(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    if entry is None:
        click.echo("Error: No single matching open invoice found", err=True)
        ctx.exit(1)
    click.echo(f"Settled transaction {transaction_id}")
    _echo_entries([entry])


@click.command("reverse")
@click.argument("transaction_id", type=int)
@click.pass_context
def reverse(ctx, transaction_id: int):
    """Reverse a booking so the transaction can be booked again."""
    try:
        entry = BookingEngine(ctx.obj["db"]).reverse(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reversed booking of transaction {transaction_id}")
    _echo_entries([entry])


def register_commands(cli):
    """Register review commands with main CLI."""
    cli.add_command(accept)
    cli.add_command(correct)
    cli.add_command(settle)
    cli.add_command(reverse)
