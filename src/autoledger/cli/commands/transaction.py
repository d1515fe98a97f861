"""Bank transaction commands."""

import click

from autoledger.cli.error_handling import handle_domain_error
from autoledger.domain.entities import TransactionStatus
from autoledger.domain.errors import DomainError
from autoledger.domain.ledger import LedgerService
from autoledger.domain.transactions import TransactionService
from autoledger.utils.amount_parser import parse_amount
from autoledger.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Add, import and inspect bank transactions."""
    pass


@transaction_group.command("add")
@click.option(
    "--date",
    "txn_date",
    required=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option(
    "--amount", required=True, help="Signed amount, negative for payments (e.g. -50.00)"
)
@click.option("--description", default="", help="Bank description")
@click.option("--counterparty", help="Counterparty name")
@click.pass_context
def add_transaction(ctx, txn_date: str, amount: str, description: str, counterparty: str | None):
    """Add a bank transaction manually.

    Examples:
        autoledger transaction add --date 2024-01-15 --amount -42.50 --counterparty "GAMMA BOUWMARKT"
        autoledger transaction add --date today --amount 1210.00 --description "Betaling F2024-001"
    """
    service = TransactionService(ctx.obj["db"])
    try:
        transaction_id = service.add_transaction(
            date=parse_date(txn_date),
            amount=parse_amount(amount),
            description=description,
            counterparty=counterparty,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created transaction {transaction_id}")


@transaction_group.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def import_transactions(ctx, csv_file: str):
    """Import a normalized CSV (date, amount, description, counterparty)."""
    service = TransactionService(ctx.obj["db"])
    try:
        result = service.import_csv(csv_file)
    except (DomainError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported']} transactions")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


@transaction_group.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in TransactionStatus], case_sensitive=False),
    multiple=True,
    help="Only show transactions with this status (repeatable)",
)
@click.pass_context
def list_transactions(ctx, status: tuple[str, ...]):
    """List bank transactions."""
    service = TransactionService(ctx.obj["db"])
    statuses = None
    if status:
        wanted = {s.lower() for s in status}
        statuses = [s for s in TransactionStatus if s.value.lower() in wanted]
    transactions = service.list_transactions(statuses=statuses)
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 90)
    for txn in transactions:
        text = txn.counterparty or txn.description
        score = f"{txn.confidence_score:3d}" if txn.confidence_score is not None else "  -"
        click.echo(
            f"ID: {txn.id:4d} | {txn.date} | {txn.amount:>10.2f} | "
            f"{txn.status.value:10s} | {score} | {text[:40]}"
        )


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction, its suggestion and its journal entries."""
    db = ctx.obj["db"]
    ledger = LedgerService(db)
    try:
        txn = TransactionService(db).require_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Transaction {txn.id}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Amount: {txn.amount:.2f}")
    click.echo(f"  Description: {txn.description}")
    if txn.counterparty:
        click.echo(f"  Counterparty: {txn.counterparty}")
    click.echo(f"  Status: {txn.status.value}")

    if txn.suggestion:
        s = txn.suggestion
        account = ledger.get_account(s.account_id)
        contact = ledger.get_contact(s.contact_id)
        click.echo(f"\nSuggestion ({s.source.value}, score {s.score}):")
        click.echo(f"  Mode: {s.mode.value}")
        click.echo(f"  Account: {f'{account.code} {account.name}' if account else '-'}")
        if contact:
            click.echo(f"  Contact: {contact.name}")
        if s.account_confidence is not None:
            click.echo(f"  Account confidence: {s.account_confidence}")
        click.echo(f"  Reason: {s.reason}")

    for entry in ledger.list_entries(bank_transaction_id=txn.id):
        click.echo(f"\nEntry {entry.id} ({entry.entry_type}, {entry.status.value}): {entry.description}")
        for line in entry.lines:
            account = ledger.get_account(line.account_id)
            click.echo(
                f"  {account.code:6s} {account.name:40s} "
                f"{line.debit:>10.2f} {line.credit:>10.2f}"
            )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
