"""CLI helpers for resolving accounts and contacts from user input."""

from __future__ import annotations

import click

from autoledger.domain.errors import NotFoundError
from autoledger.domain.ledger import LedgerService


def resolve_account_or_exit(ctx: click.Context, ledger: LedgerService, account: str) -> int:
    """Resolve an account code (or ``#ID``) to its ID, or exit with a CLI error.

    Account codes are numeric, so a plain number is always read as a code.
    """
    try:
        if account.startswith("#"):
            return ledger.require_account(int(account[1:])).id
        return ledger.require_account_by_code(account.strip()).id
    except (NotFoundError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_contact_or_exit(ctx: click.Context, ledger: LedgerService, contact: str) -> int:
    """Resolve a contact name or ID to its ID, or exit with a CLI error."""
    if contact.isdigit():
        found = ledger.get_contact(int(contact))
    else:
        found = ledger.find_contact_by_name(contact)
    if found is None:
        click.echo(f"Error: Contact '{contact}' not found", err=True)
        ctx.exit(1)
    return found.id
