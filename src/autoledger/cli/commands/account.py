"""Ledger account management commands."""

import click

from autoledger.cli.error_handling import handle_domain_error
from autoledger.cli.resolution import resolve_account_or_exit
from autoledger.domain.entities import AccountType
from autoledger.domain.errors import DomainError
from autoledger.domain.ledger import LedgerService


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("code")
@click.argument("name")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    required=True,
    help="Account type",
)
@click.option("--capital-asset", is_flag=True, help="Account holds capital assets")
@click.pass_context
def create_account(ctx, code: str, name: str, account_type: str, capital_asset: bool):
    """Create a new ledger account.

    Examples:
        autoledger account create 4500 "Opleidingskosten" --type Expense
        autoledger account create 0400 "Machines" --type Asset --capital-asset
    """
    service = LedgerService(ctx.obj["db"])
    account_type = next(t for t in AccountType if t.value.lower() == account_type.lower())
    try:
        account_id = service.create_account(
            code=code, name=name, account_type=account_type, capital_asset=capital_asset
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account {code} '{name}' (ID: {account_id})")


@account_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, show_all: bool):
    """List ledger accounts."""
    service = LedgerService(ctx.obj["db"])
    accounts = service.list_accounts(active_only=not show_all)
    if not accounts:
        click.echo("No accounts found. Run 'autoledger init' to create the default chart.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        flags = []
        if acc.system_protected:
            flags.append("system")
        if acc.capital_asset:
            flags.append("capital")
        if not acc.is_active:
            flags.append("inactive")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"{acc.code:6s} | {acc.name:40s} | {acc.account_type.value}{suffix}")


@account_group.command("deactivate")
@click.argument("account")
@click.pass_context
def deactivate_account(ctx, account: str):
    """Deactivate an account so it is no longer suggested.

    ACCOUNT is an account code, or #ID.
    """
    service = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    try:
        service.deactivate_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account {account}")


@account_group.command("delete")
@click.argument("account")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool):
    """Delete an account that has never been posted to.

    ACCOUNT is an account code, or #ID. Accounts with journal lines must be
    deactivated instead.
    """
    service = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.require_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account {account_obj.code} '{account_obj.name}'?"
    ):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account {account_obj.code} '{account_obj.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
