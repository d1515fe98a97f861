"""Classification rule commands."""

import click

from autoledger.cli.error_handling import handle_domain_error
from autoledger.cli.resolution import resolve_account_or_exit, resolve_contact_or_exit
from autoledger.domain.entities import MatchType
from autoledger.domain.errors import DomainError
from autoledger.domain.ledger import LedgerService
from autoledger.domain.rules import RuleService


@click.group()
def rule_group():
    """Manage keyword classification rules."""
    pass


@rule_group.command("create")
@click.argument("keyword")
@click.option("--account", help="Target account code")
@click.option("--contact", help="Target contact name or ID (books in Relation mode)")
@click.option("--exact", is_flag=True, help="Match the whole text instead of a word")
@click.option("--priority", type=int, help="Higher priority wins")
@click.pass_context
def create_rule(
    ctx, keyword: str, account: str | None, contact: str | None, exact: bool, priority: int | None
):
    """Create a rule.

    Examples:
        autoledger rule create "ZIGGO" --account 4220
        autoledger rule create "Jansen Installatie" --contact "Jansen Installatie" --exact
    """
    db = ctx.obj["db"]
    ledger = LedgerService(db)
    account_id = resolve_account_or_exit(ctx, ledger, account) if account else None
    contact_id = resolve_contact_or_exit(ctx, ledger, contact) if contact else None
    try:
        rule_id = RuleService(db).create_rule(
            keyword,
            account_id=account_id,
            contact_id=contact_id,
            match_type=MatchType.EXACT if exact else MatchType.CONTAINS,
            priority=priority,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created rule '{keyword}' (ID: {rule_id})")


@rule_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include inactive rules")
@click.pass_context
def list_rules(ctx, show_all: bool):
    """List rules in the order they are tried."""
    db = ctx.obj["db"]
    ledger = LedgerService(db)
    rules = RuleService(db).list_rules(active_only=not show_all)
    if not rules:
        click.echo("No rules found.")
        return

    click.echo("\nRules:")
    click.echo("-" * 90)
    for rule in rules:
        account = ledger.get_account(rule.account_id)
        contact = ledger.get_contact(rule.contact_id)
        target = contact.name if contact else (account.code if account else "-")
        origin = "system" if rule.is_system else "user"
        inactive = " [inactive]" if not rule.is_active else ""
        click.echo(
            f"ID: {rule.id:3d} | {rule.keyword:30s} | {rule.match_type.value:8s} | "
            f"{rule.mode.value:8s} -> {target:20s} | prio {rule.priority:3d} | "
            f"used {rule.use_count}x | {origin}{inactive}"
        )


@rule_group.command("deactivate")
@click.argument("rule_id", type=int)
@click.pass_context
def deactivate_rule(ctx, rule_id: int):
    """Deactivate a rule."""
    try:
        RuleService(ctx.obj["db"]).deactivate_rule(rule_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated rule {rule_id}")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
