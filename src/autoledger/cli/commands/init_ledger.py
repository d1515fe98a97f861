"""Initialize the chart of accounts and system rules."""

import click

from autoledger.domain.ledger import LedgerService
from autoledger.domain.rules import RuleService


@click.command("init")
@click.pass_context
def init_ledger(ctx):
    """Seed the default chart of accounts and system rules.

    Existing accounts and rules are left alone, so running this twice is safe.

    Examples:
        autoledger init
    """
    db = ctx.obj["db"]
    accounts = LedgerService(db).seed_chart()
    rules = RuleService(db).seed_system_rules()
    click.echo(f"Created {accounts} accounts and {rules} system rules")


def register_commands(cli):
    """Register init command with main CLI."""
    cli.add_command(init_ledger)
