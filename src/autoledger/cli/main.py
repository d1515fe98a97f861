"""Main CLI entry point."""

import logging

import click

from autoledger.config import PipelineConfig
from autoledger.database.factories import DB_PATH_ENVVAR, create_sqlite_database
from autoledger.domain.errors import ValidationError

# Import and register all commands at module level
from autoledger.cli.commands import (
    account,
    classify,
    contact,
    init_ledger,
    invoice,
    review,
    rule,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides AUTOLEDGER_DB_PATH environment variable)",
    envvar=DB_PATH_ENVVAR,
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Autoledger - bank transaction classification and bookkeeping.

    Classify imported bank transactions onto a double-entry ledger, book
    the confident ones automatically and learn from your corrections.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            ctx.obj["config"] = PipelineConfig.from_env()
        except ValidationError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
init_ledger.register_commands(cli)
account.register_commands(cli)
contact.register_commands(cli)
invoice.register_commands(cli)
transaction.register_commands(cli)
rule.register_commands(cli)
classify.register_commands(cli)
review.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
