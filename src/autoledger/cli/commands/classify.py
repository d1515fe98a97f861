"""Classification and batch processing commands."""

import click

from autoledger.cli.error_handling import handle_domain_error
from autoledger.config import EnrichmentSettings
from autoledger.domain.batch import BatchProcessor
from autoledger.domain.entities import TransactionStatus
from autoledger.domain.errors import DomainError
from autoledger.domain.ledger import LedgerService
from autoledger.domain.pipeline import ClassificationPipeline
from autoledger.domain.transactions import TransactionService
from autoledger.enrichment.client import build_enrichment_client


def _enrichment(ctx, enabled: bool):
    if not enabled:
        return None
    return build_enrichment_client(EnrichmentSettings.from_env(), ctx.obj["config"])


@click.command("classify")
@click.argument("transaction_ids", type=int, nargs=-1)
@click.option("--no-enrichment", is_flag=True, help="Skip the external enrichment layer")
@click.pass_context
def classify(ctx, transaction_ids: tuple[int, ...], no_enrichment: bool):
    """Show what the pipeline suggests, without storing or booking anything.

    Without TRANSACTION_IDS all Unmatched transactions are classified.
    """
    db = ctx.obj["db"]
    config = ctx.obj["config"]
    service = TransactionService(db)
    ledger = LedgerService(db)
    try:
        if transaction_ids:
            transactions = [service.require_transaction(i) for i in transaction_ids]
        else:
            transactions = service.list_transactions(statuses=[TransactionStatus.UNMATCHED])
    except DomainError as e:
        handle_domain_error(ctx, e)
    if not transactions:
        click.echo("No transactions to classify.")
        return

    pipeline = ClassificationPipeline.from_database(
        db, config=config, enrichment=_enrichment(ctx, not no_enrichment)
    )
    for txn in transactions:
        suggestion = pipeline.classify(txn)
        routing = pipeline.route(suggestion)
        text = (txn.counterparty or txn.description)[:30]
        if suggestion is None:
            click.echo(f"ID: {txn.id:4d} | {text:30s} | no suggestion")
            continue
        account = ledger.get_account(suggestion.account_id)
        contact = ledger.get_contact(suggestion.contact_id)
        target = account.code if account else "----"
        if contact:
            target = f"{target} ({contact.name})"
        click.echo(
            f"ID: {txn.id:4d} | {text:30s} | {suggestion.score:3d} {routing.value:9s} | "
            f"{suggestion.mode.value:8s} {target} | {suggestion.reason}"
        )


@click.command("process")
@click.argument("transaction_ids", type=int, nargs=-1)
@click.option("--no-enrichment", is_flag=True, help="Skip the external enrichment layer")
@click.option("--details", is_flag=True, help="Show the outcome per transaction")
@click.pass_context
def process(ctx, transaction_ids: tuple[int, ...], no_enrichment: bool, details: bool):
    """Classify transactions, store suggestions and auto-book confident ones.

    Without TRANSACTION_IDS all Unmatched transactions are processed.
    """
    processor = BatchProcessor(
        ctx.obj["db"], ctx.obj["config"], enrichment=_enrichment(ctx, not no_enrichment)
    )
    try:
        report = processor.run(list(transaction_ids) or None)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nBatch complete:")
    click.echo(f"  Processed: {report.total_processed}")
    click.echo(
        f"  Auto-booked: {report.auto_booked} "
        f"(direct {report.auto_booked_direct}, relation {report.auto_booked_relation})"
    )
    click.echo(f"  Settled: {report.settled}")
    click.echo(f"  Needs review: {report.needs_review}")
    if report.errors:
        click.echo(f"  Errors: {report.errors}")

    click.echo("\nConfidence:")
    for bucket, count in report.histogram.items():
        click.echo(f"  {bucket:>6s} | {'#' * count} {count}")

    if details:
        click.echo("")
        for outcome in report.details:
            line = (
                f"ID: {outcome.transaction_id:4d} | {outcome.status.value:10s} | "
                f"{outcome.score if outcome.score is not None else '-':>3} | "
                f"{outcome.source or '-'}"
            )
            if outcome.error:
                line += f" | error: {outcome.error}"
            click.echo(line)


def register_commands(cli):
    """Register classification commands with main CLI."""
    cli.add_command(classify)
    cli.add_command(process)
