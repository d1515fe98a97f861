"""CLI error handling helpers."""

import logging

import click

from autoledger.domain.errors import DomainError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure.

    The traceback is only logged at debug level, so ``--verbose`` shows
    where a refused booking or settlement came from.
    """
    logger.debug("%s failed", ctx.command_path, exc_info=error)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
