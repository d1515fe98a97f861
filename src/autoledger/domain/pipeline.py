"""Classification pipeline: ordered layers, first match wins."""

import logging
from enum import Enum
from typing import Optional, Sequence

from autoledger.config import PipelineConfig
from autoledger.database.base import Database
from autoledger.domain.entities import (
    BankTransaction,
    InvoiceStatus,
    LedgerSnapshot,
    Suggestion,
)
from autoledger.domain.matchers import (
    ContactMatcher,
    EnrichmentMatcher,
    InvoiceMatcher,
    KeywordInferenceMatcher,
    Matcher,
    RuleMatcher,
    VendorMatcher,
)
from autoledger.enrichment.client import EnrichmentClient

logger = logging.getLogger(__name__)


class Routing(str, Enum):
    """What happens to a suggestion after classification."""

    AUTO_BOOK = "auto-book"
    SUGGEST = "suggest"
    MANUAL = "manual"


def load_snapshot(db: Database) -> LedgerSnapshot:
    """Read everything the pipeline needs from the database once."""
    return LedgerSnapshot(
        accounts=tuple(db.list_accounts()),
        contacts=tuple(db.list_contacts(active_only=True)),
        rules=tuple(db.list_rules(active_only=True)),
        open_invoices=tuple(db.list_invoices(status=InvoiceStatus.OPEN)),
    )


def default_matchers(
    snapshot: LedgerSnapshot,
    config: PipelineConfig,
    enrichment: Optional[EnrichmentClient] = None,
) -> list[Matcher]:
    """The six layers in priority order."""
    return [
        InvoiceMatcher(snapshot, config),
        RuleMatcher(snapshot, config),
        ContactMatcher(snapshot, config, enrichment),
        VendorMatcher(snapshot, config),
        EnrichmentMatcher(snapshot, config, enrichment),
        KeywordInferenceMatcher(snapshot, config),
    ]


class ClassificationPipeline:
    """Produces one scored suggestion per bank transaction.

    Layers are evaluated strictly in order and the first non-null
    suggestion is returned; later layers are never evaluated for that
    transaction. Classification only reads the snapshot, so one pipeline
    can classify independent transactions from several threads.
    """

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        config: Optional[PipelineConfig] = None,
        enrichment: Optional[EnrichmentClient] = None,
        matchers: Optional[Sequence[Matcher]] = None,
    ):
        """Initialize the pipeline.

        Args:
            snapshot: Accounts, contacts, rules and open invoices to match against
            config: Thresholds and budgets; defaults to PipelineConfig()
            enrichment: Enrichment client, or None to run without it
            matchers: Custom layer list; defaults to the six standard layers
        """
        self.snapshot = snapshot
        self.config = config or PipelineConfig()
        self.enrichment = enrichment
        if matchers is None:
            matchers = default_matchers(snapshot, self.config, enrichment)
        self.matchers = list(matchers)

    @classmethod
    def from_database(
        cls,
        db: Database,
        config: Optional[PipelineConfig] = None,
        enrichment: Optional[EnrichmentClient] = None,
    ) -> "ClassificationPipeline":
        """Build a pipeline over a fresh snapshot of the database."""
        return cls(load_snapshot(db), config=config, enrichment=enrichment)

    def classify(self, transaction: BankTransaction) -> Optional[Suggestion]:
        """Return the first layer's suggestion for a transaction."""
        for matcher in self.matchers:
            suggestion = matcher.try_classify(transaction)
            if suggestion is not None:
                logger.debug(
                    "Transaction %d classified by %s layer (score %d)",
                    transaction.id, matcher.name, suggestion.score,
                )
                return suggestion
        return None

    def route(self, suggestion: Optional[Suggestion]) -> Routing:
        """Map a suggestion's score onto auto-book, suggest or manual."""
        if suggestion is None:
            return Routing.MANUAL
        if suggestion.score >= self.config.auto_book_threshold:
            return Routing.AUTO_BOOK
        if suggestion.score >= self.config.suggest_threshold:
            return Routing.SUGGEST
        return Routing.MANUAL
