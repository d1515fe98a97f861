"""Batch classification, auto-booking and reporting."""

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Optional

from autoledger.config import PipelineConfig
from autoledger.database.base import Database
from autoledger.domain.booking import BookingEngine
from autoledger.domain.entities import (
    OPEN_STATUSES,
    BankTransaction,
    PostingMode,
    Suggestion,
    TransactionStatus,
)
from autoledger.domain.errors import DomainError
from autoledger.domain.pipeline import ClassificationPipeline, Routing, load_snapshot
from autoledger.domain.settlement import SettlementService
from autoledger.domain.transactions import TransactionService
from autoledger.enrichment.client import EnrichmentClient

logger = logging.getLogger(__name__)

HISTOGRAM_BUCKETS = tuple(
    f"{low}-{low + 9}" if low < 90 else "90-100" for low in range(0, 100, 10)
)


def histogram_bucket(score: int) -> str:
    """Ten-point bucket label for a confidence score; 100 falls in 90-100."""
    return HISTOGRAM_BUCKETS[min(max(score, 0) // 10, 9)]


@dataclass(frozen=True)
class TransactionOutcome:
    """What happened to one transaction in a batch."""

    transaction_id: int
    routing: Routing
    status: TransactionStatus
    score: Optional[int] = None
    source: Optional[str] = None
    mode: Optional[PostingMode] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    settled: bool = False


@dataclass
class BatchReport:
    """Aggregate counts for one batch run."""

    total_processed: int = 0
    auto_booked_direct: int = 0
    auto_booked_relation: int = 0
    needs_review: int = 0
    errors: int = 0
    settled: int = 0
    histogram: dict[str, int] = field(
        default_factory=lambda: OrderedDict((bucket, 0) for bucket in HISTOGRAM_BUCKETS)
    )
    details: list[TransactionOutcome] = field(default_factory=list)

    @property
    def auto_booked(self) -> int:
        return self.auto_booked_direct + self.auto_booked_relation

    def add(self, outcome: TransactionOutcome) -> None:
        self.details.append(outcome)
        self.total_processed += 1
        if outcome.score is not None:
            self.histogram[histogram_bucket(outcome.score)] += 1
        if outcome.error:
            self.errors += 1
        if outcome.settled:
            self.settled += 1
        if outcome.status in (TransactionStatus.BOOKED, TransactionStatus.PENDING,
                              TransactionStatus.RECONCILED):
            if outcome.mode == PostingMode.RELATION:
                self.auto_booked_relation += 1
            else:
                self.auto_booked_direct += 1
        else:
            self.needs_review += 1


class BatchProcessor:
    """Runs the pipeline over a batch and books what is certain enough.

    Classification runs in parallel against a snapshot of the ledger;
    booking and settlement run one transaction at a time afterwards.
    Automatic bookings are never fed back into the rule store.
    """

    def __init__(
        self,
        db: Database,
        config: Optional[PipelineConfig] = None,
        enrichment: Optional[EnrichmentClient] = None,
    ):
        """Initialize batch processor.

        Args:
            db: Database instance
            config: Thresholds and worker count
            enrichment: Enrichment client, or None to classify without it
        """
        self.db = db
        self.config = config or PipelineConfig()
        self.enrichment = enrichment
        self.transactions = TransactionService(db)
        self.booking = BookingEngine(db)
        self.settlement = SettlementService(db, self.config)

    def _select(self, transaction_ids: Optional[Iterable[int]]) -> list[BankTransaction]:
        if transaction_ids is None:
            return self.transactions.list_transactions(statuses=[TransactionStatus.UNMATCHED])
        selected = []
        for transaction_id in transaction_ids:
            txn = self.transactions.require_transaction(transaction_id)
            if txn.status in OPEN_STATUSES:
                selected.append(txn)
            else:
                logger.info("Skipping transaction %d: already %s", txn.id, txn.status.value)
        return selected

    def classify(
        self, transactions: list[BankTransaction], pipeline: ClassificationPipeline
    ) -> list[Optional[Suggestion]]:
        """Classify transactions in parallel, keeping input order."""
        if not transactions:
            return []
        workers = min(self.config.max_workers, len(transactions))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="classify") as executor:
            return list(executor.map(pipeline.classify, transactions))

    def run(self, transaction_ids: Optional[Iterable[int]] = None) -> BatchReport:
        """Classify, store and auto-book a batch.

        Args:
            transaction_ids: Transactions to process; defaults to all Unmatched

        Returns:
            BatchReport with counts, histogram and per-transaction details
        """
        transactions = self._select(transaction_ids)
        pipeline = ClassificationPipeline(
            load_snapshot(self.db), config=self.config, enrichment=self.enrichment
        )
        suggestions = self.classify(transactions, pipeline)

        report = BatchReport()
        for txn, suggestion in zip(transactions, suggestions):
            report.add(self._apply(txn, suggestion, pipeline.route(suggestion)))

        logger.info(
            "Batch done: %d processed, %d auto-booked (%d direct, %d relation), "
            "%d need review, %d errors",
            report.total_processed, report.auto_booked, report.auto_booked_direct,
            report.auto_booked_relation, report.needs_review, report.errors,
        )
        return report

    def _apply(
        self, txn: BankTransaction, suggestion: Optional[Suggestion], routing: Routing
    ) -> TransactionOutcome:
        if suggestion is None:
            return TransactionOutcome(txn.id, routing, txn.status)

        error = None
        if routing == Routing.AUTO_BOOK:
            try:
                self.booking.book(txn.id, suggestion)
            except DomainError as e:
                logger.warning("Auto-booking transaction %d failed: %s", txn.id, e)
                error = str(e)
            else:
                return self._booked_outcome(txn.id, suggestion, routing)

        try:
            self.db.save_suggestion(
                txn.id,
                suggestion.to_payload(),
                suggestion.score,
                expected=OPEN_STATUSES,
                new_status=TransactionStatus.MATCHED,
            )
            status = TransactionStatus.MATCHED
        except DomainError as e:
            logger.warning("Could not store suggestion for transaction %d: %s", txn.id, e)
            error = error or str(e)
            status = self.transactions.require_transaction(txn.id).status
        return TransactionOutcome(
            txn.id,
            routing if error is None else Routing.MANUAL,
            status,
            score=suggestion.score,
            source=suggestion.source.value,
            mode=suggestion.mode,
            reason=suggestion.reason,
            error=error,
        )

    def _booked_outcome(
        self, transaction_id: int, suggestion: Suggestion, routing: Routing
    ) -> TransactionOutcome:
        settled = False
        error = None
        if suggestion.mode == PostingMode.RELATION:
            try:
                settled = self.settlement.auto_settle(transaction_id) is not None
            except DomainError as e:
                logger.warning("Auto-settling transaction %d failed: %s", transaction_id, e)
                error = str(e)
        status = self.transactions.require_transaction(transaction_id).status
        return TransactionOutcome(
            transaction_id,
            routing,
            status,
            score=suggestion.score,
            source=suggestion.source.value,
            mode=suggestion.mode,
            reason=suggestion.reason,
            error=error,
            settled=settled,
        )
