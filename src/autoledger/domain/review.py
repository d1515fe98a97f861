"""Review workflow: accept or correct a suggestion, then learn from it."""

import logging
from typing import Optional

from autoledger.config import PipelineConfig
from autoledger.database.base import Database
from autoledger.domain.booking import BookingEngine
from autoledger.domain.entities import (
    JournalEntry,
    PostingMode,
    Suggestion,
    SuggestionSource,
)
from autoledger.domain.errors import ValidationError
from autoledger.domain.rules import RuleService
from autoledger.domain.settlement import SettlementService
from autoledger.domain.transactions import TransactionService

logger = logging.getLogger(__name__)


class ReviewService:
    """User decisions on classified transactions.

    Only decisions made here feed the rule store; automatic bookings by the
    batch processor never do.
    """

    def __init__(self, db: Database, config: Optional[PipelineConfig] = None):
        """Initialize review service.

        Args:
            db: Database instance
            config: Pipeline configuration
        """
        self.db = db
        self.config = config or PipelineConfig()
        self.booking = BookingEngine(db)
        self.settlement = SettlementService(db, self.config)
        self.rules = RuleService(db)
        self.transactions = TransactionService(db)

    def accept(self, transaction_id: int) -> list[JournalEntry]:
        """Book the stored suggestion as-is and learn from it.

        Returns:
            Journal entries created (booking, plus settlement for invoice matches)

        Raises:
            ValidationError: If the transaction has no stored suggestion
        """
        txn = self.transactions.require_transaction(transaction_id)
        if txn.suggestion is None:
            raise ValidationError(f"Transaction {txn.id} has no suggestion to accept")
        suggestion = txn.suggestion

        entries = self.booking.book(txn.id, suggestion)
        if suggestion.invoice_id is not None:
            entries.append(self.settlement.settle(txn.id, [suggestion.invoice_id]))
        self._learn(txn.id, suggestion)
        return entries

    def correct(
        self,
        transaction_id: int,
        mode: PostingMode,
        account_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        description: Optional[str] = None,
        create_contact: bool = False,
    ) -> list[JournalEntry]:
        """Book a transaction the way the user says and learn the decision.

        Args:
            transaction_id: Transaction to book
            mode: Direct or Relation
            account_id: Target account (required for Direct)
            contact_id: Target contact (required for Relation unless create_contact)
            description: Optional booking description
            create_contact: Book Relation mode against the counterparty's contact,
                creating it when it does not exist yet

        Returns:
            Journal entries created
        """
        suggestion = Suggestion(
            score=100,
            source=SuggestionSource.USER,
            reason="Chosen by user",
            mode=PostingMode(mode),
            account_id=account_id,
            contact_id=contact_id,
            description=description,
        )
        entries = self.booking.book(transaction_id, suggestion, create_contact=create_contact)
        self._learn(transaction_id, suggestion)
        return entries

    def _learn(self, transaction_id: int, suggestion: Suggestion) -> None:
        txn = self.transactions.require_transaction(transaction_id)
        rule = self.rules.learn(
            txn, suggestion.mode, suggestion.account_id, suggestion.contact_id or txn.contact_id
        )
        if rule is not None:
            logger.debug("Decision on transaction %d stored as rule %d", txn.id, rule.id)
