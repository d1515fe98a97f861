"""Settlement: clear a suspense posting against the invoice it paid."""

import logging
from typing import Optional, Sequence

from autoledger.config import PipelineConfig
from autoledger.database.base import Database
from autoledger.domain.chart import (
    CREDITORS_CODE,
    DEBTORS_CODE,
    PURCHASE_SUSPENSE_CODE,
    SALES_SUSPENSE_CODE,
)
from autoledger.domain.entities import (
    BankTransaction,
    Invoice,
    InvoiceKind,
    InvoiceStatus,
    JournalEntry,
    TransactionStatus,
)
from autoledger.domain.errors import (
    ConflictError,
    UnsupportedOperationError,
    ValidationError,
    status_conflict,
)
from autoledger.domain.invoices import InvoiceService
from autoledger.domain.ledger import LedgerService, LineSpec
from autoledger.domain.transactions import TransactionService

logger = logging.getLogger(__name__)

SETTLEMENT_ENTRY = "settlement"


class SettlementService:
    """Moves Pending transactions to Reconciled.

    A purchase payment parked on the purchase suspense account is cleared
    against creditors; a sales receipt parked on the sales suspense account
    is cleared against debtors. Only one-to-one settlement of the full
    amount is supported.
    """

    def __init__(self, db: Database, config: Optional[PipelineConfig] = None):
        """Initialize settlement service.

        Args:
            db: Database instance
            config: Pipeline configuration (amount tolerance and date window)
        """
        self.db = db
        self.config = config or PipelineConfig()
        self.ledger = LedgerService(db)
        self.transactions = TransactionService(db)
        self.invoices = InvoiceService(db)

    def _check_pair(self, txn: BankTransaction, invoice: Invoice) -> None:
        if txn.status != TransactionStatus.PENDING:
            raise ConflictError(status_conflict(txn.id, "Pending", txn.status.value))
        if invoice.status != InvoiceStatus.OPEN:
            raise ConflictError(f"Invoice {invoice.number} is already {invoice.status.value}")
        expected_kind = InvoiceKind.PURCHASE if txn.is_expense else InvoiceKind.SALES
        if invoice.kind != expected_kind:
            raise ValidationError(
                f"A {'payment' if txn.is_expense else 'receipt'} cannot settle "
                f"{invoice.kind.value.lower()} invoice {invoice.number}"
            )
        if txn.contact_id is not None and invoice.contact_id != txn.contact_id:
            raise ValidationError(
                f"Invoice {invoice.number} belongs to a different contact than transaction {txn.id}"
            )
        if abs(abs(txn.amount) - invoice.total_amount) > self.config.amount_epsilon:
            raise UnsupportedOperationError(
                f"Partial settlement is not supported: transaction {txn.id} is "
                f"{abs(txn.amount):.2f}, invoice {invoice.number} is {invoice.total_amount:.2f}"
            )

    def settle(self, transaction_id: int, invoice_ids: Sequence[int]) -> JournalEntry:
        """Settle a Pending transaction against exactly one invoice.

        Args:
            transaction_id: Pending bank transaction
            invoice_ids: Invoices to settle against; exactly one is supported

        Returns:
            The settlement journal entry

        Raises:
            UnsupportedOperationError: For several invoices or a partial amount
            ConflictError: If the transaction is not Pending or the invoice not Open
            ValidationError: If the invoice kind or contact does not fit
        """
        invoice_ids = list(invoice_ids)
        if len(invoice_ids) != 1:
            raise UnsupportedOperationError(
                "Settling one transaction against several invoices is not supported"
                if invoice_ids
                else "An invoice is required to settle a transaction"
            )
        txn = self.transactions.require_transaction(transaction_id)
        invoice = self.invoices.require_invoice(invoice_ids[0])
        self._check_pair(txn, invoice)

        amount = invoice.total_amount
        if invoice.kind == InvoiceKind.PURCHASE:
            debit_code, credit_code = CREDITORS_CODE, PURCHASE_SUSPENSE_CODE
        else:
            debit_code, credit_code = SALES_SUSPENSE_CODE, DEBTORS_CODE
        lines = [
            LineSpec(account_id=self.ledger.require_account_by_code(debit_code).id, debit=amount),
            LineSpec(account_id=self.ledger.require_account_by_code(credit_code).id, credit=amount),
        ]

        with self.db.atomic():
            self.db.transition_bank_transaction(
                txn.id,
                expected=(TransactionStatus.PENDING,),
                new_status=TransactionStatus.RECONCILED,
            )
            self.db.transition_invoice(
                invoice.id, expected=InvoiceStatus.OPEN, new_status=InvoiceStatus.PAID
            )
            entry = self.ledger.post_entry(
                entry_date=txn.date,
                description=f"Settlement: invoice {invoice.number}",
                lines=lines,
                entry_type=SETTLEMENT_ENTRY,
                bank_transaction_id=txn.id,
                contact_id=invoice.contact_id,
            )
        logger.info("Settled transaction %d against invoice %s", txn.id, invoice.number)
        return entry

    def find_settlement_candidates(self, transaction_id: int) -> list[Invoice]:
        """Open invoices a Pending transaction could settle in full."""
        txn = self.transactions.require_transaction(transaction_id)
        kind = InvoiceKind.PURCHASE if txn.is_expense else InvoiceKind.SALES
        return [
            invoice
            for invoice in self.invoices.list_invoices(open_only=True)
            if invoice.kind == kind
            and (txn.contact_id is None or invoice.contact_id == txn.contact_id)
            and abs(abs(txn.amount) - invoice.total_amount) <= self.config.amount_epsilon
        ]

    def auto_settle(self, transaction_id: int) -> Optional[JournalEntry]:
        """Settle a Pending transaction if exactly one invoice fits it.

        Returns:
            The settlement entry, or None when zero or several invoices fit
        """
        txn = self.transactions.require_transaction(transaction_id)
        if txn.status != TransactionStatus.PENDING:
            return None
        suggested = txn.suggestion.invoice_id if txn.suggestion else None
        if suggested is not None:
            candidates = [inv for inv in self.find_settlement_candidates(txn.id) if inv.id == suggested]
        else:
            candidates = self.find_settlement_candidates(txn.id)
        if len(candidates) != 1:
            logger.debug(
                "Transaction %d has %d settlement candidates; left Pending",
                txn.id, len(candidates),
            )
            return None
        return self.settle(txn.id, [candidates[0].id])
