"""Booking engine: turn an accepted suggestion into ledger postings."""

import logging
from dataclasses import replace
from decimal import Decimal

from autoledger.database.base import Database
from autoledger.domain.chart import (
    BANK_ACCOUNT_CODE,
    PURCHASE_SUSPENSE_CODE,
    SALES_SUSPENSE_CODE,
)
from autoledger.domain.entities import (
    OPEN_STATUSES,
    BankTransaction,
    ContactRole,
    JournalEntry,
    PostingMode,
    Suggestion,
    TransactionStatus,
)
from autoledger.domain.errors import (
    ConflictError,
    MissingFieldError,
    NotFoundError,
    ValidationError,
    contact_not_found,
    status_conflict,
)
from autoledger.domain.ledger import LedgerService, LineSpec
from autoledger.domain.transactions import TransactionService

logger = logging.getLogger(__name__)

BANK_ENTRY = "bank"
REVERSAL_ENTRY = "reversal"
SUSPENSE_CODES = (SALES_SUSPENSE_CODE, PURCHASE_SUSPENSE_CODE)


class BookingEngine:
    """Posts bank transactions in Direct or Relation mode.

    Direct mode books bank against the chosen revenue/expense account and
    the transaction is Booked. Relation mode books bank against a suspense
    account and leaves the transaction Pending until settlement.
    """

    def __init__(self, db: Database):
        """Initialize booking engine.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = LedgerService(db)
        self.transactions = TransactionService(db)

    def book(
        self, transaction_id: int, suggestion: Suggestion, create_contact: bool = False
    ) -> list[JournalEntry]:
        """Book a transaction according to a suggestion.

        Args:
            transaction_id: Bank transaction to book
            suggestion: Accepted suggestion (mode, account, contact)
            create_contact: In Relation mode without a contact, book against
                the contact named like the counterparty, creating it if needed

        Returns:
            The journal entries created

        Raises:
            MissingFieldError: If Direct mode lacks an account or Relation mode a contact
            ValidationError: If the target account cannot be booked to
            ConflictError: If the transaction was already booked
            BalanceError: If the entry would not balance
        """
        txn = self.transactions.require_transaction(transaction_id)
        if txn.status not in OPEN_STATUSES:
            raise ConflictError(status_conflict(txn.id, "Unmatched", txn.status.value))

        mode = PostingMode(suggestion.mode)
        description = suggestion.description or txn.counterparty or txn.description
        with self.db.atomic():
            if mode == PostingMode.RELATION and suggestion.contact_id is None and create_contact:
                suggestion = self._with_counterparty_contact(txn, suggestion)
            if mode == PostingMode.DIRECT:
                lines, new_status = self._direct_lines(txn, suggestion)
            else:
                lines, new_status = self._relation_lines(txn, suggestion)

            # Conditional update first: a concurrent loser fails before posting
            self.db.transition_bank_transaction(
                txn.id,
                expected=OPEN_STATUSES,
                new_status=new_status,
                posting_mode=mode,
                contact_id=suggestion.contact_id,
                suggestion=suggestion.to_payload(),
                confidence_score=suggestion.score,
            )
            entry = self.ledger.post_entry(
                entry_date=txn.date,
                description=description,
                lines=lines,
                entry_type=BANK_ENTRY,
                bank_transaction_id=txn.id,
                contact_id=suggestion.contact_id,
            )
        logger.info(
            "Booked transaction %d in %s mode (%s)", txn.id, mode.value, new_status.value
        )
        return [entry]

    def _bank_lines(
        self, txn: BankTransaction, counter_account_id: int
    ) -> list[LineSpec]:
        bank = self.ledger.require_account_by_code(BANK_ACCOUNT_CODE)
        amount = abs(txn.amount)
        if txn.is_expense:
            return [
                LineSpec(account_id=counter_account_id, debit=amount),
                LineSpec(account_id=bank.id, credit=amount),
            ]
        return [
            LineSpec(account_id=bank.id, debit=amount),
            LineSpec(account_id=counter_account_id, credit=amount),
        ]

    def _direct_lines(self, txn: BankTransaction, suggestion: Suggestion):
        if suggestion.account_id is None:
            raise MissingFieldError("Direct mode booking requires an account")
        account = self.ledger.require_account(suggestion.account_id)
        if not account.is_active:
            raise ValidationError(f"Account {account.code} is inactive")
        if account.code in SUSPENSE_CODES or account.code == BANK_ACCOUNT_CODE:
            raise ValidationError(
                f"Account {account.code} is reserved and cannot be a booking target"
            )
        return self._bank_lines(txn, account.id), TransactionStatus.BOOKED

    def _with_counterparty_contact(self, txn: BankTransaction, suggestion: Suggestion) -> Suggestion:
        if not txn.counterparty:
            raise MissingFieldError(
                "Relation mode booking requires a contact or a counterparty name"
            )
        role = ContactRole.SUPPLIER if txn.is_expense else ContactRole.CUSTOMER
        contact_id = self.ledger.find_or_create_contact(txn.counterparty, role)
        return replace(suggestion, contact_id=contact_id)

    def _relation_lines(self, txn: BankTransaction, suggestion: Suggestion):
        if suggestion.contact_id is None:
            raise MissingFieldError("Relation mode booking requires a contact")
        if self.db.get_contact(suggestion.contact_id) is None:
            raise NotFoundError(contact_not_found(suggestion.contact_id))
        # Payments wait for a purchase invoice, receipts for a sales invoice
        code = PURCHASE_SUSPENSE_CODE if txn.is_expense else SALES_SUSPENSE_CODE
        suspense = self.ledger.require_account_by_code(code)
        return self._bank_lines(txn, suspense.id), TransactionStatus.PENDING

    def reverse(self, transaction_id: int) -> JournalEntry:
        """Undo a Booked or Pending booking so the transaction can be rebooked.

        Posts a mirror image of the latest bank entry and moves the
        transaction back to Unmatched.

        Raises:
            ConflictError: If the transaction is not Booked or Pending
            NotFoundError: If no bank entry exists for the transaction
        """
        txn = self.transactions.require_transaction(transaction_id)
        reversible = (TransactionStatus.BOOKED, TransactionStatus.PENDING)
        if txn.status not in reversible:
            raise ConflictError(status_conflict(txn.id, "Booked/Pending", txn.status.value))

        bank_entries = [
            entry for entry in self.ledger.list_entries(bank_transaction_id=txn.id)
            if entry.entry_type == BANK_ENTRY
        ]
        if not bank_entries:
            raise NotFoundError(f"No bank entry found for transaction {txn.id}")
        original = bank_entries[-1]

        mirror = [
            LineSpec(
                account_id=line.account_id,
                debit=line.credit if line.credit > 0 else Decimal("0"),
                credit=line.debit if line.debit > 0 else Decimal("0"),
            )
            for line in original.lines
        ]
        with self.db.atomic():
            self.db.transition_bank_transaction(
                txn.id, expected=reversible, new_status=TransactionStatus.UNMATCHED
            )
            entry = self.ledger.post_entry(
                entry_date=txn.date,
                description=f"Reversal: {original.description}",
                lines=mirror,
                entry_type=REVERSAL_ENTRY,
                bank_transaction_id=txn.id,
                contact_id=original.contact_id,
            )
        logger.info("Reversed entry %d for transaction %d", original.id, txn.id)
        return entry
