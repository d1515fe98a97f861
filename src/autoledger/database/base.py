"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

# Import entities directly; domain/__init__.py stays import-free
from autoledger.domain.entities import (
    Account,
    AccountType,
    BankTransaction,
    Contact,
    ContactRole,
    EntryStatus,
    Invoice,
    InvoiceKind,
    InvoiceStatus,
    JournalEntry,
    MatchType,
    PostingMode,
    Rule,
    TransactionStatus,
)


class Database(ABC):
    """Abstract database interface for autoledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Group writes so they commit together or roll back together.

        Nested blocks join the outermost one.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        system_protected: bool = False,
        capital_asset: bool = False,
    ) -> int:
        """Create a new ledger account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get account by its unique code."""
        pass

    @abstractmethod
    def list_accounts(self, active_only: bool = False) -> list[Account]:
        """List accounts ordered by code."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Physically delete an account."""
        pass

    @abstractmethod
    def get_account_line_count(self, account_id: int) -> int:
        """Get count of journal lines posted to an account."""
        pass

    # Contact operations
    @abstractmethod
    def create_contact(
        self, name: str, role: ContactRole, default_account_id: Optional[int] = None
    ) -> int:
        """Create a new contact. Returns contact ID."""
        pass

    @abstractmethod
    def get_contact(self, contact_id: int) -> Optional[Contact]:
        """Get contact by ID."""
        pass

    @abstractmethod
    def list_contacts(self, active_only: bool = False) -> list[Contact]:
        """List contacts ordered by name."""
        pass

    @abstractmethod
    def update_contact_default_account(
        self, contact_id: int, account_id: Optional[int]
    ) -> None:
        """Set or clear a contact's default account."""
        pass

    # Journal operations
    @abstractmethod
    def create_journal_entry(
        self,
        entry_date: date,
        description: str,
        entry_type: Optional[str] = None,
        bank_transaction_id: Optional[int] = None,
        contact_id: Optional[int] = None,
    ) -> int:
        """Create a Draft journal entry. Returns entry ID."""
        pass

    @abstractmethod
    def add_journal_line(
        self,
        entry_id: int,
        account_id: int,
        debit: Decimal,
        credit: Decimal,
        description: Optional[str] = None,
    ) -> int:
        """Append a line to a journal entry. Returns line ID."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry with its lines."""
        pass

    @abstractmethod
    def set_journal_entry_status(self, entry_id: int, status: EntryStatus) -> None:
        """Write the status of a journal entry."""
        pass

    @abstractmethod
    def list_journal_entries(
        self, bank_transaction_id: Optional[int] = None
    ) -> list[JournalEntry]:
        """List journal entries, optionally for one bank transaction."""
        pass

    # Bank transaction operations
    @abstractmethod
    def create_bank_transaction(
        self,
        date: date,
        amount: Decimal,
        description: str,
        counterparty: Optional[str] = None,
    ) -> int:
        """Create an Unmatched bank transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_bank_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self, statuses: Optional[Iterable[TransactionStatus]] = None
    ) -> list[BankTransaction]:
        """List bank transactions ordered by date, optionally by status."""
        pass

    @abstractmethod
    def save_suggestion(
        self,
        transaction_id: int,
        suggestion: Optional[dict[str, Any]],
        confidence_score: Optional[int],
        expected: Iterable[TransactionStatus],
        new_status: TransactionStatus,
    ) -> None:
        """Store a classification payload if the status is still expected.

        Raises:
            ConflictError: If the transaction left the expected statuses
        """
        pass

    @abstractmethod
    def transition_bank_transaction(
        self,
        transaction_id: int,
        expected: Iterable[TransactionStatus],
        new_status: TransactionStatus,
        posting_mode: Optional[PostingMode] = None,
        contact_id: Optional[int] = None,
        suggestion: Optional[dict[str, Any]] = None,
        confidence_score: Optional[int] = None,
    ) -> None:
        """Conditionally move a bank transaction to a new status.

        The update only applies while the current status is one of
        ``expected``; this is the serialization point for concurrent
        booking and settlement. Moving back to Unmatched clears the
        posting mode, contact and stored suggestion.

        Raises:
            NotFoundError: If the transaction does not exist
            ConflictError: If the transaction left the expected statuses
        """
        pass

    # Rule operations
    @abstractmethod
    def create_rule(
        self,
        keyword: str,
        match_type: MatchType,
        account_id: Optional[int],
        contact_id: Optional[int],
        priority: int,
        is_system: bool = False,
    ) -> int:
        """Create a new rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: int) -> Optional[Rule]:
        """Get rule by ID."""
        pass

    @abstractmethod
    def list_rules(self, active_only: bool = False) -> list[Rule]:
        """List rules by priority (highest first), then keyword length."""
        pass

    @abstractmethod
    def find_rule_by_keyword(self, keyword: str) -> Optional[Rule]:
        """Find an active rule whose keyword equals ``keyword`` (case-insensitive)."""
        pass

    @abstractmethod
    def record_rule_use(self, rule_id: int, used_at: datetime) -> None:
        """Increment a rule's usage counter and set its last-used timestamp."""
        pass

    @abstractmethod
    def set_rule_active(self, rule_id: int, is_active: bool) -> None:
        """Activate or deactivate a rule."""
        pass

    # Invoice operations
    @abstractmethod
    def create_invoice(
        self,
        number: str,
        kind: InvoiceKind,
        contact_id: int,
        invoice_date: date,
        total_amount: Decimal,
    ) -> int:
        """Create an Open invoice. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def list_invoices(self, status: Optional[InvoiceStatus] = None) -> list[Invoice]:
        """List invoices ordered by date, optionally by status."""
        pass

    @abstractmethod
    def transition_invoice(
        self, invoice_id: int, expected: InvoiceStatus, new_status: InvoiceStatus
    ) -> None:
        """Conditionally move an invoice to a new status.

        Raises:
            ConflictError: If the invoice is no longer in ``expected``
        """
        pass
