"""Domain model entities for autoledger.

These are pure data classes representing business concepts, independent of
database schema. Services and the classification pipeline only ever see
these, never the ORM models.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class AccountType(str, Enum):
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"


class ContactRole(str, Enum):
    CUSTOMER = "Customer"
    SUPPLIER = "Supplier"
    BOTH = "Both"


class EntryStatus(str, Enum):
    DRAFT = "Draft"
    FINAL = "Final"


class TransactionStatus(str, Enum):
    UNMATCHED = "Unmatched"
    MATCHED = "Matched"
    PENDING = "Pending"
    BOOKED = "Booked"
    RECONCILED = "Reconciled"


# Statuses from which a bank transaction may still be booked.
OPEN_STATUSES = (TransactionStatus.UNMATCHED, TransactionStatus.MATCHED)


class PostingMode(str, Enum):
    DIRECT = "Direct"
    RELATION = "Relation"


class MatchType(str, Enum):
    CONTAINS = "Contains"
    EXACT = "Exact"


class InvoiceKind(str, Enum):
    SALES = "Sales"
    PURCHASE = "Purchase"


class InvoiceStatus(str, Enum):
    OPEN = "Open"
    PAID = "Paid"


class SuggestionSource(str, Enum):
    INVOICE_MATCH = "invoice_match"
    RULE = "rule"
    CONTACT = "contact"
    VENDOR_TABLE = "vendor_table"
    ENRICHMENT = "enrichment"
    KEYWORD_INFERENCE = "keyword_inference"
    USER = "user"


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity."""

    id: int
    code: str
    name: str
    account_type: AccountType
    is_active: bool
    system_protected: bool
    capital_asset: bool
    reference: str
    created_at: datetime


@dataclass(frozen=True)
class Contact:
    """Customer or supplier domain entity."""

    id: int
    name: str
    role: ContactRole
    default_account_id: Optional[int]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class JournalLine:
    """A single debit or credit line of a journal entry."""

    id: int
    entry_id: int
    account_id: int
    debit: Decimal
    credit: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class JournalEntry:
    """Journal entry domain entity with its ordered lines."""

    id: int
    entry_date: date
    description: str
    status: EntryStatus
    entry_type: Optional[str]
    bank_transaction_id: Optional[int]
    contact_id: Optional[int]
    created_at: datetime
    lines: tuple[JournalLine, ...] = ()

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return bool(self.lines) and self.total_debit == self.total_credit


@dataclass(frozen=True)
class Suggestion:
    """Scored classification proposal for one bank transaction.

    Not persisted as its own entity; it is stored as a payload on the
    bank transaction it was produced for.
    """

    score: int
    source: SuggestionSource
    reason: str
    mode: PostingMode
    account_id: Optional[int] = None
    contact_id: Optional[int] = None
    description: Optional[str] = None
    account_confidence: Optional[int] = None
    invoice_id: Optional[int] = None
    rule_id: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        payload = asdict(self)
        payload["source"] = self.source.value
        payload["mode"] = self.mode.value
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Suggestion":
        """Rebuild a suggestion from a stored payload."""
        data = dict(payload)
        data["source"] = SuggestionSource(data["source"])
        data["mode"] = PostingMode(data["mode"])
        return cls(**data)


@dataclass(frozen=True)
class BankTransaction:
    """Imported bank transaction domain entity."""

    id: int
    date: date
    amount: Decimal
    description: str
    counterparty: Optional[str]
    status: TransactionStatus
    confidence_score: Optional[int]
    suggestion: Optional[Suggestion]
    posting_mode: Optional[PostingMode]
    contact_id: Optional[int]
    imported_at: datetime

    @property
    def is_expense(self) -> bool:
        return self.amount < 0


@dataclass(frozen=True)
class Rule:
    """Keyword to account/contact classification rule."""

    id: int
    keyword: str
    match_type: MatchType
    account_id: Optional[int]
    contact_id: Optional[int]
    priority: int
    is_active: bool
    use_count: int
    last_used: Optional[datetime]
    is_system: bool
    created_at: datetime

    @property
    def mode(self) -> PostingMode:
        return PostingMode.RELATION if self.contact_id is not None else PostingMode.DIRECT


@dataclass(frozen=True)
class Invoice:
    """Sales or purchase invoice awaiting payment."""

    id: int
    number: str
    kind: InvoiceKind
    contact_id: int
    invoice_date: date
    total_amount: Decimal
    status: InvoiceStatus
    created_at: datetime


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only view of the ledger data the classification pipeline reads.

    Built once per batch so classification never touches the database
    session and can run in worker threads.
    """

    accounts: tuple[Account, ...] = ()
    contacts: tuple[Contact, ...] = ()
    rules: tuple[Rule, ...] = ()
    open_invoices: tuple[Invoice, ...] = ()
    _accounts_by_id: dict = field(default_factory=dict, repr=False, compare=False)
    _accounts_by_code: dict = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        self._accounts_by_id.update({acc.id: acc for acc in self.accounts})
        self._accounts_by_code.update({acc.code: acc for acc in self.accounts})

    def account(self, account_id: Optional[int]) -> Optional[Account]:
        if account_id is None:
            return None
        return self._accounts_by_id.get(account_id)

    def account_by_code(self, code: str) -> Optional[Account]:
        return self._accounts_by_code.get(code)

    def contact(self, contact_id: Optional[int]) -> Optional[Contact]:
        for contact in self.contacts:
            if contact.id == contact_id:
                return contact
        return None
