"""Ledger domain service: accounts, contacts and journal postings."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from autoledger.database.base import Database
from autoledger.domain.chart import DEFAULT_CHART
from autoledger.domain.entities import (
    Account,
    AccountType,
    Contact,
    ContactRole,
    EntryStatus,
    JournalEntry,
)
from autoledger.domain.errors import (
    BalanceError,
    ConflictError,
    DependencyError,
    NotFoundError,
    SystemAccountProtectionError,
    ValidationError,
    account_code_not_found,
    account_not_found,
    contact_not_found,
    protected_account,
    unbalanced_entry,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class LineSpec:
    """One line to post: an account and either a debit or a credit."""

    account_id: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: Optional[str] = None


def validate_line(debit: Decimal, credit: Decimal) -> None:
    """Check that a line is one-sided, non-negative and not empty.

    Raises:
        ValidationError: If the amounts are not a valid journal line
    """
    if debit < 0 or credit < 0:
        raise ValidationError("Debit and credit must not be negative")
    if debit > 0 and credit > 0:
        raise ValidationError("A journal line is either a debit or a credit, not both")
    if debit == 0 and credit == 0:
        raise ValidationError("A journal line needs a non-zero debit or credit")


def ensure_balanced(entry: JournalEntry) -> None:
    """Guard for the Draft -> Final transition.

    Raises:
        BalanceError: If the entry has no lines or debits differ from credits
    """
    if not entry.lines:
        raise BalanceError(f"Journal entry {entry.id} has no lines")
    if entry.total_debit != entry.total_credit:
        raise BalanceError(unbalanced_entry(entry.id, entry.total_debit, entry.total_credit))


class LedgerService:
    """Service for the chart of accounts, contacts and journal entries."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    # Accounts
    def seed_chart(self) -> int:
        """Create the default chart of accounts. Existing codes are skipped.

        Returns:
            Number of accounts created
        """
        created = 0
        with self.db.atomic():
            for code, name, account_type, protected, capital in DEFAULT_CHART:
                if self.db.get_account_by_code(code) is not None:
                    continue
                self.db.create_account(
                    code=code,
                    name=name,
                    account_type=account_type,
                    system_protected=protected,
                    capital_asset=capital,
                )
                created += 1
        logger.info("Seeded %d accounts", created)
        return created

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        system_protected: bool = False,
        capital_asset: bool = False,
    ) -> int:
        """Create a new ledger account.

        Args:
            code: Account code, unique within the ledger
            name: Account name
            account_type: Asset, Liability, Equity, Revenue or Expense
            system_protected: Refuse deletion and deactivation
            capital_asset: Account holds long-lived capital assets

        Returns:
            Account ID

        Raises:
            ValidationError: If code or name is empty
            ConflictError: If the code is already in use
        """
        code = code.strip()
        if not code or not name.strip():
            raise ValidationError("Account code and name are required")
        if self.db.get_account_by_code(code) is not None:
            raise ConflictError(f"Account with code '{code}' already exists")
        return self.db.create_account(
            code=code,
            name=name.strip(),
            account_type=AccountType(account_type),
            system_protected=system_protected,
            capital_asset=capital_asset,
        )

    def get_account(self, account_id: int) -> Optional[Account]:
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> Account:
        """Get an account or raise NotFoundError."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def require_account_by_code(self, code: str) -> Account:
        """Get an account by code or raise NotFoundError."""
        account = self.db.get_account_by_code(code)
        if account is None:
            raise NotFoundError(account_code_not_found(code))
        return account

    def list_accounts(self, active_only: bool = False) -> list[Account]:
        return self.db.list_accounts(active_only=active_only)

    def deactivate_account(self, account_id: int) -> None:
        """Soft-deactivate an account.

        Raises:
            NotFoundError: If the account does not exist
            SystemAccountProtectionError: If the account is system-protected
        """
        account = self.require_account(account_id)
        if account.system_protected:
            raise SystemAccountProtectionError(protected_account(account.code, "deactivated"))
        self.db.set_account_active(account_id, False)

    def delete_account(self, account_id: int) -> None:
        """Delete an account that was never posted to.

        Raises:
            NotFoundError: If the account does not exist
            SystemAccountProtectionError: If the account is system-protected
            DependencyError: If journal lines reference the account
        """
        account = self.require_account(account_id)
        if account.system_protected:
            raise SystemAccountProtectionError(protected_account(account.code, "deleted"))
        line_count = self.db.get_account_line_count(account_id)
        if line_count > 0:
            raise DependencyError(
                f"Cannot delete account {account.code}: it has {line_count} "
                f"journal line{'s' if line_count != 1 else ''}. Deactivate it instead."
            )
        self.db.delete_account(account_id)

    # Contacts
    def create_contact(
        self,
        name: str,
        role: ContactRole = ContactRole.SUPPLIER,
        default_account_id: Optional[int] = None,
    ) -> int:
        """Create a new contact.

        Raises:
            ValidationError: If the name is empty
            NotFoundError: If the default account does not exist
        """
        if not name or not name.strip():
            raise ValidationError("Contact name is required")
        if default_account_id is not None:
            self.require_account(default_account_id)
        return self.db.create_contact(
            name=name.strip(), role=ContactRole(role), default_account_id=default_account_id
        )

    def get_contact(self, contact_id: int) -> Optional[Contact]:
        return self.db.get_contact(contact_id)

    def require_contact(self, contact_id: int) -> Contact:
        """Get a contact or raise NotFoundError."""
        contact = self.db.get_contact(contact_id)
        if contact is None:
            raise NotFoundError(contact_not_found(contact_id))
        return contact

    def list_contacts(self, active_only: bool = False) -> list[Contact]:
        return self.db.list_contacts(active_only=active_only)

    def find_contact_by_name(self, name: str) -> Optional[Contact]:
        """Find a contact by display name, ignoring case."""
        wanted = name.strip().lower()
        for contact in self.db.list_contacts():
            if contact.name.lower() == wanted:
                return contact
        return None

    def find_or_create_contact(self, name: str, role: ContactRole) -> int:
        """Return the ID of the contact with this name, creating it if needed."""
        existing = self.find_contact_by_name(name)
        if existing is not None:
            return existing.id
        contact_id = self.create_contact(name, role=role)
        logger.info("Created contact '%s' (ID: %d)", name.strip(), contact_id)
        return contact_id

    def set_default_account(self, contact_id: int, account_id: Optional[int]) -> None:
        """Set or clear the account a contact's transactions default to."""
        self.require_contact(contact_id)
        if account_id is not None:
            self.require_account(account_id)
        self.db.update_contact_default_account(contact_id, account_id)

    # Journal entries
    def create_draft_entry(
        self,
        entry_date: date,
        description: str,
        entry_type: Optional[str] = None,
        bank_transaction_id: Optional[int] = None,
        contact_id: Optional[int] = None,
    ) -> int:
        """Create an empty Draft journal entry. Returns entry ID."""
        return self.db.create_journal_entry(
            entry_date=entry_date,
            description=description,
            entry_type=entry_type,
            bank_transaction_id=bank_transaction_id,
            contact_id=contact_id,
        )

    def add_line(self, entry_id: int, line: LineSpec) -> int:
        """Append a line to a Draft entry. Returns line ID.

        Raises:
            NotFoundError: If the entry or account does not exist
            ValidationError: If the line amounts are invalid or the entry is Final
        """
        entry = self.require_entry(entry_id)
        if entry.status == EntryStatus.FINAL:
            raise ValidationError(f"Journal entry {entry_id} is Final and cannot be changed")
        validate_line(line.debit, line.credit)
        self.require_account(line.account_id)
        return self.db.add_journal_line(
            entry_id=entry_id,
            account_id=line.account_id,
            debit=line.debit,
            credit=line.credit,
            description=line.description,
        )

    def finalize_entry(self, entry_id: int) -> JournalEntry:
        """Move a Draft entry to Final once it balances.

        Raises:
            NotFoundError: If the entry does not exist
            BalanceError: If the entry has no lines or does not balance
        """
        entry = self.require_entry(entry_id)
        if entry.status == EntryStatus.FINAL:
            return entry
        ensure_balanced(entry)
        self.db.set_journal_entry_status(entry_id, EntryStatus.FINAL)
        return self.require_entry(entry_id)

    def post_entry(
        self,
        entry_date: date,
        description: str,
        lines: Sequence[LineSpec],
        entry_type: Optional[str] = None,
        bank_transaction_id: Optional[int] = None,
        contact_id: Optional[int] = None,
    ) -> JournalEntry:
        """Create, fill and finalize an entry in one atomic step.

        Nothing is persisted unless the entry reaches Final.

        Returns:
            The finalized journal entry
        """
        with self.db.atomic():
            entry_id = self.create_draft_entry(
                entry_date,
                description,
                entry_type=entry_type,
                bank_transaction_id=bank_transaction_id,
                contact_id=contact_id,
            )
            for line in lines:
                self.add_line(entry_id, line)
            entry = self.finalize_entry(entry_id)
        logger.info(
            "Posted %s entry %d: %s (%.2f)",
            entry_type or "manual", entry.id, description, entry.total_debit,
        )
        return entry

    def get_entry(self, entry_id: int) -> Optional[JournalEntry]:
        return self.db.get_journal_entry(entry_id)

    def require_entry(self, entry_id: int) -> JournalEntry:
        """Get a journal entry or raise NotFoundError."""
        entry = self.db.get_journal_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Journal entry {entry_id} not found")
        return entry

    def list_entries(self, bank_transaction_id: Optional[int] = None) -> list[JournalEntry]:
        return self.db.list_journal_entries(bank_transaction_id=bank_transaction_id)
