"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic, so the ORM schema can change
without touching services or the classification pipeline.
"""

from decimal import Decimal

from autoledger.domain import entities as domain
from autoledger.database.models import (
    Account as ORMAccount,
    Contact as ORMContact,
    JournalEntry as ORMJournalEntry,
    JournalLine as ORMJournalLine,
    BankTransaction as ORMBankTransaction,
    Rule as ORMRule,
    Invoice as ORMInvoice,
)


def _money(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        is_active=orm_account.is_active,
        system_protected=orm_account.system_protected,
        capital_asset=orm_account.capital_asset,
        reference=orm_account.reference,
        created_at=orm_account.created_at,
    )


def contact_to_domain(orm_contact: ORMContact) -> domain.Contact:
    """Convert SQLAlchemy Contact model to domain Contact entity."""
    return domain.Contact(
        id=orm_contact.id,
        name=orm_contact.name,
        role=domain.ContactRole(orm_contact.role),
        default_account_id=orm_contact.default_account_id,
        is_active=orm_contact.is_active,
        created_at=orm_contact.created_at,
    )


def journal_line_to_domain(orm_line: ORMJournalLine) -> domain.JournalLine:
    """Convert SQLAlchemy JournalLine model to domain JournalLine entity."""
    return domain.JournalLine(
        id=orm_line.id,
        entry_id=orm_line.entry_id,
        account_id=orm_line.account_id,
        debit=_money(orm_line.debit),
        credit=_money(orm_line.credit),
        description=orm_line.description,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model (with lines) to domain entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        entry_date=orm_entry.entry_date,
        description=orm_entry.description,
        status=domain.EntryStatus(orm_entry.status),
        entry_type=orm_entry.entry_type,
        bank_transaction_id=orm_entry.bank_transaction_id,
        contact_id=orm_entry.contact_id,
        created_at=orm_entry.created_at,
        lines=tuple(journal_line_to_domain(line) for line in orm_entry.lines),
    )


def bank_transaction_to_domain(orm_txn: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain entity."""
    suggestion = None
    if orm_txn.suggestion:
        suggestion = domain.Suggestion.from_payload(orm_txn.suggestion)
    return domain.BankTransaction(
        id=orm_txn.id,
        date=orm_txn.date,
        amount=_money(orm_txn.amount),
        description=orm_txn.description or "",
        counterparty=orm_txn.counterparty,
        status=domain.TransactionStatus(orm_txn.status),
        confidence_score=orm_txn.confidence_score,
        suggestion=suggestion,
        posting_mode=domain.PostingMode(orm_txn.posting_mode) if orm_txn.posting_mode else None,
        contact_id=orm_txn.contact_id,
        imported_at=orm_txn.imported_at,
    )


def rule_to_domain(orm_rule: ORMRule) -> domain.Rule:
    """Convert SQLAlchemy Rule model to domain Rule entity."""
    return domain.Rule(
        id=orm_rule.id,
        keyword=orm_rule.keyword,
        match_type=domain.MatchType(orm_rule.match_type),
        account_id=orm_rule.account_id,
        contact_id=orm_rule.contact_id,
        priority=orm_rule.priority,
        is_active=orm_rule.is_active,
        use_count=orm_rule.use_count,
        last_used=orm_rule.last_used,
        is_system=orm_rule.is_system,
        created_at=orm_rule.created_at,
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        number=orm_invoice.number,
        kind=domain.InvoiceKind(orm_invoice.kind),
        contact_id=orm_invoice.contact_id,
        invoice_date=orm_invoice.invoice_date,
        total_amount=_money(orm_invoice.total_amount),
        status=domain.InvoiceStatus(orm_invoice.status),
        created_at=orm_invoice.created_at,
    )
