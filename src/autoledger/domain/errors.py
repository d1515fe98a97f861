"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or a lost status race."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class BookingError(DomainError):
    """A suggestion could not be turned into ledger postings."""


class BalanceError(BookingError):
    """Debits and credits differ when an entry is finalized."""


class MissingFieldError(BookingError, ValidationError):
    """A field required for the chosen posting mode is missing."""


class SystemAccountProtectionError(DomainError):
    """Attempt to delete or deactivate a system-protected account."""


class UnsupportedOperationError(DomainError):
    """Requested behavior is deliberately not supported."""


class EnrichmentUnavailable(DomainError):
    """External enrichment collaborator timed out, failed or is absent."""


class ExtractionFailure(DomainError):
    """Collaborator answered but no account identifier could be recovered."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str) -> str:
    """Return message for missing account by code."""
    return f"Account with code '{code}' not found"


def contact_not_found(contact_id: int) -> str:
    """Return message for missing contact."""
    return f"Contact {contact_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing bank transaction."""
    return f"Bank transaction {transaction_id} not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def protected_account(code: str, action: str) -> str:
    """Return message when a system-protected account is modified."""
    return f"Account {code} is system-protected and cannot be {action}"


def unbalanced_entry(entry_id: int, debit: Decimal, credit: Decimal) -> str:
    """Return message for an entry whose debits and credits differ."""
    return (
        f"Journal entry {entry_id} is not balanced: "
        f"debit {debit:.2f} != credit {credit:.2f}"
    )


def status_conflict(transaction_id: int, expected: str, actual: str) -> str:
    """Return message when a bank transaction changed status concurrently."""
    return (
        f"Bank transaction {transaction_id} is {actual}, expected {expected}; "
        "refresh and retry"
    )
