"""Tests for the settlement state machine."""

from datetime import date
from decimal import Decimal

import pytest

from autoledger.domain.entities import (
    InvoiceKind,
    InvoiceStatus,
    PostingMode,
    Suggestion,
    SuggestionSource,
    TransactionStatus,
)
from autoledger.domain.errors import (
    ConflictError,
    UnsupportedOperationError,
    ValidationError,
)


@pytest.fixture
def pending_payment(ledger, booking_engine, invoice_service, add_txn):
    """A 500.00 payment booked in Relation mode plus its open purchase invoice."""
    contact_id = ledger.create_contact("Jansen Installatie")
    invoice_id = invoice_service.create_invoice(
        "INK-2024-12", InvoiceKind.PURCHASE, contact_id, date(2024, 2, 20), Decimal("500.00")
    )
    txn = add_txn(-500, "Jansen Installatie")
    booking_engine.book(
        txn.id,
        Suggestion(
            score=100,
            source=SuggestionSource.CONTACT,
            reason="test",
            mode=PostingMode.RELATION,
            contact_id=contact_id,
        ),
    )
    return txn.id, invoice_id, contact_id


def _lines_by_code(ledger, entry):
    return {
        ledger.get_account(line.account_id).code: (line.debit, line.credit)
        for line in entry.lines
    }


def test_settle_purchase(settlement_service, pending_payment, ledger, invoice_service, transaction_service):
    txn_id, invoice_id, contact_id = pending_payment

    entry = settlement_service.settle(txn_id, [invoice_id])

    assert entry.entry_type == "settlement"
    assert entry.description == "Settlement: invoice INK-2024-12"
    assert entry.contact_id == contact_id
    assert _lines_by_code(ledger, entry) == {
        "1600": (Decimal("500.00"), Decimal("0")),
        "2300": (Decimal("0"), Decimal("500.00")),
    }
    assert transaction_service.get_transaction(txn_id).status == TransactionStatus.RECONCILED
    assert invoice_service.get_invoice(invoice_id).status == InvoiceStatus.PAID


def test_settle_sales(ledger, booking_engine, settlement_service, invoice_service, add_txn):
    contact_id = ledger.create_contact("Acme BV")
    invoice_id = invoice_service.create_invoice(
        "F2024-001", InvoiceKind.SALES, contact_id, date(2024, 2, 28), Decimal("1210.00")
    )
    txn = add_txn(1210, "ACME BV")
    booking_engine.book(
        txn.id,
        Suggestion(
            score=100,
            source=SuggestionSource.INVOICE_MATCH,
            reason="test",
            mode=PostingMode.RELATION,
            contact_id=contact_id,
            invoice_id=invoice_id,
        ),
    )

    entry = settlement_service.settle(txn.id, [invoice_id])

    assert _lines_by_code(ledger, entry) == {
        "1300": (Decimal("1210.00"), Decimal("0")),
        "1200": (Decimal("0"), Decimal("1210.00")),
    }


def test_settle_twice_conflicts(settlement_service, pending_payment, ledger):
    txn_id, invoice_id, _ = pending_payment
    settlement_service.settle(txn_id, [invoice_id])

    with pytest.raises(ConflictError):
        settlement_service.settle(txn_id, [invoice_id])

    settlements = [
        e for e in ledger.list_entries(bank_transaction_id=txn_id) if e.entry_type == "settlement"
    ]
    assert len(settlements) == 1


def test_settle_unbooked_transaction_conflicts(settlement_service, ledger, invoice_service, add_txn):
    contact_id = ledger.create_contact("Jansen Installatie")
    invoice_id = invoice_service.create_invoice(
        "INK-1", InvoiceKind.PURCHASE, contact_id, date(2024, 3, 1), Decimal("50")
    )
    txn = add_txn(-50, "Jansen Installatie")

    with pytest.raises(ConflictError, match="expected Pending"):
        settlement_service.settle(txn.id, [invoice_id])


def test_several_invoices_unsupported(settlement_service, pending_payment, invoice_service):
    txn_id, invoice_id, contact_id = pending_payment
    other = invoice_service.create_invoice(
        "INK-2024-13", InvoiceKind.PURCHASE, contact_id, date(2024, 2, 21), Decimal("1.00")
    )

    with pytest.raises(UnsupportedOperationError):
        settlement_service.settle(txn_id, [invoice_id, other])


def test_partial_amount_unsupported(settlement_service, pending_payment, invoice_service):
    txn_id, _, contact_id = pending_payment
    bigger = invoice_service.create_invoice(
        "INK-2024-14", InvoiceKind.PURCHASE, contact_id, date(2024, 2, 21), Decimal("800.00")
    )

    with pytest.raises(UnsupportedOperationError, match="Partial"):
        settlement_service.settle(txn_id, [bigger])


def test_wrong_invoice_kind(settlement_service, pending_payment, invoice_service):
    txn_id, _, contact_id = pending_payment
    sales = invoice_service.create_invoice(
        "F-9", InvoiceKind.SALES, contact_id, date(2024, 2, 21), Decimal("500.00")
    )

    with pytest.raises(ValidationError):
        settlement_service.settle(txn_id, [sales])


def test_other_contacts_invoice(settlement_service, pending_payment, invoice_service, ledger):
    txn_id, _, _ = pending_payment
    stranger = ledger.create_contact("Globex")
    invoice_id = invoice_service.create_invoice(
        "G-1", InvoiceKind.PURCHASE, stranger, date(2024, 2, 21), Decimal("500.00")
    )

    with pytest.raises(ValidationError, match="different contact"):
        settlement_service.settle(txn_id, [invoice_id])


def test_auto_settle_single_candidate(settlement_service, pending_payment, transaction_service):
    txn_id, _, _ = pending_payment

    entry = settlement_service.auto_settle(txn_id)

    assert entry is not None
    assert transaction_service.get_transaction(txn_id).status == TransactionStatus.RECONCILED


def test_auto_settle_ambiguous_leaves_pending(
    settlement_service, pending_payment, invoice_service, transaction_service
):
    txn_id, _, contact_id = pending_payment
    invoice_service.create_invoice(
        "INK-2024-15", InvoiceKind.PURCHASE, contact_id, date(2024, 2, 22), Decimal("500.00")
    )

    assert settlement_service.auto_settle(txn_id) is None
    assert transaction_service.get_transaction(txn_id).status == TransactionStatus.PENDING
