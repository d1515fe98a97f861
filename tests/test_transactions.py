"""Tests for bank transaction ingestion."""

from datetime import date
from decimal import Decimal

import pytest

from autoledger.domain.entities import TransactionStatus
from autoledger.domain.errors import ValidationError


def test_add_transaction(transaction_service):
    txn_id = transaction_service.add_transaction(
        date=date(2024, 3, 1), amount=Decimal("-42.50"), description="BEA SHELL", counterparty=" Shell "
    )

    txn = transaction_service.get_transaction(txn_id)
    assert txn.status == TransactionStatus.UNMATCHED
    assert txn.counterparty == "Shell"
    assert txn.amount == Decimal("-42.50")


def test_add_transaction_rejects_zero(transaction_service):
    with pytest.raises(ValidationError, match="zero"):
        transaction_service.add_transaction(date(2024, 3, 1), Decimal("0"), "X")


def test_add_transaction_needs_text(transaction_service):
    with pytest.raises(ValidationError):
        transaction_service.add_transaction(date(2024, 3, 1), Decimal("-1"), "", counterparty="  ")


def test_import_rows_is_atomic(transaction_service):
    rows = [
        {"date": "2024-03-01", "amount": "-10,00", "description": "A"},
        {"date": "2024-03-02", "amount": "not money", "description": "B"},
    ]

    with pytest.raises(ValidationError):
        transaction_service.import_rows(rows)

    assert transaction_service.list_transactions() == []


def test_import_rows(transaction_service):
    ids = transaction_service.import_rows(
        [
            {"date": "01-03-2024", "amount": "-10,00", "description": "A", "counterparty": "Shell"},
            {"date": date(2024, 3, 2), "amount": Decimal("25"), "description": "B"},
        ]
    )

    assert len(ids) == 2
    first = transaction_service.get_transaction(ids[0])
    assert first.date == date(2024, 3, 1)
    assert first.amount == Decimal("-10.00")


def test_import_csv(transaction_service, tmp_path):
    csv_file = tmp_path / "bank.csv"
    csv_file.write_text(
        "date;amount;description;counterparty\n"
        "2024-03-01;-42,50;BEA 12:00 SHELL UTRECHT;\n"
        "2024-03-02;1210,00;Betaling F2024-001;Acme BV\n"
        "2024-03-03;oops;Broken row;\n",
        encoding="utf-8",
    )

    result = transaction_service.import_csv(str(csv_file))

    assert result["imported"] == 2
    assert len(result["errors"]) == 1
    assert "Row 4" in result["errors"][0]
    statuses = {t.status for t in transaction_service.list_transactions()}
    assert statuses == {TransactionStatus.UNMATCHED}


def test_import_csv_missing_columns(transaction_service, tmp_path):
    csv_file = tmp_path / "bank.csv"
    csv_file.write_text("when,value\n2024-03-01,-1\n", encoding="utf-8")

    with pytest.raises(ValidationError, match="missing required columns"):
        transaction_service.import_csv(str(csv_file))


def test_import_csv_missing_file(transaction_service):
    with pytest.raises(FileNotFoundError):
        transaction_service.import_csv("/nonexistent/bank.csv")
