"""Bank transaction ingestion and lookup."""

import csv
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional

from autoledger.database.base import Database
from autoledger.domain.entities import BankTransaction, TransactionStatus
from autoledger.domain.errors import NotFoundError, ValidationError, transaction_not_found
from autoledger.utils.amount_parser import parse_amount
from autoledger.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

NORMALIZED_COLUMNS = ("date", "amount", "description", "counterparty")


class TransactionService:
    """Service for normalized bank transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def add_transaction(
        self,
        date: date,
        amount: Decimal,
        description: str = "",
        counterparty: Optional[str] = None,
    ) -> int:
        """Store one normalized bank transaction as Unmatched.

        Args:
            date: Booking date
            amount: Signed amount, negative for money leaving the bank
            description: Raw bank description
            counterparty: Counterparty name as reported by the bank

        Returns:
            Transaction ID

        Raises:
            ValidationError: If the amount is zero or both texts are empty
        """
        if amount == 0:
            raise ValidationError("Transaction amount must not be zero")
        description = (description or "").strip()
        counterparty = counterparty.strip() if counterparty and counterparty.strip() else None
        if not description and not counterparty:
            raise ValidationError("Transaction needs a description or a counterparty")
        return self.db.create_bank_transaction(
            date=date, amount=amount, description=description, counterparty=counterparty
        )

    def import_rows(self, rows: Iterable[dict[str, Any]]) -> list[int]:
        """Store a batch of normalized records atomically.

        Each row holds ``date``, ``amount``, ``description`` and
        ``counterparty``; date and amount may be strings or parsed values.

        Returns:
            IDs of the created transactions
        """
        ids = []
        with self.db.atomic():
            for row in rows:
                txn_date = row["date"]
                if isinstance(txn_date, str):
                    txn_date = parse_date(txn_date)
                amount = row["amount"]
                if not isinstance(amount, Decimal):
                    amount = parse_amount(str(amount))
                ids.append(
                    self.add_transaction(
                        date=txn_date,
                        amount=amount,
                        description=row.get("description") or "",
                        counterparty=row.get("counterparty"),
                    )
                )
        return ids

    def import_csv(self, csv_file_path: str) -> dict[str, Any]:
        """Import a normalized CSV file.

        The file needs a header with ``date`` and ``amount`` columns, plus
        ``description`` and/or ``counterparty``. Rows that fail to parse are
        reported and skipped.

        Returns:
            Dict with ``imported`` (count) and ``errors`` (list of messages)

        Raises:
            FileNotFoundError: If the file does not exist
            ValidationError: If required columns are missing
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        imported = 0
        errors = []
        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            sample = f.read(1024)
            f.seek(0)
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
            reader = csv.DictReader(f, delimiter=delimiter)

            columns = {name.strip().lower() for name in (reader.fieldnames or [])}
            missing = {"date", "amount"} - columns
            if missing:
                raise ValidationError(
                    f"CSV file missing required columns: {', '.join(sorted(missing))}"
                )

            for row_num, row in enumerate(reader, start=2):  # header is row 1
                values = {
                    (key or "").strip().lower(): (value or "").strip()
                    for key, value in row.items()
                }
                try:
                    self.add_transaction(
                        date=parse_date(values.get("date", "")),
                        amount=parse_amount(values.get("amount", "")),
                        description=values.get("description", ""),
                        counterparty=values.get("counterparty") or None,
                    )
                    imported += 1
                except ValidationError as e:
                    errors.append(f"Row {row_num}: {e}")

        logger.info("Imported %d transactions from %s (%d errors)", imported, csv_path, len(errors))
        return {"imported": imported, "errors": errors}

    def get_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        return self.db.get_bank_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> BankTransaction:
        """Get a bank transaction or raise NotFoundError."""
        txn = self.db.get_bank_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def list_transactions(
        self, statuses: Optional[Iterable[TransactionStatus]] = None
    ) -> list[BankTransaction]:
        return self.db.list_bank_transactions(statuses=statuses)
