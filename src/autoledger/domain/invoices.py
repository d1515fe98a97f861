"""Invoice domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

from autoledger.database.base import Database
from autoledger.domain.entities import Invoice, InvoiceKind, InvoiceStatus
from autoledger.domain.errors import (
    NotFoundError,
    ValidationError,
    contact_not_found,
    invoice_not_found,
)


class InvoiceService:
    """Service for the sales and purchase invoices bank payments settle."""

    def __init__(self, db: Database):
        """Initialize invoice service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_invoice(
        self,
        number: str,
        kind: InvoiceKind,
        contact_id: int,
        invoice_date: date,
        total_amount: Decimal,
    ) -> int:
        """Register an open invoice.

        Args:
            number: Invoice number
            kind: Sales (we are paid) or Purchase (we pay)
            contact_id: Customer or supplier
            invoice_date: Invoice date
            total_amount: Positive invoice total

        Returns:
            Invoice ID

        Raises:
            ValidationError: If number is empty or total is not positive
            NotFoundError: If the contact does not exist
        """
        if not number or not number.strip():
            raise ValidationError("Invoice number is required")
        if total_amount <= 0:
            raise ValidationError("Invoice total must be positive")
        if self.db.get_contact(contact_id) is None:
            raise NotFoundError(contact_not_found(contact_id))
        return self.db.create_invoice(
            number=number.strip(),
            kind=InvoiceKind(kind),
            contact_id=contact_id,
            invoice_date=invoice_date,
            total_amount=total_amount,
        )

    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        return self.db.get_invoice(invoice_id)

    def require_invoice(self, invoice_id: int) -> Invoice:
        """Get an invoice or raise NotFoundError."""
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def list_invoices(self, open_only: bool = False) -> list[Invoice]:
        return self.db.list_invoices(status=InvoiceStatus.OPEN if open_only else None)
