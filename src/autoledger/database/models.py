"""SQLAlchemy models for autoledger database."""

from datetime import datetime, UTC
from uuid import uuid4
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    CheckConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    system_protected = Column(Boolean, default=False, nullable=False)
    capital_asset = Column(Boolean, default=False, nullable=False)
    reference = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid4()))
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    journal_lines = relationship("JournalLine", back_populates="account")


class Contact(Base):
    """Customer/supplier model."""

    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    default_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    default_account = relationship("Account")
    invoices = relationship("Invoice", back_populates="contact")


class JournalEntry(Base):
    """Journal entry header model."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    entry_date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    status = Column(String, default="Draft", nullable=False)
    entry_type = Column(String, nullable=True)
    bank_transaction_id = Column(Integer, ForeignKey("bank_transactions.id"), nullable=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    lines = relationship(
        "JournalLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.id",
    )
    bank_transaction = relationship("BankTransaction", back_populates="journal_entries")


class JournalLine(Base):
    """Journal line model. Exactly one of debit/credit is non-zero."""

    __tablename__ = "journal_lines"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    debit = Column(Numeric(12, 2), default=0, nullable=False)
    credit = Column(Numeric(12, 2), default=0, nullable=False)
    description = Column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_line_non_negative"),
        CheckConstraint("debit = 0 OR credit = 0", name="ck_line_one_side"),
    )

    # Relationships
    entry = relationship("JournalEntry", back_populates="lines")
    account = relationship("Account", back_populates="journal_lines")


class BankTransaction(Base):
    """Imported bank transaction model."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=False, default="")
    counterparty = Column(String, nullable=True)
    status = Column(String, default="Unmatched", nullable=False)
    confidence_score = Column(Integer, nullable=True)
    suggestion = Column(JSON, nullable=True)
    posting_mode = Column(String, nullable=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    journal_entries = relationship("JournalEntry", back_populates="bank_transaction")


class Rule(Base):
    """Keyword classification rule model."""

    __tablename__ = "bank_rules"

    id = Column(Integer, primary_key=True)
    keyword = Column(String, nullable=False)
    match_type = Column(String, default="Contains", nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True)
    priority = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    use_count = Column(Integer, default=0, nullable=False)
    last_used = Column(DateTime, nullable=True)
    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Invoice(Base):
    """Sales or purchase invoice model."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    number = Column(String, nullable=False)
    kind = Column(String, nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)
    invoice_date = Column(Date, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String, default="Open", nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    contact = relationship("Contact", back_populates="invoices")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
