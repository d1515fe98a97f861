"""Shared pytest fixtures for autoledger tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest
from click.testing import CliRunner

from autoledger.config import PipelineConfig
from autoledger.database.factories import create_sqlite_database
from autoledger.domain.booking import BookingEngine
from autoledger.domain.invoices import InvoiceService
from autoledger.domain.ledger import LedgerService
from autoledger.domain.rules import RuleService
from autoledger.domain.settlement import SettlementService
from autoledger.domain.transactions import TransactionService
from autoledger.enrichment.client import EnrichmentClient


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def ledger(temp_db):
    """LedgerService over a database seeded with the default chart."""
    service = LedgerService(temp_db)
    service.seed_chart()
    return service


@pytest.fixture
def transaction_service(temp_db):
    return TransactionService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    return RuleService(temp_db)


@pytest.fixture
def invoice_service(temp_db):
    return InvoiceService(temp_db)


@pytest.fixture
def booking_engine(ledger, temp_db):
    return BookingEngine(temp_db)


@pytest.fixture
def settlement_service(ledger, temp_db):
    return SettlementService(temp_db)


@pytest.fixture
def config():
    """Pipeline config with a short enrichment timeout."""
    return PipelineConfig(enrichment_timeout=0.5)


@pytest.fixture
def account_ids(ledger):
    """Map of account code to account ID for the seeded chart."""
    return {acc.code: acc.id for acc in ledger.list_accounts()}


@pytest.fixture
def add_txn(transaction_service):
    """Factory that stores a bank transaction and returns it."""

    def _add(amount, counterparty=None, description="", txn_date=date(2024, 3, 1)):
        transaction_id = transaction_service.add_transaction(
            date=txn_date,
            amount=Decimal(str(amount)),
            description=description,
            counterparty=counterparty,
        )
        return transaction_service.get_transaction(transaction_id)

    return _add


@pytest.fixture
def fake_enrichment(config):
    """Build an EnrichmentClient from fakes."""

    def _build(fact_finder, mapper, client_config=None):
        return EnrichmentClient(fact_finder, mapper, client_config or config)

    return _build


@pytest.fixture
def cli_runner():
    """Create a CLI runner for testing."""
    return CliRunner()
