"""Tests for the layered classification pipeline."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from autoledger.config import PipelineConfig
from autoledger.domain.entities import (
    InvoiceKind,
    PostingMode,
    Suggestion,
    SuggestionSource,
)
from autoledger.domain.matchers import KeywordInferenceMatcher, Matcher
from autoledger.domain.pipeline import ClassificationPipeline, Routing, load_snapshot

from fakes import FakeFactFinder, FakeMapper, pick_code


def _pipeline(temp_db, config=None, enrichment=None):
    return ClassificationPipeline.from_database(temp_db, config=config, enrichment=enrichment)


class TestLayerOrder:
    def test_first_non_null_layer_wins(self, ledger, temp_db, add_txn):
        """Later layers are never evaluated once a layer answers."""
        first = MagicMock(spec=Matcher)
        first.name = "first"
        first.try_classify.return_value = None
        second = MagicMock(spec=Matcher)
        second.name = "second"
        second.try_classify.return_value = Suggestion(
            score=88, source=SuggestionSource.RULE, reason="r", mode=PostingMode.DIRECT
        )
        third = MagicMock(spec=Matcher)
        third.name = "third"

        pipeline = ClassificationPipeline(
            load_snapshot(temp_db), matchers=[first, second, third]
        )
        suggestion = pipeline.classify(add_txn(-10, "ANYTHING"))

        assert suggestion.score == 88
        first.try_classify.assert_called_once()
        third.try_classify.assert_not_called()

    def test_invoice_beats_rule(self, ledger, temp_db, invoice_service, rule_service, add_txn, account_ids):
        contact_id = ledger.create_contact("Shell Nederland")
        invoice_id = invoice_service.create_invoice(
            "INK-7", InvoiceKind.PURCHASE, contact_id, date(2024, 3, 1), Decimal("60.00")
        )
        rule_service.create_rule("shell", account_id=account_ids["4310"])

        suggestion = _pipeline(temp_db).classify(add_txn(-60, "SHELL", txn_date=date(2024, 3, 4)))

        assert suggestion.source == SuggestionSource.INVOICE_MATCH
        assert suggestion.score == 100
        assert suggestion.mode == PostingMode.RELATION
        assert suggestion.invoice_id == invoice_id
        assert suggestion.contact_id == contact_id
        assert suggestion.description == "Payment invoice INK-7"

    def test_rule_beats_vendor(self, ledger, temp_db, rule_service, add_txn, account_ids):
        rule_service.create_rule("shell", account_id=account_ids["4700"])

        suggestion = _pipeline(temp_db).classify(add_txn(-60, "SHELL UTRECHT"))

        assert suggestion.source == SuggestionSource.RULE
        assert suggestion.score == 95
        assert suggestion.account_id == account_ids["4700"]

    def test_keyword_layer_always_answers(self, ledger, temp_db, add_txn, account_ids):
        suggestion = _pipeline(temp_db).classify(add_txn(-13, "QWERTY HOLDING"))

        assert suggestion.source == SuggestionSource.KEYWORD_INFERENCE
        assert suggestion.score == 30
        assert suggestion.account_id == account_ids["4700"]

    def test_keyword_fallback_for_receipts_is_revenue(self, ledger, temp_db, add_txn, account_ids):
        snapshot = load_snapshot(temp_db)
        matcher = KeywordInferenceMatcher(snapshot, PipelineConfig())

        suggestion = matcher.try_classify(add_txn(250, "QWERTY HOLDING"))

        assert suggestion.account_id == account_ids["8000"]


class TestInvoiceMatching:
    def test_date_outside_window(self, ledger, temp_db, invoice_service, add_txn):
        contact_id = ledger.create_contact("Acme BV")
        invoice_service.create_invoice(
            "F001", InvoiceKind.SALES, contact_id, date(2024, 3, 1), Decimal("121.00")
        )

        suggestion = _pipeline(temp_db).classify(add_txn(121, "ACME BV", txn_date=date(2024, 3, 20)))

        assert suggestion.source != SuggestionSource.INVOICE_MATCH

    def test_direction_must_fit_invoice_kind(self, ledger, temp_db, invoice_service, add_txn):
        contact_id = ledger.create_contact("Acme BV")
        invoice_service.create_invoice(
            "F001", InvoiceKind.SALES, contact_id, date(2024, 3, 1), Decimal("121.00")
        )

        suggestion = _pipeline(temp_db).classify(add_txn(-121, "ACME BV"))

        assert suggestion.source != SuggestionSource.INVOICE_MATCH

    def test_ambiguous_amount_narrowed_by_name(self, ledger, temp_db, invoice_service, add_txn):
        acme = ledger.create_contact("Acme BV")
        other = ledger.create_contact("Globex")
        invoice_service.create_invoice("F001", InvoiceKind.SALES, acme, date(2024, 3, 1), Decimal("100"))
        wanted = invoice_service.create_invoice(
            "F002", InvoiceKind.SALES, other, date(2024, 3, 1), Decimal("100")
        )

        suggestion = _pipeline(temp_db).classify(add_txn(100, "GLOBEX"))

        assert suggestion.invoice_id == wanted


class TestContactLayer:
    def test_contact_with_default_account(self, ledger, temp_db, add_txn, account_ids):
        contact_id = ledger.create_contact(
            "Jansen Installatie", default_account_id=account_ids["4100"]
        )

        suggestion = _pipeline(temp_db).classify(add_txn(-500, "JANSEN INSTALLATIE BV"))

        assert suggestion.source == SuggestionSource.CONTACT
        assert suggestion.mode == PostingMode.RELATION
        assert suggestion.contact_id == contact_id
        assert suggestion.account_id == account_ids["4100"]

    def test_contact_without_account_and_identifier_prose(
        self, ledger, temp_db, add_txn, account_ids, fake_enrichment
    ):
        """Identifier recovered from prose is scored mid-confidence, never defaulted."""
        contact_id = ledger.create_contact("Jansen Installatie")
        mapper = FakeMapper(
            pick_code("4100", template="I think {ref} is the right account for this.")
        )
        client = fake_enrichment(FakeFactFinder(default="Plumbing contractor"), mapper)

        suggestion = _pipeline(temp_db, enrichment=client).classify(
            add_txn(-500, "Jansen Installatie")
        )

        assert suggestion.source == SuggestionSource.CONTACT
        assert suggestion.contact_id == contact_id
        assert suggestion.account_id == account_ids["4100"]
        assert suggestion.account_confidence == 75
        assert 65 <= suggestion.account_confidence < 90
        assert "identifier" in suggestion.reason

    def test_contact_without_account_and_no_enrichment(self, ledger, temp_db, add_txn):
        contact_id = ledger.create_contact("Jansen Installatie")

        suggestion = _pipeline(temp_db).classify(add_txn(-500, "Jansen Installatie"))

        assert suggestion.contact_id == contact_id
        assert suggestion.account_id is None
        assert "manual selection" in suggestion.reason

    def test_contact_with_unusable_mapper_answer(
        self, ledger, temp_db, add_txn, fake_enrichment
    ):
        ledger.create_contact("Jansen Installatie")
        client = fake_enrichment(
            FakeFactFinder(default="Plumbing"), FakeMapper(lambda *args: "no idea")
        )

        suggestion = _pipeline(temp_db, enrichment=client).classify(
            add_txn(-500, "Jansen Installatie")
        )

        assert suggestion.account_id is None


class TestVendorAndEnrichment:
    def test_hardware_store_auto_books_without_enrichment(
        self, ledger, temp_db, add_txn, account_ids, fake_enrichment
    ):
        finder = FakeFactFinder(default="Hardware store")
        mapper = FakeMapper(pick_code("4700"))
        client = fake_enrichment(finder, mapper)
        pipeline = _pipeline(temp_db, enrichment=client)

        suggestion = pipeline.classify(add_txn(-1250, description="GAMMA BOUWMARKT"))

        assert suggestion.source == SuggestionSource.VENDOR_TABLE
        assert suggestion.score == 85
        assert suggestion.account_id == account_ids["4700"]
        assert pipeline.route(suggestion) == Routing.AUTO_BOOK
        assert finder.calls == []
        assert mapper.calls == []

    def test_cash_withdrawal_is_private(self, ledger, temp_db, add_txn, account_ids):
        suggestion = _pipeline(temp_db).classify(add_txn(-100, description="GELDMAAT UTRECHT"))

        assert suggestion.account_id == account_ids["1800"]
        assert suggestion.score == 100

    def test_florist_enriched(self, ledger, temp_db, add_txn, fake_enrichment):
        finder = FakeFactFinder(default="Retail/Florist")
        mapper = FakeMapper(
            pick_code("4360", template="Flowers are a gift, use {ref} (Representatiekosten).")
        )
        client = fake_enrichment(finder, mapper)

        suggestion = _pipeline(temp_db, enrichment=client).classify(
            add_txn(-45, description="BLOEMIST JANSEN")
        )

        assert suggestion.source == SuggestionSource.ENRICHMENT
        assert 65 <= suggestion.score <= 90
        account = ledger.get_account(suggestion.account_id)
        assert not account.capital_asset
        offered = {acc.code for acc in mapper.calls[0][2]}
        assert not offered & {"0100", "0200", "0300"}

    def test_enrichment_failure_degrades_to_keyword_layer(
        self, ledger, temp_db, add_txn, fake_enrichment
    ):
        finder = MagicMock()
        finder.find_facts.side_effect = TimeoutError("slow")
        client = fake_enrichment(finder, FakeMapper(pick_code("4360")))

        suggestion = _pipeline(temp_db, enrichment=client).classify(
            add_txn(-45, description="BLOEMIST JANSEN")
        )

        assert suggestion.source == SuggestionSource.KEYWORD_INFERENCE


class TestRouting:
    def test_route_thresholds(self, ledger, temp_db):
        pipeline = _pipeline(temp_db)

        def route(score):
            return pipeline.route(
                Suggestion(score=score, source=SuggestionSource.RULE, reason="", mode=PostingMode.DIRECT)
            )

        assert route(80) == Routing.AUTO_BOOK
        assert route(79) == Routing.SUGGEST
        assert route(70) == Routing.SUGGEST
        assert route(69) == Routing.MANUAL
        assert pipeline.route(None) == Routing.MANUAL

    def test_custom_thresholds(self, ledger, temp_db):
        pipeline = _pipeline(temp_db, config=PipelineConfig(auto_book_threshold=95, suggest_threshold=50))
        suggestion = Suggestion(
            score=90, source=SuggestionSource.VENDOR_TABLE, reason="", mode=PostingMode.DIRECT
        )

        assert pipeline.route(suggestion) == Routing.SUGGEST
