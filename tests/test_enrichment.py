"""Tests for the enrichment client and its OpenAI-backed collaborators."""

import threading
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from autoledger.config import EnrichmentSettings, PipelineConfig
from autoledger.domain.entities import AccountType
from autoledger.domain.errors import EnrichmentUnavailable, ExtractionFailure
from autoledger.enrichment.client import (
    EnrichmentClient,
    build_enrichment_client,
    candidate_accounts,
)
from autoledger.enrichment.collaborators import OpenAICategoryMapper, OpenAIFactFinder

from fakes import FakeFactFinder, FakeMapper, pick_code


class TestCandidateAccounts:
    def test_payment_candidates(self, ledger):
        codes = {
            acc.code
            for acc in candidate_accounts(ledger.list_accounts(), Decimal("-50"), Decimal("450"))
        }

        assert "4700" in codes
        assert "1800" in codes
        # Depreciation, capital assets below threshold, revenue and system accounts
        assert not codes & {"4200", "0100", "0200", "8000", "1100", "2300"}

    def test_capital_assets_from_threshold(self, ledger):
        codes = {
            acc.code
            for acc in candidate_accounts(ledger.list_accounts(), Decimal("-450"), Decimal("450"))
        }

        assert {"0100", "0200", "0300"} <= codes
        assert "4200" not in codes

    def test_receipt_candidates(self, ledger):
        codes = {
            acc.code
            for acc in candidate_accounts(ledger.list_accounts(), Decimal("100"), Decimal("450"))
        }

        assert "8000" in codes
        assert "4700" not in codes

    def test_inactive_accounts_excluded(self, ledger, account_ids):
        ledger.deactivate_account(account_ids["4360"])

        codes = {
            acc.code
            for acc in candidate_accounts(ledger.list_accounts(), Decimal("-50"), Decimal("450"))
        }

        assert "4360" not in codes

    def test_private_equity_range_is_numeric(self, ledger):
        ledger.create_account("18000", "Oude privérekening", AccountType.EQUITY)

        codes = {
            acc.code
            for acc in candidate_accounts(ledger.list_accounts(), Decimal("-50"), Decimal("450"))
        }

        assert "1800" in codes
        assert "18000" not in codes


class TestEnrichmentClient:
    def test_classify(self, ledger, fake_enrichment):
        finder = FakeFactFinder(default="Florist")
        mapper = FakeMapper(pick_code("4360"))
        client = fake_enrichment(finder, mapper)
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        result = client.classify("BLOEMIST JANSEN", Decimal("-35"), candidates, city="Utrecht")

        assert result.account.code == "4360"
        assert result.score == 90
        assert finder.calls == [("BLOEMIST JANSEN", "Utrecht")]
        assert mapper.calls[0][0] == "Florist"

    def test_no_match_skips_mapper(self, ledger, fake_enrichment):
        mapper = FakeMapper(pick_code("4360"))
        client = fake_enrichment(FakeFactFinder(default=None), mapper)
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        assert client.classify("ONBEKEND", Decimal("-35"), candidates) is None
        assert mapper.calls == []

    def test_no_match_text_from_any_fact_finder(self, ledger, fake_enrichment):
        mapper = FakeMapper(pick_code("4360"))
        client = fake_enrichment(FakeFactFinder(default="No match."), mapper)
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        assert client.classify("ONBEKEND", Decimal("-35"), candidates) is None
        assert mapper.calls == []

    def test_unusable_answer_raises_extraction_failure(self, ledger, fake_enrichment):
        client = fake_enrichment(
            FakeFactFinder(default="Florist"), FakeMapper(lambda *args: "Sorry, no idea.")
        )
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        with pytest.raises(ExtractionFailure):
            client.classify("BLOEMIST JANSEN", Decimal("-35"), candidates)

    def test_timeout_becomes_unavailable(self, ledger, fake_enrichment):
        release = threading.Event()

        class SlowFinder:
            calls = 0

            def find_facts(self, counterparty, city=None):
                SlowFinder.calls += 1
                release.wait(5)
                return "Florist"

        config = PipelineConfig(enrichment_timeout=0.1, enrichment_max_retries=1)
        client = fake_enrichment(SlowFinder(), FakeMapper(pick_code("4360")), config)
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        try:
            with pytest.raises(EnrichmentUnavailable):
                client.classify("BLOEMIST JANSEN", Decimal("-35"), candidates)
        finally:
            release.set()
        # One attempt plus at most one retry
        assert SlowFinder.calls == 2

    def test_stalled_call_does_not_block_next_call(self, ledger, fake_enrichment):
        release = threading.Event()

        class StallingFinder:
            def find_facts(self, counterparty, city=None):
                if counterparty == "STALLED":
                    release.wait(5)
                return "Gas Station"

        config = PipelineConfig(
            enrichment_timeout=0.2, enrichment_max_retries=0, max_workers=1
        )
        client = fake_enrichment(StallingFinder(), FakeMapper(pick_code("4300")), config)
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-60"), Decimal("450"))

        try:
            with pytest.raises(EnrichmentUnavailable):
                client.classify("STALLED", Decimal("-60"), candidates)
            result = client.classify("SHELL", Decimal("-60"), candidates)
        finally:
            release.set()

        assert result.account.code == "4300"

    def test_failure_retried_once(self, ledger, fake_enrichment):
        finder = MagicMock()
        finder.find_facts.side_effect = [ConnectionError("reset"), "Florist"]
        client = fake_enrichment(finder, FakeMapper(pick_code("4360")))
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        result = client.classify("BLOEMIST JANSEN", Decimal("-35"), candidates)

        assert result.account.code == "4360"
        assert finder.find_facts.call_count == 2

    def test_no_retry_budget(self, ledger, fake_enrichment):
        finder = MagicMock()
        finder.find_facts.side_effect = ConnectionError("reset")
        config = PipelineConfig(enrichment_max_retries=0)
        client = fake_enrichment(finder, FakeMapper(pick_code("4360")), config)
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        with pytest.raises(EnrichmentUnavailable):
            client.classify("BLOEMIST JANSEN", Decimal("-35"), candidates)
        assert finder.find_facts.call_count == 1

    def test_no_candidates(self, fake_enrichment):
        finder = FakeFactFinder(default="Florist")
        client = fake_enrichment(finder, FakeMapper(pick_code("4360")))

        assert client.classify("BLOEMIST JANSEN", Decimal("-35"), []) is None
        assert finder.calls == []


class TestBuildClient:
    def test_not_configured(self):
        assert build_enrichment_client(EnrichmentSettings(api_key=None)) is None

    def test_configured(self):
        client = build_enrichment_client(EnrichmentSettings(api_key="sk-test"))

        assert client is not None
        assert isinstance(client.fact_finder, OpenAIFactFinder)


def _completion(text):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    return response


class TestOpenAICollaborators:
    def test_fact_finder_answer(self):
        finder = OpenAIFactFinder(EnrichmentSettings(api_key="sk-test"))
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _completion("Florist shop")

        with patch.object(finder, "_get_client", return_value=mock_client):
            answer = finder.find_facts("BLOEMIST JANSEN", city="Utrecht")

        assert answer == "Florist shop"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "perplexity/sonar"
        assert "Utrecht" in kwargs["messages"][1]["content"]

    def test_fact_finder_no_match_skips_mapper(self, ledger):
        finder = OpenAIFactFinder(EnrichmentSettings(api_key="sk-test"))
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _completion("No match")
        mapper = FakeMapper(pick_code("4360"))
        client = EnrichmentClient(finder, mapper)
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        with patch.object(finder, "_get_client", return_value=mock_client):
            assert client.classify("XYZ123", Decimal("-35"), candidates) is None
        assert mapper.calls == []

    def test_mapper_lists_candidates(self, ledger):
        mapper = OpenAICategoryMapper(EnrichmentSettings(api_key="sk-test"))
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _completion('{"id": "x"}')
        candidates = candidate_accounts(ledger.list_accounts(), Decimal("-35"), Decimal("450"))

        with patch.object(mapper, "_get_client", return_value=mock_client):
            answer = mapper.map_category("Florist", Decimal("-35"), candidates)

        assert answer == '{"id": "x"}'
        prompt = mock_client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "payment made" in prompt
        for acc in candidates:
            assert acc.reference in prompt

    def test_is_available(self):
        assert OpenAIFactFinder(EnrichmentSettings(api_key="sk-test")).is_available
        assert not OpenAIFactFinder(EnrichmentSettings()).is_available
