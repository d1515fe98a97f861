"""Tests for recovering an account from category mapper answers."""

from datetime import datetime

import pytest

from autoledger.domain.entities import Account, AccountType
from autoledger.domain.errors import ExtractionFailure
from autoledger.enrichment.extraction import (
    extract_account,
    extract_code,
    extract_identifier,
    extract_name,
    extract_structured,
    extract_structured_code,
)

REF_GENERAL = "8f14e45f-ceea-4e6b-9f1a-3c2a7d1b0a11"
REF_TRAVEL = "c9f0f895-fb98-4b91-8c3e-5e4f1d2a6b22"
REF_REPR = "45c48cce-2e2d-4fbd-a1c7-0d9e8f7a6b33"


def _account(account_id, code, name, reference):
    return Account(
        id=account_id,
        code=code,
        name=name,
        account_type=AccountType.EXPENSE,
        is_active=True,
        system_protected=False,
        capital_asset=False,
        reference=reference,
        created_at=datetime(2024, 1, 1),
    )


@pytest.fixture
def candidates():
    return [
        _account(1, "4700", "Kantoor- en algemene kosten", REF_GENERAL),
        _account(2, "4300", "Reis- en parkeerkosten", REF_TRAVEL),
        _account(3, "4360", "Representatiekosten", REF_REPR),
    ]


def test_structured_json(candidates):
    text = f'{{"id": "{REF_REPR}", "reason": "flowers for a client"}}'

    result = extract_account(text, candidates)

    assert result.account.code == "4360"
    assert result.strategy == "structured"
    assert result.score == 90


def test_structured_json_in_markdown_fence(candidates):
    text = f'```json\n{{"account_id": "{REF_TRAVEL}"}}\n```'

    assert extract_structured(text, candidates).code == "4300"


def test_structured_code_only(candidates):
    text = '{"selected_account_code": "4360", "reason": "flowers for a client"}'

    result = extract_account(text, candidates)

    assert result.account.code == "4360"
    assert result.strategy == "structured_code"
    assert result.score == 80


def test_structured_code_with_unknown_identifier(candidates):
    text = '{"id": "not-a-real-id", "code": "4300", "reason": "parking"}'

    result = extract_account(text, candidates)

    assert result.account.code == "4300"
    assert result.strategy == "structured_code"


def test_structured_code_accepts_numbers(candidates):
    assert extract_structured_code('{"account_code": 4700}', candidates).code == "4700"
    assert extract_structured_code('{"code": "9999"}', candidates) is None


def test_broken_json_falls_back_to_identifier(candidates):
    text = f'{{"id": "{REF_GENERAL}", "reason": "office}}'

    result = extract_account(text, candidates)

    assert result.account.code == "4700"
    assert result.strategy == "identifier"
    assert result.score == 75


def test_identifier_in_prose(candidates):
    text = f"The best fit is account {REF_REPR} because it is a gift."

    assert extract_identifier(text, candidates).code == "4360"


def test_identifier_ambiguous(candidates):
    text = f"Either {REF_REPR} or {REF_GENERAL}."

    assert extract_identifier(text, candidates) is None


def test_code_in_prose(candidates):
    result = extract_account("I would book this on 4300.", candidates)

    assert result.account.code == "4300"
    assert result.strategy == "code"
    assert result.score == 70


def test_code_ignores_amounts_and_longer_numbers(candidates):
    assert extract_code("Amount 4300.50 on invoice 43001", candidates) is None


def test_name_in_prose(candidates):
    result = extract_account("Representatiekosten seems right.", candidates)

    assert result.account.code == "4360"
    assert result.strategy == "name"
    assert result.score == 65


def test_fuzzy_name(candidates):
    assert extract_name("Representatie kosten", candidates).code == "4360"


def test_nothing_found(candidates):
    with pytest.raises(ExtractionFailure):
        extract_account("I am not sure what this is.", candidates)


def test_empty_candidates():
    with pytest.raises(ExtractionFailure):
        extract_account(f'{{"id": "{REF_GENERAL}"}}', [])
