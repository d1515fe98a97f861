"""Tests for the static vendor knowledge base and keyword inference."""

from autoledger.domain.chart import GENERAL_EXPENSES_CODE, PRIVATE_WITHDRAWALS_CODE
from autoledger.domain.inference import infer_category
from autoledger.domain.vendors import lookup_vendor


def test_known_vendor():
    match = lookup_vendor("GAMMA BOUWMARKT")

    assert match.entry.category == "Hardware store"
    assert match.entry.account_code == GENERAL_EXPENSES_CODE
    assert match.entry.confidence == 85


def test_short_brand_needs_whole_word():
    assert lookup_vendor("BP Amsterdam").entry.category == "Fuel"
    assert lookup_vendor("BPOST pakketdienst") is None


def test_longest_keyword_wins():
    match = lookup_vendor("NS Reizigers Parkeren P+R")

    # "ns reizigers" is longer than "parkeren"
    assert match.keyword == "ns reizigers"


def test_cash_withdrawal_always_wins():
    match = lookup_vendor("Geldmaat Shell Utrecht")

    assert match.entry.cash_withdrawal
    assert match.entry.account_code == PRIVATE_WITHDRAWALS_CODE
    assert match.entry.confidence == 100


def test_unknown_vendor():
    assert lookup_vendor("BLOEMIST JANSEN") is None


def test_infer_category_highest_score():
    rule = infer_category("Premie verzekering kantoor")

    assert rule.category == "Insurance"


def test_infer_category_no_match():
    assert infer_category("Bloemist Jansen") is None
