"""Generic keyword heuristics used when nothing more specific matched."""

from dataclasses import dataclass
from typing import Optional

from autoledger.domain.chart import GENERAL_EXPENSES_CODE, REVENUE_CODE
from autoledger.utils.text_matching import contains_word

FALLBACK_SCORE = 30


@dataclass(frozen=True)
class KeywordRule:
    category: str
    keywords: tuple[str, ...]
    account_code: str
    score: int


KEYWORD_RULES = (
    KeywordRule(
        "Revenue",
        ("omzet", "verkoop", "opbrengst", "dienstverlening", "uurtarief", "factuur", "sales"),
        REVENUE_CODE,
        55,
    ),
    KeywordRule(
        "Housing",
        ("huur", "energie", "elektra", "stroom", "schoonmaak", "huisvesting"),
        "4100",
        55,
    ),
    KeywordRule(
        "Transport",
        ("brandstof", "benzine", "diesel", "parkeren", "trein", "reiskosten", "vervoer", "lease"),
        "4300",
        50,
    ),
    KeywordRule(
        "Office",
        ("telefoon", "internet", "mobiel", "software", "licentie", "kantoor", "porto",
         "drukwerk", "abonnement"),
        GENERAL_EXPENSES_CODE,
        45,
    ),
    KeywordRule(
        "Sales costs",
        ("reclame", "advertentie", "marketing", "relatiegeschenk", "linkedin"),
        "4400",
        50,
    ),
    KeywordRule(
        "Insurance",
        ("verzekering", "polis"),
        "4600",
        60,
    ),
    KeywordRule(
        "Professional fees",
        ("administratie", "boekhouder", "accountant", "advies", "juridisch"),
        "4650",
        50,
    ),
    KeywordRule(
        "Bank costs",
        ("bankkosten", "rente", "interest", "transactiekosten"),
        "4900",
        60,
    ),
)


def infer_category(text: str) -> Optional[KeywordRule]:
    """Return the highest-scoring keyword rule found in ``text``."""
    best: Optional[KeywordRule] = None
    for rule in KEYWORD_RULES:
        if any(contains_word(text, keyword) for keyword in rule.keywords):
            if best is None or rule.score > best.score:
                best = rule
    return best
