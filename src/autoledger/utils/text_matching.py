"""Text helpers for matching bank transaction descriptions."""

import re
from typing import Optional

from autoledger.domain.entities import BankTransaction

_NOISE_PATTERNS = [
    # Wallets and payment processors
    r"\b(?:Apple Pay|Google Pay|Samsung Pay|Garmin Pay)\b",
    r"\b(?:CCV|Mollie|Buckaroo|Adyen|MultiSafepay|Pay\.nl|Sisow)\b",
    # Terminal and card noise
    r"\b(?:Betaalautomaat|Betaal automaat|Pinautomaat|Pin automaat)\b",
    r"\b(?:Contactloos|Mobiele betaling|Mobile payment|NFC)\b",
    r"\b(?:Pasnummer|Pasnr\.?|Pas nr\.?|Kaart nr\.?|Card nr\.?)\s*\d*",
    # Dates and times
    r"\b\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}\b",
    r"\b\d{4}[-/.]\d{1,2}[-/.]\d{1,2}\b",
    r"\b\d{1,2}:\d{2}(?::\d{2})?\b",
    # Bank codes, with the number that usually follows them
    r"\b(?:BEA|SEPA|TRX|PAS|NR|REF|IBAN|BIC|TERM|PIN|ID|CODE|Omschrijving|Incasso)\b"
    r"(?:\s*[:.]?\s*\d+\b)?",
    # Transaction and reference numbers
    r"\b\d{4,}\b",
]
_NOISE = [re.compile(pattern, re.IGNORECASE) for pattern in _NOISE_PATTERNS]

DUTCH_CITIES = [
    "amsterdam", "rotterdam", "den haag", "utrecht", "eindhoven",
    "groningen", "tilburg", "almere", "breda", "nijmegen",
    "apeldoorn", "haarlem", "arnhem", "zaanstad", "amersfoort",
    "den bosch", "s-hertogenbosch", "hoofddorp", "maastricht", "leiden",
    "dordrecht", "zoetermeer", "zwolle", "deventer", "delft",
    "alkmaar", "heerlen", "venlo", "leeuwarden", "hilversum",
]


def contains_word(text: str, keyword: str) -> bool:
    """Return True if ``keyword`` occurs in ``text`` as a complete word.

    Matching is case-insensitive; "BP" matches "BP Station" but not "BPost".
    Keywords may start or end with punctuation, as in "Jansen B.V.".
    """
    if not text or not keyword or not keyword.strip():
        return False
    pattern = r"(?<!\w)" + re.escape(keyword.strip()) + r"(?!\w)"
    return re.search(pattern, text, re.IGNORECASE) is not None


def clean_description(description: str) -> str:
    """Strip payment terminal noise from a bank description.

    Example:
        "BEA 12:00 24-12-2024 SHELL UTRECHT NR 12345 PAS 678" -> "SHELL UTRECHT"
    """
    if not description:
        return ""
    cleaned = description
    for pattern in _NOISE:
        cleaned = pattern.sub(" ", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip()


def matching_text(transaction: BankTransaction) -> str:
    """Pick the text to classify: the counterparty, else the description."""
    counterparty = (transaction.counterparty or "").strip()
    if len(counterparty) > 2:
        return clean_description(counterparty) or counterparty
    return clean_description(transaction.description)


def extract_city(text: str) -> Optional[str]:
    """Return the first known Dutch city named in ``text``, title-cased."""
    for city in DUTCH_CITIES:
        if contains_word(text, city):
            return " ".join(part.capitalize() for part in re.split(r"[\s-]", city))
    return None
