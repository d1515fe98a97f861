"""Recover an account from the category mapper's free-text answer.

The mapper is asked for JSON but may answer with prose, markdown or broken
JSON. Strategies run in order and each has a fixed score ceiling; a later
strategy only runs when every earlier one found nothing.
"""

import difflib
import json
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from autoledger.domain.entities import Account
from autoledger.domain.errors import ExtractionFailure
from autoledger.utils.text_matching import contains_word

UUID_PATTERN = re.compile(
    r"\b[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\b", re.IGNORECASE
)
JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
IDENTIFIER_FIELDS = ("id", "account_id", "reference", "selected_account_id")
CODE_FIELDS = ("selected_account_code", "account_code", "code")


@dataclass(frozen=True)
class ExtractionResult:
    """Account recovered from a mapper response and how it was found."""

    account: Account
    strategy: str
    score: int


def _unique(accounts: list[Account]) -> Optional[Account]:
    distinct = {acc.id: acc for acc in accounts}
    if len(distinct) == 1:
        return next(iter(distinct.values()))
    return None


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```[a-zA-Z]*\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text


def _json_object(text: str) -> Optional[dict]:
    match = JSON_OBJECT.search(_strip_fences(text))
    if match is None:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def extract_structured(text: str, candidates: Sequence[Account]) -> Optional[Account]:
    """JSON object whose identifier field names a candidate."""
    data = _json_object(text)
    if data is None:
        return None
    by_reference = {acc.reference.lower(): acc for acc in candidates}
    for field in IDENTIFIER_FIELDS:
        value = data.get(field)
        if isinstance(value, str) and value.strip().lower() in by_reference:
            return by_reference[value.strip().lower()]
    return None


def extract_structured_code(text: str, candidates: Sequence[Account]) -> Optional[Account]:
    """JSON object whose code field holds a candidate account code."""
    data = _json_object(text)
    if data is None:
        return None
    by_code = {acc.code: acc for acc in candidates}
    for field in CODE_FIELDS:
        value = data.get(field)
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            code = str(value).strip()
            if code in by_code:
                return by_code[code]
    return None


def extract_identifier(text: str, candidates: Sequence[Account]) -> Optional[Account]:
    """Exactly one candidate identifier appearing anywhere in the text."""
    by_reference = {acc.reference.lower(): acc for acc in candidates}
    found = [
        by_reference[token.lower()]
        for token in UUID_PATTERN.findall(text)
        if token.lower() in by_reference
    ]
    return _unique(found)


def extract_code(text: str, candidates: Sequence[Account]) -> Optional[Account]:
    """Exactly one candidate account code appearing as a whole word."""
    # Identifiers contain digit groups that look like codes
    text = UUID_PATTERN.sub(" ", text)
    found = [
        acc
        for acc in candidates
        if re.search(rf"(?<![\w.,]){re.escape(acc.code)}(?!\w)(?![.,]\d)", text)
    ]
    return _unique(found)


def extract_name(text: str, candidates: Sequence[Account]) -> Optional[Account]:
    """Candidate account name mentioned in, or closely resembling, the text."""
    mentioned = [acc for acc in candidates if contains_word(text, acc.name)]
    if mentioned:
        longest = max(len(acc.name) for acc in mentioned)
        return _unique([acc for acc in mentioned if len(acc.name) == longest])

    names = {acc.name.lower(): acc for acc in candidates}
    for line in _strip_fences(text).splitlines():
        line = line.strip(" -*:\"'").lower()
        if not line:
            continue
        close = difflib.get_close_matches(line, list(names), n=1, cutoff=0.85)
        if close:
            return names[close[0]]
    return None


Strategy = Callable[[str, Sequence[Account]], Optional[Account]]

EXTRACTION_CHAIN: tuple[tuple[str, int, Strategy], ...] = (
    ("structured", 90, extract_structured),
    ("structured_code", 80, extract_structured_code),
    ("identifier", 75, extract_identifier),
    ("code", 70, extract_code),
    ("name", 65, extract_name),
)


def extract_account(
    text: str,
    candidates: Sequence[Account],
    chain: tuple[tuple[str, int, Strategy], ...] = EXTRACTION_CHAIN,
) -> ExtractionResult:
    """Run the strategies in order and return the first account found.

    Raises:
        ExtractionFailure: If no strategy recovers a candidate account
    """
    if text and candidates:
        for name, score, strategy in chain:
            account = strategy(text, candidates)
            if account is not None:
                return ExtractionResult(account=account, strategy=name, score=score)
    raise ExtractionFailure("No account identifier found in category mapper response")
