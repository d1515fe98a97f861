"""OpenAI-compatible fact-finder and category-mapper collaborators.

Both talk to an OpenAI-compatible endpoint (OpenRouter by default): the
fact-finder uses a web-search capable model to describe what a
counterparty does, the mapper picks an account from a candidate list.
Neither is trusted to return structured data.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from autoledger.config import EnrichmentSettings
from autoledger.domain.entities import Account

logger = logging.getLogger(__name__)

NO_MATCH = "no match"

_FACT_FINDER_SYSTEM = """\
You identify Dutch businesses from the counterparty name on a bank statement.
Answer with the industry or type of business in at most eight words, for
example "Gas Station", "Supermarket" or "Software company". If you cannot
identify the business, answer exactly: no match
"""

_MAPPER_SYSTEM = """\
You are a Dutch bookkeeper for a small business. Pick the single ledger
account that best fits a bank transaction, from the candidate accounts only.
Reply ONLY with JSON of the form:
{"id": "<account id>", "code": "<account code>", "reason": "<short reason>"}
"""


class FactFinder(Protocol):
    def find_facts(self, counterparty: str, city: Optional[str] = None) -> Optional[str]:
        """Return a free-text industry guess. "no match" or None means unknown."""
        ...


class CategoryMapper(Protocol):
    def map_category(
        self, industry: str, amount: Decimal, candidates: Sequence[Account]
    ) -> str:
        """Return free text naming one of the candidate accounts."""
        ...


class _OpenAICollaborator:
    """Lazily creates the OpenAI client pointed at the configured endpoint."""

    def __init__(self, settings: EnrichmentSettings, model: str, timeout: float = 15.0) -> None:
        self._settings = settings
        self._model = model
        self._timeout = timeout
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI

            # Retries are owned by EnrichmentClient
            self._client = OpenAI(
                api_key=self._settings.api_key or "",
                base_url=self._settings.base_url,
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client

    @property
    def is_available(self) -> bool:
        """True if an API key is configured."""
        return self._settings.is_configured

    def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        response = self._get_client().chat.completions.create(
            model=self._model,
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )
        answer = (response.choices[0].message.content or "").strip()
        logger.debug("%s answered: %s", self._model, answer)
        return answer


class OpenAIFactFinder(_OpenAICollaborator):
    """Web-search backed description of what a counterparty does."""

    def __init__(self, settings: EnrichmentSettings, timeout: float = 15.0) -> None:
        super().__init__(settings, settings.fact_finder_model, timeout)

    def find_facts(self, counterparty: str, city: Optional[str] = None) -> Optional[str]:
        location = f"located in {city}, The Netherlands" if city else "in The Netherlands"
        prompt = f'What kind of business is "{counterparty}" {location}?'
        return self._complete(_FACT_FINDER_SYSTEM, prompt, max_tokens=60) or None


class OpenAICategoryMapper(_OpenAICollaborator):
    """Language model choosing one account from a filtered candidate list."""

    def __init__(self, settings: EnrichmentSettings, timeout: float = 15.0) -> None:
        super().__init__(settings, settings.mapper_model, timeout)

    def map_category(
        self, industry: str, amount: Decimal, candidates: Sequence[Account]
    ) -> str:
        direction = "payment made" if amount < 0 else "payment received"
        listing = "\n".join(
            f"- id: {acc.reference} | code: {acc.code} | name: {acc.name}" for acc in candidates
        )
        prompt = (
            f"Industry of the counterparty: {industry}\n"
            f"Amount: EUR {abs(amount):.2f} ({direction})\n\n"
            f"Candidate accounts:\n{listing}"
        )
        return self._complete(_MAPPER_SYSTEM, prompt, max_tokens=200)
