"""Timeout- and retry-bound wrapper around the enrichment collaborators."""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from tenacity import Retrying, stop_after_attempt, wait_exponential

from autoledger.config import EnrichmentSettings, PipelineConfig
from autoledger.domain.chart import PRIVATE_EQUITY_RANGE
from autoledger.domain.entities import Account, AccountType
from autoledger.domain.errors import EnrichmentUnavailable
from autoledger.enrichment.collaborators import (
    NO_MATCH,
    CategoryMapper,
    FactFinder,
    OpenAICategoryMapper,
    OpenAIFactFinder,
)
from autoledger.enrichment.extraction import ExtractionResult, extract_account

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEPRECIATION_MARKERS = ("afschrijving", "depreciation")


def _is_private_equity(account: Account) -> bool:
    low, high = PRIVATE_EQUITY_RANGE
    # Codes compare as numbers: "18000" is not inside 1800-1899
    return (
        account.account_type == AccountType.EQUITY
        and account.code.isdigit()
        and int(low) <= int(account.code) <= int(high)
    )


def candidate_accounts(
    accounts: Iterable[Account], amount: Decimal, capital_asset_threshold: Decimal
) -> list[Account]:
    """Accounts the category mapper may choose from for this amount.

    Payments may go to expense accounts, private equity, or capital asset
    accounts once the amount reaches the threshold. Receipts may go to
    revenue or private equity. Depreciation accounts are never offered.
    """
    allow_capital = abs(amount) >= capital_asset_threshold
    result = []
    for account in accounts:
        if not account.is_active or account.system_protected:
            continue
        if any(marker in account.name.lower() for marker in DEPRECIATION_MARKERS):
            continue
        if _is_private_equity(account):
            result.append(account)
        elif amount < 0 and account.account_type == AccountType.EXPENSE:
            result.append(account)
        elif amount < 0 and account.capital_asset and allow_capital:
            result.append(account)
        elif amount > 0 and account.account_type == AccountType.REVENUE:
            result.append(account)
    return result


class EnrichmentClient:
    """Runs the two-phase fact-finder -> category-mapper enrichment.

    Every collaborator call gets a timeout and at most
    ``config.enrichment_max_retries`` retries. Each attempt runs on its own
    worker thread, so a call that never returns cannot hold up later ones.
    Any failure surfaces as EnrichmentUnavailable so the pipeline can fall
    through to the next layer.
    """

    def __init__(
        self,
        fact_finder: FactFinder,
        mapper: CategoryMapper,
        config: Optional[PipelineConfig] = None,
    ):
        self.fact_finder = fact_finder
        self.mapper = mapper
        self.config = config or PipelineConfig()

    def _attempt(self, func: Callable[..., T], *args) -> T:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="enrichment")
        try:
            future = executor.submit(func, *args)
            return future.result(timeout=self.config.enrichment_timeout)
        finally:
            # A timed-out call keeps its thread; it is abandoned, not joined
            executor.shutdown(wait=False, cancel_futures=True)

    def _call(self, func: Callable[..., T], *args) -> T:
        """Invoke a collaborator under the timeout and retry budget."""
        retrying = Retrying(
            stop=stop_after_attempt(self.config.enrichment_max_retries + 1),
            wait=wait_exponential(multiplier=0.2, max=1),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return self._attempt(func, *args)
        except Exception as exc:
            name = getattr(func, "__name__", repr(func))
            logger.warning("Enrichment call %s failed: %s", name, exc or type(exc).__name__)
            raise EnrichmentUnavailable(f"Enrichment call {name} failed: {exc}") from exc
        raise EnrichmentUnavailable("Enrichment retry budget exhausted")

    def find_industry(self, counterparty: str, city: Optional[str] = None) -> Optional[str]:
        """Ask the fact-finder what the counterparty does.

        Returns None when the fact-finder answers nothing or "no match",
        whatever the collaborator.
        """
        answer = self._call(self.fact_finder.find_facts, counterparty, city)
        answer = (answer or "").strip()
        if not answer or NO_MATCH in answer.lower():
            logger.debug("Fact-finder has no match for '%s'", counterparty)
            return None
        return answer

    def classify(
        self,
        counterparty: str,
        amount: Decimal,
        candidates: Sequence[Account],
        city: Optional[str] = None,
    ) -> Optional[ExtractionResult]:
        """Enrich a counterparty and map it onto one candidate account.

        Returns:
            The extracted account, or None when the fact-finder has no match
            or there are no candidates

        Raises:
            EnrichmentUnavailable: If a collaborator timed out or failed
            ExtractionFailure: If the mapper answered without a usable account
        """
        if not candidates:
            return None
        industry = self.find_industry(counterparty, city)
        if industry is None:
            return None
        logger.debug("Fact-finder: '%s' is '%s'", counterparty, industry)
        response = self._call(self.mapper.map_category, industry, amount, list(candidates))
        result = extract_account(response or "", candidates)
        logger.info(
            "Enrichment mapped '%s' to %s via %s (%d)",
            counterparty, result.account.code, result.strategy, result.score,
        )
        return result


def build_enrichment_client(
    settings: EnrichmentSettings, config: Optional[PipelineConfig] = None
) -> Optional[EnrichmentClient]:
    """Create the OpenAI-backed client, or None when no API key is configured."""
    if not settings.is_configured:
        logger.info("Enrichment not configured; pipeline runs without it")
        return None
    config = config or PipelineConfig()
    return EnrichmentClient(
        OpenAIFactFinder(settings, timeout=config.enrichment_timeout),
        OpenAICategoryMapper(settings, timeout=config.enrichment_timeout),
        config,
    )
