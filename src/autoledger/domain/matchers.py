"""Classification layers, from most to least certain.

Each matcher looks at one transaction against a read-only ledger snapshot
and either returns a Suggestion or None to let the next layer try.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from autoledger.config import PipelineConfig
from autoledger.domain.chart import GENERAL_EXPENSES_CODE, REVENUE_CODE
from autoledger.domain.entities import (
    BankTransaction,
    Contact,
    InvoiceKind,
    LedgerSnapshot,
    MatchType,
    PostingMode,
    Suggestion,
    SuggestionSource,
)
from autoledger.domain.errors import EnrichmentUnavailable, ExtractionFailure
from autoledger.domain.inference import FALLBACK_SCORE, infer_category
from autoledger.domain.rules import find_matching_rule
from autoledger.domain.vendors import lookup_vendor
from autoledger.enrichment.client import EnrichmentClient, candidate_accounts
from autoledger.enrichment.extraction import ExtractionResult
from autoledger.utils.text_matching import clean_description, extract_city, matching_text

logger = logging.getLogger(__name__)


class Matcher(ABC):
    """One classification layer."""

    name = "matcher"

    def __init__(self, snapshot: LedgerSnapshot, config: PipelineConfig):
        self.snapshot = snapshot
        self.config = config

    @abstractmethod
    def try_classify(self, transaction: BankTransaction) -> Optional[Suggestion]:
        """Return a suggestion, or None to defer to the next layer."""


def _enrich(
    enrichment: Optional[EnrichmentClient],
    snapshot: LedgerSnapshot,
    config: PipelineConfig,
    transaction: BankTransaction,
    text: str,
) -> Optional[ExtractionResult]:
    """Run enrichment, absorbing every collaborator failure."""
    if enrichment is None or not text:
        return None
    candidates = candidate_accounts(
        snapshot.accounts, transaction.amount, config.capital_asset_threshold
    )
    try:
        return enrichment.classify(
            text, transaction.amount, candidates, city=extract_city(transaction.description)
        )
    except EnrichmentUnavailable as exc:
        logger.warning("Enrichment unavailable for transaction %d: %s", transaction.id, exc)
    except ExtractionFailure:
        logger.info("No account in enrichment answer for transaction %d", transaction.id)
    return None


class InvoiceMatcher(Matcher):
    """Open invoice with the same amount and a nearby date."""

    name = "invoice"

    def _contact_named(self, contact_id: int, text: str) -> bool:
        contact = self.snapshot.contact(contact_id)
        if contact is None or not text:
            return False
        name = contact.name.lower()
        return name in text or text in name

    def try_classify(self, transaction: BankTransaction) -> Optional[Suggestion]:
        kind = InvoiceKind.PURCHASE if transaction.is_expense else InvoiceKind.SALES
        amount = abs(transaction.amount)
        matches = [
            invoice
            for invoice in self.snapshot.open_invoices
            if invoice.kind == kind
            and abs(invoice.total_amount - amount) <= self.config.amount_epsilon
            and abs((invoice.invoice_date - transaction.date).days) <= self.config.invoice_window_days
        ]
        if len(matches) > 1:
            # Narrow ambiguous matches down by counterparty name
            text = matching_text(transaction).lower()
            matches = [
                invoice for invoice in matches if self._contact_named(invoice.contact_id, text)
            ]
        if len(matches) != 1:
            return None

        invoice = matches[0]
        contact = self.snapshot.contact(invoice.contact_id)
        return Suggestion(
            score=100,
            source=SuggestionSource.INVOICE_MATCH,
            reason=f"Amount and date match open invoice {invoice.number}",
            mode=PostingMode.RELATION,
            account_id=contact.default_account_id if contact else None,
            contact_id=invoice.contact_id,
            description=f"Payment invoice {invoice.number}",
            invoice_id=invoice.id,
        )


class RuleMatcher(Matcher):
    """User-learned and system keyword rules."""

    name = "rule"

    def try_classify(self, transaction: BankTransaction) -> Optional[Suggestion]:
        rule = find_matching_rule(self.snapshot.rules, transaction)
        if rule is None:
            return None
        account_id = rule.account_id
        if account_id is None and rule.contact_id is not None:
            contact = self.snapshot.contact(rule.contact_id)
            account_id = contact.default_account_id if contact else None
        return Suggestion(
            score=100 if rule.match_type == MatchType.EXACT else 95,
            source=SuggestionSource.RULE,
            reason=f"Rule '{rule.keyword}' ({rule.match_type.value.lower()})",
            mode=rule.mode,
            account_id=account_id,
            contact_id=rule.contact_id,
            rule_id=rule.id,
        )


class ContactMatcher(Matcher):
    """Counterparty resembling a known contact; books in Relation mode."""

    name = "contact"

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        config: PipelineConfig,
        enrichment: Optional[EnrichmentClient] = None,
    ):
        super().__init__(snapshot, config)
        self.enrichment = enrichment

    def _find_contact(self, text: str) -> Optional[Contact]:
        text = text.lower()
        matches = [
            contact
            for contact in self.snapshot.contacts
            if contact.is_active
            and len(contact.name) >= 3
            and (contact.name.lower() in text or text in contact.name.lower())
        ]
        if not matches:
            return None
        # Most specific name wins
        return max(matches, key=lambda contact: len(contact.name))

    def try_classify(self, transaction: BankTransaction) -> Optional[Suggestion]:
        text = matching_text(transaction)
        if len(text) < 3:
            return None
        contact = self._find_contact(text)
        if contact is None:
            return None

        if contact.default_account_id is not None:
            return Suggestion(
                score=100,
                source=SuggestionSource.CONTACT,
                reason=f"Known contact '{contact.name}' with default account",
                mode=PostingMode.RELATION,
                account_id=contact.default_account_id,
                contact_id=contact.id,
            )

        result = _enrich(self.enrichment, self.snapshot, self.config, transaction, contact.name)
        if result is None:
            return Suggestion(
                score=100,
                source=SuggestionSource.CONTACT,
                reason=f"Known contact '{contact.name}'; account needs manual selection",
                mode=PostingMode.RELATION,
                contact_id=contact.id,
            )
        return Suggestion(
            score=100,
            source=SuggestionSource.CONTACT,
            reason=(
                f"Known contact '{contact.name}'; account {result.account.code} "
                f"suggested by enrichment ({result.strategy} match)"
            ),
            mode=PostingMode.RELATION,
            account_id=result.account.id,
            contact_id=contact.id,
            account_confidence=result.score,
        )


class VendorMatcher(Matcher):
    """Static vendor knowledge base."""

    name = "vendor"

    def try_classify(self, transaction: BankTransaction) -> Optional[Suggestion]:
        for text in (matching_text(transaction), clean_description(transaction.description)):
            match = lookup_vendor(text)
            if match is not None:
                break
        else:
            return None

        entry = match.entry
        account = self.snapshot.account_by_code(entry.account_code)
        if account is None or not account.is_active:
            logger.debug("Vendor account %s missing; skipping vendor layer", entry.account_code)
            return None
        if entry.cash_withdrawal:
            reason = "Cash withdrawal booked as private withdrawal"
        else:
            reason = f"Known vendor ({entry.category}: '{match.keyword}')"
        return Suggestion(
            score=entry.confidence,
            source=SuggestionSource.VENDOR_TABLE,
            reason=reason,
            mode=PostingMode.DIRECT,
            account_id=account.id,
            description=entry.category,
        )


class EnrichmentMatcher(Matcher):
    """Fact-finder plus category mapper for unknown counterparties."""

    name = "enrichment"

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        config: PipelineConfig,
        enrichment: Optional[EnrichmentClient] = None,
    ):
        super().__init__(snapshot, config)
        self.enrichment = enrichment

    def try_classify(self, transaction: BankTransaction) -> Optional[Suggestion]:
        text = matching_text(transaction)
        result = _enrich(self.enrichment, self.snapshot, self.config, transaction, text)
        if result is None:
            return None
        return Suggestion(
            score=result.score,
            source=SuggestionSource.ENRICHMENT,
            reason=f"Enrichment suggested {result.account.name} ({result.strategy} match)",
            mode=PostingMode.DIRECT,
            account_id=result.account.id,
            account_confidence=result.score,
        )


class KeywordInferenceMatcher(Matcher):
    """Last resort: generic keywords, always answers with a low score."""

    name = "keyword"

    def try_classify(self, transaction: BankTransaction) -> Optional[Suggestion]:
        text = " ".join(filter(None, (transaction.counterparty, transaction.description)))
        rule = infer_category(text)
        if rule is not None:
            account = self.snapshot.account_by_code(rule.account_code)
            return Suggestion(
                score=rule.score,
                source=SuggestionSource.KEYWORD_INFERENCE,
                reason=f"Generic keyword match: {rule.category}",
                mode=PostingMode.DIRECT,
                account_id=account.id if account and account.is_active else None,
            )

        fallback_code = GENERAL_EXPENSES_CODE if transaction.is_expense else REVENUE_CODE
        account = self.snapshot.account_by_code(fallback_code)
        return Suggestion(
            score=FALLBACK_SCORE,
            source=SuggestionSource.KEYWORD_INFERENCE,
            reason="No specific match; please review",
            mode=PostingMode.DIRECT,
            account_id=account.id if account and account.is_active else None,
        )
