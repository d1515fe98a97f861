"""External enrichment: fact-finder and category-mapper collaborators."""

from autoledger.enrichment.client import (
    EnrichmentClient,
    build_enrichment_client,
    candidate_accounts,
)
from autoledger.enrichment.extraction import ExtractionResult, extract_account

__all__ = [
    "EnrichmentClient",
    "ExtractionResult",
    "build_enrichment_client",
    "candidate_accounts",
    "extract_account",
]
