"""Runtime configuration for classification, booking and enrichment."""

import os
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Optional

from dotenv import load_dotenv

from autoledger.domain.errors import ValidationError


@dataclass(frozen=True)
class PipelineConfig:
    """Thresholds and budgets passed explicitly into the pipeline.

    Attributes:
        auto_book_threshold: Scores at or above this are booked automatically
        suggest_threshold: Scores at or above this are pre-filled for one-click review
        capital_asset_threshold: Capital asset accounts are only offered to the
            category mapper when the absolute amount reaches this value
        invoice_window_days: Maximum distance between invoice and payment date
        amount_epsilon: Tolerance for invoice amount matching
        enrichment_timeout: Seconds allowed per enrichment collaborator call
        enrichment_max_retries: Retries per collaborator call (0 or 1)
        max_workers: Parallel classification workers per batch
    """

    auto_book_threshold: int = 80
    suggest_threshold: int = 70
    capital_asset_threshold: Decimal = Decimal("450")
    invoice_window_days: int = 7
    amount_epsilon: Decimal = Decimal("0")
    enrichment_timeout: float = 15.0
    enrichment_max_retries: int = 1
    max_workers: int = 5

    def __post_init__(self):
        if not 0 <= self.suggest_threshold <= self.auto_book_threshold <= 100:
            raise ValidationError(
                "Thresholds must satisfy 0 <= suggest_threshold <= auto_book_threshold <= 100"
            )
        if self.enrichment_max_retries not in (0, 1):
            raise ValidationError("enrichment_max_retries must be 0 or 1")
        if self.enrichment_timeout <= 0:
            raise ValidationError("enrichment_timeout must be positive")
        if self.max_workers < 1:
            raise ValidationError("max_workers must be at least 1")
        if self.invoice_window_days < 0 or self.amount_epsilon < 0:
            raise ValidationError("invoice_window_days and amount_epsilon must not be negative")

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """Build a config from AUTOLEDGER_* environment variables.

        ``AUTOLEDGER_AUTO_BOOK_THRESHOLD=85`` overrides ``auto_book_threshold``,
        and so on for every field. Keyword overrides win over the environment.
        """
        values = {}
        for f in fields(cls):
            raw = os.environ.get(f"AUTOLEDGER_{f.name.upper()}")
            if raw is None:
                continue
            try:
                values[f.name] = _convert(f.type, raw)
            except (ValueError, InvalidOperation):
                raise ValidationError(f"Invalid value for AUTOLEDGER_{f.name.upper()}: '{raw}'")
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _convert(field_type, raw: str):
    if field_type in (Decimal, "Decimal"):
        return Decimal(raw)
    if field_type in (float, "float"):
        return float(raw)
    return int(raw)


@dataclass(frozen=True)
class EnrichmentSettings:
    """Connection settings for the OpenAI-compatible enrichment endpoint."""

    api_key: Optional[str] = None
    base_url: str = "https://openrouter.ai/api/v1"
    fact_finder_model: str = "perplexity/sonar"
    mapper_model: str = "openai/gpt-4o-mini"

    @property
    def is_configured(self) -> bool:
        """True if an API key is available."""
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "EnrichmentSettings":
        """Read settings from the environment, loading a .env file first."""
        load_dotenv()
        defaults = cls()
        return cls(
            api_key=os.environ.get("OPENROUTER_API_KEY") or None,
            base_url=os.environ.get("OPENROUTER_BASE_URL", defaults.base_url),
            fact_finder_model=os.environ.get(
                "AUTOLEDGER_FACT_FINDER_MODEL", defaults.fact_finder_model
            ),
            mapper_model=os.environ.get("AUTOLEDGER_MAPPER_MODEL", defaults.mapper_model),
        )
