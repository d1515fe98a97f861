"""Utility functions for autoledger."""

from autoledger.utils.date_parser import parse_date
from autoledger.utils.amount_parser import parse_amount
from autoledger.utils.text_matching import clean_description, contains_word, matching_text

__all__ = ["parse_date", "parse_amount", "clean_description", "contains_word", "matching_text"]
