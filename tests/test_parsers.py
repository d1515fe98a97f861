"""Tests for amount and date parsing."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from autoledger.domain.errors import ValidationError
from autoledger.utils.amount_parser import parse_amount
from autoledger.utils.date_parser import parse_date


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("123.45", Decimal("123.45")),
        ("-123.45", Decimal("-123.45")),
        ("€1,234.56", Decimal("1234.56")),
        ("123,45", Decimal("123.45")),
        ("-1.234,56", Decimal("-1234.56")),
        ("(50.00)", Decimal("-50.00")),
        ("7", Decimal("7.00")),
        ("1.250", Decimal("1250.00")),
        ("-12.345.678", Decimal("-12345678.00")),
        ("0.125", Decimal("0.12")),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "abc", "NaN", "Infinity"])
def test_parse_amount_rejects_malformed(raw):
    with pytest.raises(ValidationError):
        parse_amount(raw)


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_day_first_date():
    """Numeric dates on Dutch statements are day-first."""
    assert parse_date("03-04-2024") == date(2024, 4, 3)


def test_parse_relative_dates():
    today = date.today()
    assert parse_date("today") == today
    assert parse_date("Yesterday") == today - timedelta(days=1)
    assert parse_date("tomorrow") == today + timedelta(days=1)


def test_parse_invalid_date():
    with pytest.raises(ValidationError):
        parse_date("not a date")
