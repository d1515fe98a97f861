"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

from autoledger.domain.errors import ValidationError


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "€123.45"
    - "-123.45"
    - "-€123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "123,45" (decimal comma, as printed by Dutch banks)
    - "1.250" (thousands dots without decimals)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount rounded to cents

    Raises:
        ValidationError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValidationError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥\s]", "", amount_str)

    # A single comma followed by exactly two digits is a decimal separator
    if re.fullmatch(r"-?[\d.]*\d,\d{2}", amount_str):
        amount_str = amount_str.replace(".", "").replace(",", ".")
    # Dots between groups of three digits, no decimals: "1.250" is 1250
    elif re.fullmatch(r"-?[1-9]\d{0,2}(?:\.\d{3})+", amount_str):
        amount_str = amount_str.replace(".", "")
    else:
        amount_str = amount_str.replace(",", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValidationError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValidationError(f"Could not parse amount '{amount_str}'")
    if is_negative:
        amount = -amount
    return amount.quantize(Decimal("0.01"))
