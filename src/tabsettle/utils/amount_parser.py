"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "12.50"
    - "€12.50" / "$12.50" / "12.50 EUR"
    - "1,234.56"

    Money in this application is never negative, so negative notations
    ("-12.50", "(12.50)") are rejected.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed or is negative
    """
    if not isinstance(amount_str, str) or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    amount_str = amount_str.strip()

    if amount_str.startswith("(") and amount_str.endswith(")"):
        raise ValueError(f"Negative amounts are not allowed: '{amount_str}'")

    # Remove currency symbols and a trailing currency code
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = re.sub(r"\s*[A-Za-z]{3}$", "", amount_str)

    # Remove commas
    amount_str = amount_str.replace(",", "")

    # Remove whitespace again
    amount_str = amount_str.strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if amount < 0:
        raise ValueError(f"Negative amounts are not allowed: '{amount_str}'")
    return amount
