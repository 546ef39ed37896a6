"""Amount parsing and formatting utilities.

Money is handled as float throughout, matching the ledger's arithmetic.
"""

import re

CURRENCY_SIGN = "৳"


def parse_amount(amount_str: str) -> float:
    """Parse an amount string into a float.

    Handles various formats:
    - "123.45"
    - "৳123.45" or "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Float amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[৳$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = float(amount_str)
    except ValueError as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if amount != amount or amount in (float("inf"), float("-inf")):
        raise ValueError(f"Could not parse amount '{amount_str}': not a finite number")
    return -amount if is_negative else amount


def format_amount(amount: float) -> str:
    """Format an amount for display, e.g. 1500 -> '৳1,500.00'."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{CURRENCY_SIGN}{abs(amount):,.2f}"
