"""Amount parsing utilities.

Money is stored as integer minor units (pennies) to avoid float drift.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
import re

_CURRENCY_SYMBOLS_RE = re.compile(r"[$€£¥]")
_NUMBER_RE = re.compile(r"^\d+(\.\d*)?$|^\.\d+$")


def parse_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45", "-$123.45", "$-123.45", "123.45-"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount, or None if the string is empty or not a number
    """
    if amount_str is None or not amount_str.strip():
        return None

    # Remove whitespace
    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols, commas and inner spaces
    amount_str = _CURRENCY_SYMBOLS_RE.sub("", amount_str)
    amount_str = amount_str.replace(",", "").replace(" ", "")

    if amount_str.startswith("+"):
        amount_str = amount_str[1:]
    elif amount_str.startswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[1:]
    elif amount_str.endswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[:-1]

    if not _NUMBER_RE.match(amount_str):
        return None

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        return None
    return -amount if is_negative else amount


def to_minor_units(amount_str: Optional[str]) -> Optional[int]:
    """Convert a currency string into signed integer minor units.

    Rounds half away from zero: "0.005" -> 1, "-0.005" -> -1.

    Returns:
        Pennies, or None for empty or unparseable input
    """
    amount = parse_amount(amount_str)
    if amount is None:
        return None
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_minor_units(pennies: Optional[int]) -> str:
    """Format pennies for display, e.g. 123456 -> "1,234.56"."""
    if pennies is None:
        return ""
    amount = Decimal(pennies) / 100
    return f"{amount:,.2f}"
