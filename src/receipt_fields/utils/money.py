"""
Yen amount parsing utilities.

Receipt amounts are whole yen:
- Grouped: 1,650 or 1，650 (full-width comma)
- Plain: 1650
- Full-width digits: １６５０
"""

import re
from typing import Optional

_SEPARATORS = re.compile(r'[,，\s]')
_GROUPED = re.compile(r'^\d{1,3}(?:[,，]\d{3})+$')


def normalize_amount(amount_str: Optional[str]) -> int:
    """
    Parse an amount string into a whole-yen integer.

    Args:
        amount_str: Digits with optional grouping separators (e.g., "1,650")

    Returns:
        Non-negative integer amount, or 0 if parsing fails

    Examples:
        >>> normalize_amount("1,650")
        1650
        >>> normalize_amount("1650")
        1650
        >>> normalize_amount("-300")
        0
    """
    if not amount_str or not isinstance(amount_str, str):
        return 0

    cleaned = _SEPARATORS.sub('', amount_str)
    if not cleaned:
        return 0

    try:
        amount = int(cleaned)
    except ValueError:
        return 0

    return amount if amount >= 0 else 0


def has_valid_grouping(amount_str: Optional[str]) -> bool:
    """
    Check for correct 3-digit grouping.

    "1,650" and "12,345,678" are grouped correctly; "1650" has no
    grouping and "16,50" is malformed.
    """
    if not amount_str:
        return False
    return bool(_GROUPED.match(amount_str.strip()))


def format_yen(amount: Optional[int]) -> str:
    """
    Format a whole-yen amount for display.

    Examples:
        >>> format_yen(1650)
        '¥1,650'
    """
    if amount is None:
        return 'N/A'
    return f"¥{amount:,}"
