"""
Money amounts typed by users
"""
import re
from decimal import Decimal

# Optional sign, digits, at most two decimals; "," accepted as decimal separator
_AMOUNT_RE = re.compile(r"^-?\d+(\.\d{1,2})?$")


def parse_amount(value: str, positive: bool = True) -> Decimal:
    """
    Parse a user-typed amount into a Decimal with at most 2 decimal places

    Raises:
        ValueError: bad format, or not positive when positive=True

    Example:
        >>> parse_amount(" 100,50 ")
        Decimal('100.50')
        >>> parse_amount("-15000", positive=False)
        Decimal('-15000')
    """
    normalized = str(value).strip().replace(",", ".")
    if not _AMOUNT_RE.match(normalized):
        raise ValueError(f"Invalid amount: {value!r} (digits with at most 2 decimal places)")

    amount = Decimal(normalized)
    if positive and amount <= 0:
        raise ValueError("Amount must be greater than zero")
    return amount
