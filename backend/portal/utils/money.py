from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

CENTS = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """
    Parse user input into a Decimal.

    Returns None for blank or unparsable input. Infinity and NaN parse
    successfully; callers decide whether non-finite values are acceptable.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        return Decimal(text)
    except (InvalidOperation, ValueError):
        return None


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Optional[Number], symbol: str = "$") -> str:
    """Format an amount as US currency, e.g. 1234.5 -> "$1,234.50"."""
    amount = to_decimal(value)
    if amount is None or not amount.is_finite():
        amount = Decimal("0")
    amount = quantize_money(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"
