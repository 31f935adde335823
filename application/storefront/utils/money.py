"""
Currency helpers. Amounts are whole currency units; the shop's currency has no
minor unit in practice.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

from storefront.config.settings import StorefrontConfigs
configs = StorefrontConfigs()

WHOLE_UNIT = Decimal("1")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def to_money(value: Optional[Number]) -> Decimal:
    """Convert an int/float/str amount to Decimal via str() to avoid float artefacts."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_currency(value: Number) -> Decimal:
    """Round half-up to whole currency units."""
    return to_money(value).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def parse_tendered_amount(value: Optional[Number]) -> Optional[Decimal]:
    """
    Parse a cash amount typed at the counter.

    Returns None when the value is missing, not a number, not finite or negative.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = to_money(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def format_price(amount: Number, symbol: Optional[str] = None) -> str:
    """
    Format an amount the way receipts and the storefront show it.

    Example: 1250000 -> "1.250.000 ₫"
    """
    value = round_currency(amount)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(int(value)):,}".replace(",", ".")
    return f"{sign}{grouped} {symbol or configs.CURRENCY_SYMBOL}"
