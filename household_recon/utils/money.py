"""
utils/money.py
--------------
Decimal helpers for amounts in the household's base currency.
"""

from decimal import ROUND_HALF_UP, Decimal

from household_recon.config import CURRENCY_MINOR_UNIT

ZERO = Decimal("0")
HALF = Decimal("0.5")


def to_decimal(value) -> Decimal:
    """
    Convert an int, float, str or Decimal amount to Decimal.

    Floats go through ``str`` so that 19.99 stays 19.99 rather than its
    binary approximation.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_minor(value: Decimal, minor_unit: Decimal = CURRENCY_MINOR_UNIT) -> Decimal:
    """Round to the currency's minor unit, half-up."""
    return to_decimal(value).quantize(minor_unit, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal, currency: str = "kr") -> str:
    """Format an amount for logs and exports, e.g. ``1 250.50 kr``."""
    return f"{round_minor(value):,.2f} {currency}".replace(",", " ")
