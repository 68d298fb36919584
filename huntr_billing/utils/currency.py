"""Display helpers for amounts stored in minor currency units."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
}

_CENTS = Decimal("0.01")


def to_major_units(amount: int) -> Decimal:
    """Convert an integer amount in minor units (kobo, cents) to major units."""

    return (Decimal(amount) / 100).quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_currency(amount: int, currency: str) -> str:
    """Render ``amount`` (minor units) with grouping and two decimals.

    >>> format_currency(500000, "NGN")
    '₦5,000.00'
    """

    code = currency.upper()
    value = to_major_units(amount)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,.2f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{grouped}"
    return f"{sign}{code} {grouped}"


__all__ = ["CURRENCY_SYMBOLS", "format_currency", "to_major_units"]
