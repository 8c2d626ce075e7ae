"""
Monetary helpers.

All money columns are Numeric(12, 2). Values move through the service layer
as Decimal; floats are converted via str() so 0.1 stays 0.1.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"invalid monetary amount: {value!r}")


def round_money(value) -> Decimal:
    """Round to whole cents, half-up (0.005 -> 0.01)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value) -> str | None:
    if value is None:
        return None
    return str(round_money(value))
