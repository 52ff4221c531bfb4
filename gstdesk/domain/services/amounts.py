# gstdesk/domain/services/amounts.py
"""
Numeric helpers shared by the tax engine and the payload builders.

Form values arrive as whatever the user has typed so far, so parsing is
total: anything that is not a finite number is zero.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_TWO_PLACES = Decimal("0.01")
# Largest power of ten accepted from a form field
_MAX_MAGNITUDE = 15


def safe_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Convert a form value to Decimal, returning ``default`` on failure."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        cleaned = str(value).replace(",", "").replace("₹", "").strip()
        if not cleaned:
            return default
        try:
            result = Decimal(cleaned)
        except (InvalidOperation, ValueError):
            return default
    if not result.is_finite() or result.adjusted() > _MAX_MAGNITUDE:
        return default
    return result


def round2(value: Any) -> Decimal:
    """Round half-up to 2 decimal places."""
    try:
        rounded = safe_decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # beyond the context precision; not a real invoice amount
        return ZERO.quantize(_TWO_PLACES)
    # avoid "-0.00"
    return rounded if rounded else ZERO.quantize(_TWO_PLACES)


def format_two_decimals(value: Any) -> str:
    """``1180`` -> ``"1180.00"``; unparseable input -> ``"0.00"``."""
    return f"{round2(value):f}"


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """``amount * rate / 100``, unrounded."""
    return amount * rate / HUNDRED
