"""
Currency amounts.

All cash amounts are Decimal values quantized to two fractional digits.
Floats are accepted at the edges (JSON bodies) but are converted through
their string form so binary rounding never leaks into sums.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from .validation import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Upper bound of Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")

# Mexican peso denominations, bills and coins counted separately at the drawer
BILL_DENOMINATIONS = (
    Decimal("1000"), Decimal("500"), Decimal("200"),
    Decimal("100"), Decimal("50"), Decimal("20"),
)
COIN_DENOMINATIONS = (
    Decimal("20"), Decimal("10"), Decimal("5"),
    Decimal("2"), Decimal("1"), Decimal("0.50"),
)


def to_money(value, *, field: str = "amount") -> Decimal:
    """Parse a user-supplied amount into a 2-place Decimal."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, int):
        dec = Decimal(value)
    elif isinstance(value, (float, str)):
        text = str(value).strip()
        if not text:
            raise ValidationError(f"{field} must be a number")
        try:
            dec = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not dec.is_finite():
        raise ValidationError(f"{field} must be a finite number")

    if abs(dec) > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds the maximum of {MAX_AMOUNT}")
    dec = dec.quantize(CENT, rounding=ROUND_HALF_UP)
    if abs(dec) > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds the maximum of {MAX_AMOUNT}")
    return dec


def quantize(value: Decimal | None) -> Decimal:
    """Normalize a stored/derived Decimal to 2 places (None -> 0.00)."""
    if value is None:
        return ZERO
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    total = ZERO
    for v in values:
        total += quantize(v)
    return quantize(total)


def format_money(value: Decimal | None) -> str | None:
    """Serialize for JSON: '140.00'. None stays None."""
    if value is None:
        return None
    return f"{quantize(value):.2f}"
