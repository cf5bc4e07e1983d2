# core/money.py

"""
MONEY / QUANTITY NORMALIZATION

All monetary math is Decimal, quantized to the currency minor unit.
Quantities share the same precision because products are sold by the
meter as well as by the piece.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from core.exceptions import InvalidAmountError, InvalidInputError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def money(v, *, field: str = "amount") -> Decimal:
    if v is None or v == "":
        return ZERO

    if isinstance(v, bool):
        raise InvalidAmountError(f"{field} must be a number", field=field)

    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"{field} must be a number", field=field, value=str(v))


def quantity(v, *, field: str = "quantity") -> Decimal:
    if v is None or v == "":
        raise InvalidInputError(f"{field} is required", field=field)

    if isinstance(v, bool):
        # bool is an int subclass
        raise InvalidInputError(f"{field} must be a number", field=field)

    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f"{field} must be a number", field=field, value=str(v))
