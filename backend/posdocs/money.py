# Overview: Two-decimal money arithmetic shared by calculators and serializers.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a JSON number (or numeric string) to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than its
    binary expansion. Raises InvalidOperation/TypeError/ValueError on junk.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        return Decimal(value.strip())
    raise TypeError(f"unsupported numeric type: {type(value).__name__}")


def parse_number(value: Any) -> Decimal | None:
    """to_decimal() that returns None for missing, malformed or non-finite input."""
    if value is None:
        return None
    try:
        number = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def round2(value: Decimal | int | float) -> Decimal:
    """Round half-up to two places. Applied at every derived step."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_json(value: Decimal | None) -> float | None:
    """Serialize money as a JSON number rounded to two places (never a string)."""
    if value is None:
        return None
    return float(round2(value))
