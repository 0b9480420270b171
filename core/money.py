"""
Fixed-point money handling.

All money is Decimal, rounded to 2 places with ROUND_HALF_UP at each step of
a calculation. Floats never take part in arithmetic; they are only produced
at the JSON boundary.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, Any

from pydantic import PlainSerializer

from core.exceptions import InputError

MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0.00")

# Decimal in Python, plain number in JSON responses
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


def to_decimal(value: Any) -> Decimal:
    """
    Read a numeric value as Decimal without passing through float arithmetic.

    None reads as zero. Raises InputError for anything that is not a finite number.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise InputError(f"Expected a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InputError(f"Expected a number, got {value!r}")
    if not result.is_finite():
        raise InputError(f"Expected a finite number, got {value!r}")
    return result


def round_money(value: Any) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return to_decimal(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def clamp_money(value: Any) -> Decimal:
    """Round and clamp negatives to zero."""
    return max(ZERO, round_money(value))
