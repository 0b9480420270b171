"""
Tax rate canonicalization and per-amount tax.

Catalog tax rates arrive as whatever was typed into the admin panel:
18, "18", 0.18, or nothing at all. normalize_tax_rate is the only place a
raw rate is interpreted. Everything downstream works with the canonical
percentage and must never re-divide or re-multiply it.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from core.money import round_money

DEFAULT_TAX_RATE_PERCENT = Decimal("18")

_HUNDRED = Decimal("100")
_ONE = Decimal("1")


def normalize_tax_rate(rate_input: Any, default: Decimal = DEFAULT_TAX_RATE_PERCENT) -> Decimal:
    """
    Canonicalize a tax rate to a percentage.

    - None, non-numeric, NaN or infinite input -> default (18)
    - 0 < rate < 1 -> fraction, multiplied by 100 (0.18 -> 18)
    - rate >= 1 -> already a percentage, returned as-is (capped at 100)
    - rate <= 0 -> 0

    Never raises.
    """
    if rate_input is None or isinstance(rate_input, bool):
        return Decimal(default)

    try:
        rate = Decimal(str(rate_input).strip())
    except (InvalidOperation, ValueError):
        return Decimal(default)

    if not rate.is_finite():
        return Decimal(default)

    if rate <= 0:
        return Decimal("0")
    if rate < _ONE:
        return rate * _HUNDRED
    return min(rate, _HUNDRED)


def calculate_tax_amount(amount: Any, tax_rate_percent: Decimal) -> Decimal:
    """
    Tax on a tax-exclusive amount, rounded to 2 places.

    tax_rate_percent must already be canonical (see normalize_tax_rate).
    """
    return round_money(round_money(amount) * tax_rate_percent / _HUNDRED)


def calculate_price_with_tax(amount: Any, tax_rate_percent: Decimal) -> Decimal:
    """Tax-inclusive price for display next to a tax-exclusive one."""
    return round_money(round_money(amount) + calculate_tax_amount(amount, tax_rate_percent))
