"""Flat-rate shipping policy."""

from decimal import Decimal
from typing import Any

from core.config import PricingConfig
from core.money import ZERO, round_money


def shipping_fee(subtotal: Any, config: PricingConfig | None = None) -> Decimal:
    """
    Shipping charged for a given pre-discount subtotal.

    Flat fee below the free shipping threshold, waived at or above it.
    A free_shipping coupon is handled by the caller passing zero shipping
    to the breakdown calculator, not here.
    """
    config = config or PricingConfig()
    if round_money(subtotal) >= config.free_shipping_threshold:
        return ZERO
    return round_money(config.shipping_fee)
