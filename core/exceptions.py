"""Typed exceptions for pricing and checkout failures."""

from decimal import Decimal
from uuid import UUID


class PricingError(Exception):
    """Base class for pricing/checkout errors."""


class InputError(PricingError, ValueError):
    """
    Structurally invalid input to a pricing calculation.

    Numeric edge cases (negative prices, odd tax rates) are clamped, not raised.
    This is only for values that cannot be read as a number at all.
    """


class ReferenceMissing(PricingError):
    """Cart entry points to a catalog record that no longer exists."""

    def __init__(self, ref_type: str, ref_id: UUID):
        self.ref_type = ref_type
        self.ref_id = ref_id
        super().__init__(f"{ref_type.capitalize()} {ref_id} not found")


class CouponInvalid(PricingError):
    """Coupon failed validation. The reason is safe to show to the customer."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class StockInsufficient(PricingError):
    """Requested quantity exceeds available stock. Fatal for order commit only."""

    def __init__(self, name: str, available: int, requested: int):
        self.name = name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {name}. Available: {available}, Requested: {requested}"
        )


class EmptyCart(PricingError):
    """Cart has no priceable items. Checkout cannot proceed."""

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class PricingInconsistency(PricingError):
    """
    A computed breakdown violates an invariant.

    Programming error signal. Never clamp this away; abort the commit.
    """

    def __init__(self, message: str, field: str | None = None, value: Decimal | None = None):
        self.field = field
        self.value = value
        super().__init__(message)
