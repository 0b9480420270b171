"""Pricing configuration."""

from decimal import Decimal

from pydantic import BaseModel, Field


class PricingConfig(BaseModel):
    """
    Store-wide pricing rules.

    Injected into the pricing library and the checkout services so tests and
    deployments can change thresholds without touching the calculations.
    """

    # Tax
    default_tax_rate_percent: Decimal = Field(
        default=Decimal("18"),
        description="Rate applied when a catalog record has no usable tax rate",
        ge=0,
        le=100,
    )

    # Shipping
    shipping_fee: Decimal = Field(
        default=Decimal("100"),
        description="Flat shipping fee charged below the free shipping threshold",
        ge=0,
    )
    free_shipping_threshold: Decimal = Field(
        default=Decimal("1000"),
        description="Pre-discount subtotal at or above which shipping is waived",
        ge=0,
    )

    # Valuation
    fallback_unit_price: Decimal = Field(
        default=Decimal("100"),
        description="Last-resort unit price when no catalog or cart price exists",
        ge=0,
    )

    # Orders
    currency: str = Field(
        default="INR",
        description="ISO currency code stamped on order pricing records",
        min_length=3,
        max_length=3,
    )
    order_number_prefix: str = Field(
        default="ORD",
        description="Prefix for generated order numbers",
        min_length=1,
        max_length=10,
    )
    coupon_increment_retries: int = Field(
        default=3,
        description="Attempts at the optimistic coupon usage increment before giving up",
        ge=1,
        le=10,
    )


def load_pricing_config() -> PricingConfig:
    """PricingConfig with any overrides stored in Vault applied."""
    from clients.vault_client import get_pricing_overrides

    return PricingConfig(**get_pricing_overrides())
