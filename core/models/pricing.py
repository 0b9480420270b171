"""Pricing value models.

LineItem, Breakdown and friends are transient values owned by the request
that computes them. OrderPricingRecord is the frozen copy attached to an order.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, computed_field, field_validator

from core.models.catalog import RefType
from core.models.coupon import DiscountType
from core.money import Money, ZERO, round_money


class PriceSource(str, Enum):
    """Which tier of the price fallback chain produced a selling price."""

    VARIANT = "variant"
    CATALOG = "catalog"
    CART_SNAPSHOT = "cart_snapshot"
    FALLBACK = "fallback"  # Fixed constant, should never happen in production


class LineItem(BaseModel):
    """
    One cart entry with resolved price and canonical tax rate.

    line_total is always selling_price * quantity: pre-discount and
    tax-exclusive. It is computed, so it cannot be fed a discounted price.
    """

    ref_id: UUID
    ref_type: RefType = RefType.PRODUCT
    variant_id: UUID | None = None
    name: str | None = None
    sku: str | None = None
    category_id: UUID | None = None
    brand_id: UUID | None = None
    quantity: int = Field(..., ge=1)
    selling_price: Money = Field(..., ge=0)
    original_price: Money | None = Field(None, validate_default=True)
    tax_rate_percent: Decimal = Field(..., ge=0, le=100)
    price_source: PriceSource = PriceSource.CATALOG

    model_config = {"frozen": True}

    @field_validator("selling_price")
    @classmethod
    def round_selling_price(cls, value: Decimal) -> Decimal:
        return round_money(value)

    @field_validator("original_price")
    @classmethod
    def original_at_least_selling(cls, value: Decimal | None, info: ValidationInfo) -> Decimal | None:
        """Missing or below-selling original price means zero savings."""
        selling = info.data.get("selling_price")
        if selling is None:
            return value
        if value is None:
            return selling
        return max(round_money(value), selling)

    @computed_field
    @property
    def line_total(self) -> Money:
        return round_money(self.selling_price * self.quantity)

    @property
    def savings(self) -> Decimal:
        """Savings against original price for the whole line."""
        return round_money((self.original_price - self.selling_price) * self.quantity)


class SkippedEntry(BaseModel):
    """Cart entry left out of pricing because its catalog record is gone."""

    ref_id: UUID
    ref_type: RefType
    variant_id: UUID | None = None
    quantity: int
    reason: str

    model_config = {"frozen": True}


class Breakdown(BaseModel):
    """
    Monetary breakdown for a cart or order.

    total is gross (subtotal + tax + shipping). discount is applied at
    payment time: amount_due = total - discount.
    """

    subtotal: Money
    discount: Money
    tax: Money
    shipping: Money
    total: Money
    amount_due: Money

    model_config = {"frozen": True}

    @classmethod
    def zero(cls) -> "Breakdown":
        return cls(
            subtotal=ZERO, discount=ZERO, tax=ZERO,
            shipping=ZERO, total=ZERO, amount_due=ZERO,
        )


class OrderPricingRecord(Breakdown):
    """Immutable pricing snapshot attached to an order at creation."""

    total_savings: Money = ZERO
    currency: str = "INR"

    @classmethod
    def from_breakdown(
        cls,
        breakdown: Breakdown,
        total_savings: Decimal,
        currency: str = "INR",
    ) -> "OrderPricingRecord":
        return cls(
            **breakdown.model_dump(),
            total_savings=total_savings,
            currency=currency,
        )


class CouponUserContext(BaseModel):
    """What the coupon resolver needs to know about the redeeming customer."""

    customer_id: UUID
    redemptions: int = Field(0, ge=0)  # Prior redemptions of this coupon
    completed_orders: int = Field(0, ge=0)


class CouponDiscount(BaseModel):
    """Outcome of a successful coupon resolution."""

    coupon_id: UUID | None = None
    code: str
    name: str | None = None
    discount_type: DiscountType
    discount_amount: Money
    applies_to: list[UUID] = Field(default_factory=list)

    model_config = {"frozen": True}

    @computed_field
    @property
    def waives_shipping(self) -> bool:
        """Caller must pass zero shipping to the breakdown calculator."""
        return self.discount_type == DiscountType.FREE_SHIPPING


class CheckoutPreview(BaseModel):
    """Best-effort pricing of a cart for display (cart page, checkout page)."""

    items: list[LineItem] = Field(default_factory=list)
    skipped: list[SkippedEntry] = Field(default_factory=list)
    breakdown: Breakdown = Field(default_factory=Breakdown.zero)
    total_savings: Money = ZERO
    coupon: CouponDiscount | None = None
    currency: str = "INR"

    @computed_field
    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @computed_field
    @property
    def is_empty(self) -> bool:
        return not self.items

    @computed_field
    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)
