"""Order domain models.

An order's pricing is captured once at commit and never recomputed.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.catalog import RefType
from core.models.coupon import DiscountType
from core.models.pricing import LineItem, OrderPricingRecord
from core.money import Money


class OrderStatus(str, Enum):
    """Order lifecycle status. Checkout only ever creates orders."""

    CREATED = "created"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItem(BaseModel):
    """Frozen copy of a priced line item."""

    ref_id: UUID
    ref_type: RefType
    variant_id: UUID | None = None
    name: str | None = None
    sku: str | None = None
    quantity: int = Field(..., ge=1)
    original_price: Money
    selling_price: Money
    line_total: Money
    tax_rate_percent: Decimal
    tax_amount: Money  # Same rounded figure summed into the order tax

    model_config = {"frozen": True, "from_attributes": True}

    @classmethod
    def from_line_item(cls, item: LineItem, tax_amount: Decimal) -> "OrderItem":
        return cls(
            ref_id=item.ref_id,
            ref_type=item.ref_type,
            variant_id=item.variant_id,
            name=item.name,
            sku=item.sku,
            quantity=item.quantity,
            original_price=item.original_price,
            selling_price=item.selling_price,
            line_total=item.line_total,
            tax_rate_percent=item.tax_rate_percent,
            tax_amount=tax_amount,
        )


class OrderCoupon(BaseModel):
    """Coupon applied to an order."""

    coupon_id: UUID | None
    code: str
    name: str | None = None
    discount_type: DiscountType
    discount_amount: Money

    model_config = {"frozen": True}


class Order(BaseModel):
    """Full order entity as created at checkout."""

    id: UUID
    customer_id: UUID
    order_number: str
    status: OrderStatus = OrderStatus.CREATED
    items: list[OrderItem]
    pricing: OrderPricingRecord
    coupon: OrderCoupon | None = None
    created_at: datetime

    model_config = {"frozen": True}

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)
