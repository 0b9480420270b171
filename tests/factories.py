"""Model factories shared across the test suite."""

from datetime import timedelta
from decimal import Decimal
from uuid import UUID, uuid4

from core.models import (
    Cart, CartEntry, CartVariant, CatalogRecord, Coupon, CouponUserContext,
    DiscountType, LineItem, Order, OrderItem, OrderPricingRecord, RefType, Variant,
)
from utils.timezone import now_utc

TEST_CUSTOMER_ID = UUID("00000000-0000-0000-0000-000000000001")


def make_line_item(selling_price, quantity=1, tax_rate_percent="18", **kwargs) -> LineItem:
    """Valued line item with sensible defaults."""
    return LineItem(
        ref_id=kwargs.pop("ref_id", uuid4()),
        quantity=quantity,
        selling_price=Decimal(str(selling_price)),
        tax_rate_percent=Decimal(str(tax_rate_percent)),
        **kwargs,
    )


def make_record(base_price="500", ref_type=RefType.PRODUCT, **kwargs) -> CatalogRecord:
    """Catalog record with sensible defaults."""
    return CatalogRecord(
        id=kwargs.pop("id", uuid4()),
        ref_type=ref_type,
        name=kwargs.pop("name", "Brass Diya"),
        base_price=Decimal(base_price) if base_price is not None else None,
        tax_rate=kwargs.pop("tax_rate", Decimal("18")),
        stock_quantity=kwargs.pop("stock_quantity", 10),
        **kwargs,
    )


def make_variant(price="650", **kwargs) -> Variant:
    return Variant(
        id=kwargs.pop("id", uuid4()),
        name=kwargs.pop("name", "Large"),
        price=Decimal(price) if price is not None else None,
        stock=kwargs.pop("stock", 5),
        **kwargs,
    )


def make_entry(record: CatalogRecord | None = None, quantity=1, **kwargs) -> CartEntry:
    """Cart entry pointing at a record (or a random ID)."""
    variant_id = kwargs.pop("variant_id", None)
    return CartEntry(
        id=uuid4(),
        ref_type=record.ref_type if record else kwargs.pop("ref_type", RefType.PRODUCT),
        ref_id=record.id if record else kwargs.pop("ref_id", uuid4()),
        variant=CartVariant(variant_id=variant_id) if variant_id else None,
        quantity=quantity,
        **kwargs,
    )


def make_cart(entries: list[CartEntry], customer_id: UUID = TEST_CUSTOMER_ID) -> Cart:
    return Cart(id=uuid4(), customer_id=customer_id, items=entries)


def make_coupon(
    code="SAVE10",
    discount_type=DiscountType.PERCENTAGE,
    discount_value="10",
    **kwargs,
) -> Coupon:
    """Active coupon valid from yesterday to next week."""
    now = now_utc()
    return Coupon(
        id=kwargs.pop("id", uuid4()),
        code=code,
        name=kwargs.pop("name", f"{code} offer"),
        discount_type=discount_type,
        discount_value=Decimal(discount_value),
        valid_from=kwargs.pop("valid_from", now - timedelta(days=1)),
        valid_until=kwargs.pop("valid_until", now + timedelta(days=7)),
        **kwargs,
    )


def make_user(customer_id: UUID = TEST_CUSTOMER_ID, redemptions=0, completed_orders=1) -> CouponUserContext:
    return CouponUserContext(
        customer_id=customer_id,
        redemptions=redemptions,
        completed_orders=completed_orders,
    )


def make_order(customer_id: UUID = TEST_CUSTOMER_ID, items: list[LineItem] | None = None) -> Order:
    """Order built from line items the way the order service builds one."""
    from core.pricing import calculate_breakdown, line_item_tax, total_savings

    items = items or [make_line_item("500", quantity=2)]
    breakdown = calculate_breakdown(items, shipping=Decimal("0"))
    return Order(
        id=uuid4(),
        customer_id=customer_id,
        order_number="ORD-20260101-AB12C",
        items=[OrderItem.from_line_item(item, line_item_tax(item)) for item in items],
        pricing=OrderPricingRecord.from_breakdown(breakdown, total_savings(items)),
        created_at=now_utc(),
    )
