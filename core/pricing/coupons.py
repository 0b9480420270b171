"""
Coupon validation and discount computation.

Pure: the caller looks the coupon up and supplies the customer's redemption
history. Nothing here touches usage counters; those are incremented once,
by the order commit.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from core.exceptions import CouponInvalid
from core.models import (
    ApplicableTo, Coupon, CouponDiscount, CouponStatus, CouponUserContext,
    DiscountType, LineItem, UserEligibility,
)
from core.money import ZERO, round_money
from utils.timezone import now_utc


def item_qualifies(coupon: Coupon, item: LineItem) -> bool:
    """Whether a line item is inside the coupon's applicability filter."""
    if coupon.applicable_to == ApplicableTo.ALL_PRODUCTS:
        return True
    if coupon.applicable_to == ApplicableTo.SPECIFIC_PRODUCTS:
        return item.ref_id in coupon.specific_products
    if coupon.applicable_to == ApplicableTo.SPECIFIC_CATEGORIES:
        return item.category_id is not None and item.category_id in coupon.specific_categories
    if coupon.applicable_to == ApplicableTo.SPECIFIC_BRANDS:
        return item.brand_id is not None and item.brand_id in coupon.specific_brands
    return False


def _check_validity(
    coupon: Coupon,
    user: CouponUserContext,
    line_items: Sequence[LineItem],
    subtotal: Decimal,
    now: datetime,
) -> list[LineItem]:
    """Run every validation rule; return the qualifying items."""
    if coupon.status != CouponStatus.ACTIVE:
        raise CouponInvalid("Invalid coupon code")

    if now < coupon.valid_from:
        raise CouponInvalid("Coupon is not yet valid")
    if now > coupon.valid_until:
        raise CouponInvalid("Coupon has expired")

    if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
        raise CouponInvalid("Coupon usage limit reached")

    if coupon.usage_limit_per_user and user.redemptions >= coupon.usage_limit_per_user:
        raise CouponInvalid("You have already used this coupon")

    if subtotal < coupon.minimum_cart_value:
        raise CouponInvalid(f"Minimum cart value of {coupon.minimum_cart_value} required")

    if coupon.user_eligibility == UserEligibility.NEW_USERS and user.completed_orders > 0:
        raise CouponInvalid("Coupon is only for new users")
    if coupon.user_eligibility == UserEligibility.EXISTING_USERS and user.completed_orders == 0:
        raise CouponInvalid("Coupon is only for existing customers")
    if (
        coupon.user_eligibility == UserEligibility.SPECIFIC_USERS
        and coupon.allowed_users
        and user.customer_id not in coupon.allowed_users
    ):
        raise CouponInvalid("You are not eligible for this coupon")

    qualifying = [item for item in line_items if item_qualifies(coupon, item)]
    if not qualifying:
        raise CouponInvalid("Coupon not applicable to any items in cart")

    if coupon.excluded_products and any(
        item.ref_id in coupon.excluded_products for item in line_items
    ):
        raise CouponInvalid("Coupon cannot be used with some products in your cart")

    return qualifying


def compute_discount(coupon: Coupon, base: Decimal, subtotal: Decimal) -> Decimal:
    """
    Discount amount against a taxable base.

    Clamped to [0, subtotal]. free_shipping coupons discount nothing here.
    """
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = base * coupon.discount_value / Decimal("100")
        if coupon.maximum_discount and discount > coupon.maximum_discount:
            discount = coupon.maximum_discount
    elif coupon.discount_type == DiscountType.FIXED:
        discount = min(coupon.discount_value, base)
    else:
        discount = ZERO

    return round_money(max(ZERO, min(discount, subtotal)))


def resolve_coupon(
    code: str | None,
    coupon: Coupon | None,
    user: CouponUserContext,
    line_items: Sequence[LineItem],
    subtotal: Any,
    *,
    now: datetime | None = None,
) -> CouponDiscount:
    """
    Validate a coupon for a cart and compute its discount.

    Args:
        code: Code the customer entered
        coupon: Coupon record looked up by that code, None if there is none
        user: Redeeming customer's context
        line_items: Valued cart lines
        subtotal: Pre-discount subtotal of line_items
        now: Evaluation time (defaults to now)

    Returns:
        CouponDiscount. For free_shipping coupons discount_amount is 0 and
        waives_shipping is True; the caller must then pass zero shipping.

    Raises:
        CouponInvalid: With a customer-facing reason, on any validation failure
    """
    if not code or not code.strip():
        raise CouponInvalid("Coupon code is required")
    if coupon is None or coupon.code != code.strip().upper():
        raise CouponInvalid("Invalid coupon code")

    subtotal = round_money(subtotal)
    qualifying = _check_validity(coupon, user, line_items, subtotal, now or now_utc())

    if coupon.applicable_to == ApplicableTo.ALL_PRODUCTS:
        base = subtotal
    else:
        base = round_money(sum((item.line_total for item in qualifying), ZERO))

    return CouponDiscount(
        coupon_id=coupon.id,
        code=coupon.code,
        name=coupon.name,
        discount_type=coupon.discount_type,
        discount_amount=compute_discount(coupon, base, subtotal),
        applies_to=[item.ref_id for item in qualifying],
    )
