"""
Aggregate breakdown calculation.

Every pricing call site (cart preview, checkout calculation, coupon
validation, order commit) goes through calculate_breakdown. The algorithm is
fixed step by step so that the same cart always yields the same figures:

1. subtotal   = round(sum of line totals)
2. tax        = round(sum of round(line_total * rate / 100))   round-then-sum
3. shipping   = max(0, shipping)
4. total      = round(subtotal + tax + shipping)                 gross
5. discount   = round(min(total, max(0, discount)))              capped at gross
6. amount_due = round(total - discount)

Tax is computed before discount. Discount is a payment-time reduction.
"""

from decimal import Decimal
from typing import Any, Iterable, Sequence

from core.config import PricingConfig
from core.exceptions import PricingInconsistency
from core.models import Breakdown, CouponDiscount, LineItem
from core.money import ZERO, clamp_money, round_money
from core.pricing.shipping import shipping_fee
from core.pricing.tax import calculate_tax_amount


def line_item_tax(item: LineItem) -> Decimal:
    """Rounded tax for one line, exactly as summed into the aggregate."""
    return calculate_tax_amount(item.line_total, item.tax_rate_percent)


def total_savings(line_items: Iterable[LineItem]) -> Decimal:
    """Sum of (original - selling) * quantity across lines."""
    return round_money(sum((item.savings for item in line_items), ZERO))


def calculate_breakdown(
    line_items: Iterable[LineItem],
    discount_amount: Any = ZERO,
    shipping: Any = ZERO,
) -> Breakdown:
    """
    Fold line items, a discount and a shipping fee into one Breakdown.

    Negative discount or shipping clamp to zero. An empty item list still
    charges shipping unless the caller passes zero.
    """
    items = list(line_items)

    subtotal = round_money(sum((item.line_total for item in items), ZERO))
    tax = round_money(sum((line_item_tax(item) for item in items), ZERO))
    safe_shipping = clamp_money(shipping)
    total = round_money(subtotal + tax + safe_shipping)
    safe_discount = round_money(min(total, clamp_money(discount_amount)))
    amount_due = round_money(total - safe_discount)

    return Breakdown(
        subtotal=subtotal,
        discount=safe_discount,
        tax=tax,
        shipping=safe_shipping,
        total=total,
        amount_due=amount_due,
    )


def price_line_items(
    line_items: Sequence[LineItem],
    coupon: CouponDiscount | None = None,
    *,
    config: PricingConfig | None = None,
) -> Breakdown:
    """
    Breakdown for a set of line items under the store shipping policy.

    Shipping is decided on the pre-discount subtotal and waived for a
    free_shipping coupon.
    """
    config = config or PricingConfig()
    subtotal = calculate_breakdown(line_items).subtotal

    if coupon is not None and coupon.waives_shipping:
        shipping = ZERO
    else:
        shipping = shipping_fee(subtotal, config)

    discount = coupon.discount_amount if coupon is not None else ZERO
    return calculate_breakdown(line_items, discount, shipping)


def verify_breakdown(breakdown: Breakdown, line_items: Sequence[LineItem] | None = None) -> Breakdown:
    """
    Re-check every breakdown invariant.

    Raises:
        PricingInconsistency: On the first violated invariant
    """
    for field in ("subtotal", "discount", "tax", "shipping", "total", "amount_due"):
        value = getattr(breakdown, field)
        if value < 0:
            raise PricingInconsistency(f"{field} is negative: {value}", field, value)

    expected_total = breakdown.subtotal + breakdown.tax + breakdown.shipping
    if breakdown.total != expected_total:
        raise PricingInconsistency(
            f"total {breakdown.total} != subtotal + tax + shipping {expected_total}",
            "total", breakdown.total,
        )

    if breakdown.discount > breakdown.total:
        raise PricingInconsistency(
            f"discount {breakdown.discount} exceeds total {breakdown.total}",
            "discount", breakdown.discount,
        )

    if breakdown.amount_due != breakdown.total - breakdown.discount:
        raise PricingInconsistency(
            f"amount_due {breakdown.amount_due} != total - discount",
            "amount_due", breakdown.amount_due,
        )

    if line_items is not None:
        expected_subtotal = round_money(sum((item.line_total for item in line_items), ZERO))
        if breakdown.subtotal != expected_subtotal:
            raise PricingInconsistency(
                f"subtotal {breakdown.subtotal} != sum of line totals {expected_subtotal}",
                "subtotal", breakdown.subtotal,
            )
        expected_tax = round_money(sum((line_item_tax(item) for item in line_items), ZERO))
        if breakdown.tax != expected_tax:
            raise PricingInconsistency(
                f"tax {breakdown.tax} != sum of per-item tax {expected_tax}",
                "tax", breakdown.tax,
            )

    return breakdown
