"""
Shared pricing library.

The only implementation of tax, valuation, coupon and breakdown logic.
Checkout preview, checkout calculation, coupon validation and order commit
all call into here.
"""

from core.pricing.tax import (
    DEFAULT_TAX_RATE_PERCENT,
    normalize_tax_rate,
    calculate_tax_amount,
    calculate_price_with_tax,
)
from core.pricing.shipping import shipping_fee
from core.pricing.valuation import valuate, valuate_cart
from core.pricing.coupons import resolve_coupon, compute_discount, item_qualifies
from core.pricing.breakdown import (
    calculate_breakdown,
    price_line_items,
    line_item_tax,
    total_savings,
    verify_breakdown,
)
