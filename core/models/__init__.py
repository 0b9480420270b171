"""Core domain models."""

from core.models.catalog import CatalogRecord, Variant, RefType
from core.models.cart import Cart, CartEntry, CartVariant
from core.models.coupon import Coupon, DiscountType, ApplicableTo, UserEligibility, CouponStatus
from core.models.pricing import (
    LineItem, SkippedEntry, PriceSource, Breakdown, OrderPricingRecord,
    CouponUserContext, CouponDiscount, CheckoutPreview,
)
from core.models.order import Order, OrderItem, OrderCoupon, OrderStatus

__all__ = [
    # Catalog
    "CatalogRecord", "Variant", "RefType",
    # Cart
    "Cart", "CartEntry", "CartVariant",
    # Coupon
    "Coupon", "DiscountType", "ApplicableTo", "UserEligibility", "CouponStatus",
    # Pricing
    "LineItem", "SkippedEntry", "PriceSource", "Breakdown", "OrderPricingRecord",
    "CouponUserContext", "CouponDiscount", "CheckoutPreview",
    # Order
    "Order", "OrderItem", "OrderCoupon", "OrderStatus",
]
