"""
Checkout service.

Best-effort pricing for the cart page, the checkout page and coupon
validation. Nothing here writes: stock is not checked, coupons are not
counted. The numbers come from the same core.pricing calls the order commit
makes, so what the customer sees is what the order records.
"""

import logging
from uuid import UUID

from core.config import PricingConfig
from core.exceptions import CouponInvalid, EmptyCart
from core.models import Cart, CheckoutPreview, CouponDiscount, LineItem, SkippedEntry
from core.pricing import (
    calculate_breakdown,
    price_line_items,
    resolve_coupon,
    total_savings,
    valuate_cart,
)
from core.services.cart_service import CartService
from core.services.catalog_service import CatalogService
from core.services.coupon_service import CouponService
from utils.user_context import get_current_customer_id

logger = logging.getLogger(__name__)


class CheckoutService:
    """Read-only checkout pricing."""

    def __init__(
        self,
        catalog: CatalogService,
        carts: CartService,
        coupons: CouponService,
        config: PricingConfig | None = None,
    ):
        self.catalog = catalog
        self.carts = carts
        self.coupons = coupons
        self.config = config or PricingConfig()

    def _valuate(self, cart: Cart | None) -> tuple[list[LineItem], list[SkippedEntry]]:
        if cart is None or not cart.items:
            return [], []
        records = self.catalog.get_records(
            (entry.ref_type, entry.ref_id) for entry in cart.items
        )
        return valuate_cart(cart.items, records, config=self.config)

    def _load(self, customer_id: UUID | None) -> tuple[UUID, list[LineItem], list[SkippedEntry]]:
        customer_id = customer_id or get_current_customer_id()
        items, skipped = self._valuate(self.carts.get_for_customer(customer_id))
        if skipped:
            logger.warning(
                f"{len(skipped)} cart entries skipped for customer {customer_id}"
            )
        return customer_id, items, skipped

    def _discount(
        self,
        code: str | None,
        customer_id: UUID,
        items: list[LineItem],
    ) -> CouponDiscount:
        coupon = self.coupons.get_by_code(code)
        user = self.coupons.user_context(coupon, customer_id)
        subtotal = calculate_breakdown(items).subtotal
        return resolve_coupon(code, coupon, user, items, subtotal)

    def _preview(
        self,
        items: list[LineItem],
        skipped: list[SkippedEntry],
        coupon: CouponDiscount | None = None,
    ) -> CheckoutPreview:
        if not items:
            return CheckoutPreview(skipped=skipped, currency=self.config.currency)

        return CheckoutPreview(
            items=items,
            skipped=skipped,
            breakdown=price_line_items(items, coupon, config=self.config),
            total_savings=total_savings(items),
            coupon=coupon,
            currency=self.config.currency,
        )

    def preview(self, customer_id: UUID | None = None) -> CheckoutPreview:
        """
        Price the customer's cart without a coupon.

        An empty or fully skipped cart yields a zeroed breakdown with
        is_empty set, not an error.

        Args:
            customer_id: Cart owner (defaults to current context)

        Returns:
            CheckoutPreview
        """
        _, items, skipped = self._load(customer_id)
        return self._preview(items, skipped)

    def calculate(self, coupon_code: str | None = None, customer_id: UUID | None = None) -> CheckoutPreview:
        """
        Price the customer's cart with an optional coupon.

        Args:
            coupon_code: Code the customer entered, if any
            customer_id: Cart owner (defaults to current context)

        Returns:
            CheckoutPreview with the coupon applied

        Raises:
            CouponInvalid: If a code was given and does not validate
        """
        customer_id, items, skipped = self._load(customer_id)
        if not items or not coupon_code:
            return self._preview(items, skipped)

        return self._preview(items, skipped, self._discount(coupon_code, customer_id, items))

    def apply_coupon(self, code: str | None, customer_id: UUID | None = None) -> CouponDiscount:
        """
        Validate a coupon against the customer's cart.

        Args:
            code: Code the customer entered
            customer_id: Cart owner (defaults to current context)

        Returns:
            CouponDiscount for display

        Raises:
            CouponInvalid: If the code is missing or does not validate
            EmptyCart: If the cart has nothing to discount
        """
        if not code or not code.strip():
            raise CouponInvalid("Coupon code is required")

        customer_id, items, _ = self._load(customer_id)
        if not items:
            raise EmptyCart()

        return self._discount(code, customer_id, items)
