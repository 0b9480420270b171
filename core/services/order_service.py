"""
Order service.

Turns a cart into an order. Prices are re-derived from the catalog at commit
time and every write (stock, order, coupon usage, cart, audit) lands in one
database transaction. Domain events go out only after that commit.
"""

import logging
import secrets
import string
from collections import defaultdict
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core.audit import AuditAction, AuditLogger
from core.config import PricingConfig
from core.event_bus import EventBus
from core.events import CouponRedeemed, OrderPlaced
from core.exceptions import EmptyCart, StockInsufficient
from core.models import (
    Cart, CatalogRecord, CouponDiscount, LineItem, Order, OrderCoupon,
    OrderItem, OrderPricingRecord, OrderStatus, RefType,
)
from core.pricing import (
    calculate_breakdown,
    line_item_tax,
    price_line_items,
    resolve_coupon,
    total_savings,
    valuate_cart,
    verify_breakdown,
)
from core.services.cart_service import CartService
from core.services.catalog_service import CatalogService
from core.services.coupon_service import CouponService
from utils.timezone import date_stamp, now_utc
from utils.user_context import get_current_customer_id

logger = logging.getLogger(__name__)

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

StockKey = tuple[RefType, UUID, UUID | None]


class OrderService:
    """Service for committing orders."""

    def __init__(
        self,
        postgres: PostgresClient,
        catalog: CatalogService,
        carts: CartService,
        coupons: CouponService,
        audit: AuditLogger,
        event_bus: EventBus,
        config: PricingConfig | None = None,
    ):
        self.postgres = postgres
        self.catalog = catalog
        self.carts = carts
        self.coupons = coupons
        self.audit = audit
        self.event_bus = event_bus
        self.config = config or PricingConfig()

    def _generate_order_number(self) -> str:
        """
        Generate an order number.

        Format: ORD-YYYYMMDD-XXXXX with a random uppercase alphanumeric suffix.
        """
        suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(5))
        return f"{self.config.order_number_prefix}-{date_stamp()}-{suffix}"

    def _check_variants(self, cart: Cart, records: dict[tuple[RefType, UUID], CatalogRecord]) -> None:
        """
        Refuse entries whose chosen variant is no longer offered.

        Such entries are priced at the product price for display, but there
        is no variant stock to sell them from.

        Raises:
            StockInsufficient: For the first entry whose variant is gone
        """
        for entry in cart.items:
            record = records.get((entry.ref_type, entry.ref_id))
            if record is None or not record.is_active or entry.variant_id is None:
                continue
            if record.find_variant(entry.variant_id) is None:
                logger.warning(
                    f"Cart {cart.id}: variant {entry.variant_id} of {record.id} is no longer offered"
                )
                raise StockInsufficient(record.name, record.stock_for(entry.variant_id), entry.quantity)

    def _check_stock(
        self,
        items: list[LineItem],
        records: dict[tuple[RefType, UUID], CatalogRecord],
    ) -> dict[StockKey, tuple[LineItem, int]]:
        """
        Compare requested quantities with available stock.

        The same product/variant may appear on several cart lines, so
        quantities are summed per stock key first.

        Returns:
            Lines to reserve at commit, one per tracked stock key, with the
            summed quantity

        Raises:
            StockInsufficient: For the first key that cannot be covered
        """
        requested: dict[StockKey, int] = defaultdict(int)
        first_item: dict[StockKey, LineItem] = {}
        for item in items:
            key = (item.ref_type, item.ref_id, item.variant_id)
            requested[key] += item.quantity
            first_item.setdefault(key, item)

        to_reserve: dict[StockKey, tuple[LineItem, int]] = {}
        for key, quantity in requested.items():
            ref_type, ref_id, variant_id = key
            available = records[(ref_type, ref_id)].stock_for(variant_id)
            if available is None:
                continue
            if available < quantity:
                raise StockInsufficient(first_item[key].name or ref_type.value, available, quantity)
            to_reserve[key] = (first_item[key], quantity)

        return to_reserve

    def _insert_order(self, tx: Transaction, order: Order) -> None:
        pricing = order.pricing
        tx.execute(
            """
            INSERT INTO orders (
                id, customer_id, order_number, status,
                subtotal, discount, tax, shipping, total, amount_due,
                total_savings, currency,
                coupon_id, coupon_code,
                created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s,
                %s, %s, %s, %s, %s, %s,
                %s, %s,
                %s, %s,
                %s, %s
            )
            """,
            (
                order.id, order.customer_id, order.order_number, order.status.value,
                pricing.subtotal, pricing.discount, pricing.tax, pricing.shipping,
                pricing.total, pricing.amount_due,
                pricing.total_savings, pricing.currency,
                order.coupon.coupon_id if order.coupon else None,
                order.coupon.code if order.coupon else None,
                order.created_at, order.created_at
            )
        )

        for position, item in enumerate(order.items):
            tx.execute(
                """
                INSERT INTO order_items (
                    id, order_id, position, ref_type, ref_id, variant_id,
                    name, sku, quantity,
                    original_price, selling_price, line_total,
                    tax_rate_percent, tax_amount
                ) VALUES (
                    %s, %s, %s, %s, %s, %s,
                    %s, %s, %s,
                    %s, %s, %s,
                    %s, %s
                )
                """,
                (
                    uuid4(), order.id, position, item.ref_type.value, item.ref_id, item.variant_id,
                    item.name, item.sku, item.quantity,
                    item.original_price, item.selling_price, item.line_total,
                    item.tax_rate_percent, item.tax_amount
                )
            )

    def finalize(self, cart: Cart | None, coupon_code: str | None = None) -> Order:
        """
        Commit a cart as an order.

        Nothing from the cart is trusted except references and quantities:
        prices, tax rates and stock are read fresh from the catalog. Entries
        whose catalog record is gone are skipped; the order goes ahead with
        the rest.

        Args:
            cart: Customer's cart
            coupon_code: Coupon the customer entered, if any

        Returns:
            Created order; order.pricing is the frozen pricing record

        Raises:
            EmptyCart: If the cart has no priceable entries
            StockInsufficient: If any line cannot be covered
            CouponInvalid: If the coupon does not validate or its limit is
                reached during commit
            PricingInconsistency: If the computed breakdown breaks an invariant
        """
        if cart is None or not cart.items:
            raise EmptyCart()
        logger.debug(f"CartLoaded: cart {cart.id}, {len(cart.items)} entries")

        records = self.catalog.get_records(
            (entry.ref_type, entry.ref_id) for entry in cart.items
        )
        items, skipped = valuate_cart(cart.items, records, config=self.config)
        if skipped:
            logger.warning(
                f"Cart {cart.id}: {len(skipped)} entries no longer available, "
                f"ordering the remaining {len(items)}"
            )
        if not items:
            raise EmptyCart("No items in your cart are available anymore")
        logger.debug(f"LineItemsRevalidated: {len(items)} items, {len(skipped)} skipped")

        self._check_variants(cart, records)
        to_reserve = self._check_stock(items, records)
        logger.debug(f"StockChecked: {len(to_reserve)} stock keys to reserve")

        discount: CouponDiscount | None = None
        if coupon_code and coupon_code.strip():
            coupon = self.coupons.get_by_code(coupon_code)
            user = self.coupons.user_context(coupon, cart.customer_id)
            subtotal = calculate_breakdown(items).subtotal
            discount = resolve_coupon(coupon_code, coupon, user, items, subtotal)
        logger.debug(
            f"DiscountResolved: {discount.code if discount else 'no coupon'}"
        )

        breakdown = verify_breakdown(
            price_line_items(items, discount, config=self.config),
            items,
        )
        pricing = OrderPricingRecord.from_breakdown(
            breakdown, total_savings(items), self.config.currency
        )
        logger.debug(f"BreakdownComputed: amount_due={pricing.amount_due}")

        order = Order(
            id=uuid4(),
            customer_id=cart.customer_id,
            order_number=self._generate_order_number(),
            status=OrderStatus.CREATED,
            items=[OrderItem.from_line_item(item, line_item_tax(item)) for item in items],
            pricing=pricing,
            coupon=OrderCoupon(
                coupon_id=discount.coupon_id,
                code=discount.code,
                name=discount.name,
                discount_type=discount.discount_type,
                discount_amount=breakdown.discount,
            ) if discount else None,
            created_at=now_utc(),
        )

        usage_count = None
        with self.postgres.transaction() as tx:
            for item, quantity in to_reserve.values():
                self.catalog.reserve_stock(tx, item, quantity)

            self._insert_order(tx, order)

            if discount is not None and discount.coupon_id is not None:
                usage_count = self.coupons.redeem(
                    tx,
                    discount.coupon_id,
                    order.customer_id,
                    order.id,
                    retries=self.config.coupon_increment_retries,
                )

            self.carts.clear(tx, cart.id)

            self.audit.log_change(
                entity_type="order",
                entity_id=order.id,
                action=AuditAction.CREATE,
                changes={"created": order.model_dump(mode="json")},
                customer_id=order.customer_id,
                db=tx,
            )
        logger.debug(f"RecordCommitted: order {order.order_number}")

        logger.info(
            f"Order {order.order_number} placed for customer {order.customer_id}: "
            f"{order.total_quantity} units, amount due {pricing.amount_due} {pricing.currency}"
        )

        self.event_bus.publish(OrderPlaced.create(order=order))
        if discount is not None and usage_count is not None:
            self.event_bus.publish(
                CouponRedeemed.create(order=order, coupon_code=discount.code, usage_count=usage_count)
            )

        return order

    def place_order(self, coupon_code: str | None = None, customer_id: UUID | None = None) -> Order:
        """
        Commit a customer's cart as an order (defaults to current context).

        Raises:
            EmptyCart: If the customer has no cart or it is empty
        """
        customer_id = customer_id or get_current_customer_id()
        return self.finalize(self.carts.get_for_customer(customer_id), coupon_code)
