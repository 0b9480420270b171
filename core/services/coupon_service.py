"""
Coupon service for checkout.

Looks coupons up by code, gathers the redeeming customer's history and
counts a redemption at order commit. Validation rules live in
core.pricing.coupons; this service only reads and writes coupon state.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core.exceptions import CouponInvalid
from core.models import Coupon, CouponStatus, CouponUserContext
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class CouponService:
    """Service for coupon lookups and usage counting."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get_by_code(self, code: str | None, db: Transaction | None = None) -> Coupon | None:
        """
        Get a coupon by its code (case-insensitive).

        Returns:
            Coupon if found and not deleted, None otherwise.
        """
        if not code or not code.strip():
            return None

        row = (db or self.postgres).execute_single(
            "SELECT * FROM coupons WHERE code = %s AND deleted_at IS NULL",
            (code.strip().upper(),)
        )
        return Coupon.model_validate(row) if row else None

    def user_context(
        self,
        coupon: Coupon | None,
        customer_id: UUID,
        db: Transaction | None = None,
    ) -> CouponUserContext:
        """
        Build the redeeming customer's context for coupon validation.

        Args:
            coupon: Coupon being redeemed (None counts no redemptions)
            customer_id: Redeeming customer
            db: Transaction to read in

        Returns:
            CouponUserContext with prior redemptions and completed orders
        """
        db = db or self.postgres

        redemptions = 0
        if coupon is not None:
            row = db.execute_single(
                """
                SELECT COUNT(*) AS count FROM coupon_redemptions
                WHERE coupon_id = %s AND customer_id = %s
                """,
                (coupon.id, customer_id)
            )
            redemptions = row["count"] if row else 0

        row = db.execute_single(
            """
            SELECT COUNT(*) AS count FROM orders
            WHERE customer_id = %s AND status != 'cancelled'
            """,
            (customer_id,)
        )
        completed_orders = row["count"] if row else 0

        return CouponUserContext(
            customer_id=customer_id,
            redemptions=redemptions,
            completed_orders=completed_orders,
        )

    def redeem(
        self,
        tx: Transaction,
        coupon_id: UUID,
        customer_id: UUID,
        order_id: UUID,
        retries: int = 3,
    ) -> int:
        """
        Count one redemption of a coupon against an order.

        Optimistic increment: the UPDATE only lands if the version is the one
        just read and the usage limit still has room. A version conflict
        re-reads and tries again, up to `retries` attempts.

        Args:
            tx: Order commit transaction
            coupon_id: Coupon being redeemed
            customer_id: Redeeming customer
            order_id: Order the redemption belongs to
            retries: Attempts before giving up

        Returns:
            Usage count after this redemption

        Raises:
            CouponInvalid: If the coupon is gone or no longer active, its limit
                was reached in the meantime or every attempt lost a version race
        """
        for attempt in range(1, retries + 1):
            current = tx.execute_single(
                "SELECT id, status, usage_count, usage_limit, version FROM coupons WHERE id = %s",
                (coupon_id,)
            )
            if current is None:
                raise CouponInvalid("Invalid coupon code")

            usage_limit = current["usage_limit"]
            if usage_limit and current["usage_count"] >= usage_limit:
                raise CouponInvalid("Coupon usage limit reached")

            # Deactivated, or spent as a one-time coupon, since it was validated
            if current["status"] != CouponStatus.ACTIVE.value:
                raise CouponInvalid("Invalid coupon code")

            row = tx.execute_single(
                """
                UPDATE coupons
                SET usage_count = usage_count + 1,
                    version = version + 1,
                    status = CASE
                        WHEN is_one_time_use THEN 'inactive'
                        WHEN usage_limit > 0 AND usage_count + 1 >= usage_limit THEN 'usage_limit_reached'
                        ELSE status
                    END,
                    updated_at = now()
                WHERE id = %s
                  AND version = %s
                  AND status = %s
                  AND (usage_limit IS NULL OR usage_limit = 0 OR usage_count < usage_limit)
                RETURNING usage_count
                """,
                (coupon_id, current["version"], CouponStatus.ACTIVE.value)
            )

            if row is not None:
                tx.execute(
                    """
                    INSERT INTO coupon_redemptions (id, coupon_id, customer_id, order_id, redeemed_at)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (uuid4(), coupon_id, customer_id, order_id, now_utc())
                )
                return row["usage_count"]

            logger.info(
                f"Coupon {coupon_id} version conflict on attempt {attempt}/{retries}"
            )

        logger.warning(f"Coupon {coupon_id} increment gave up after {retries} attempts")
        raise CouponInvalid("Coupon could not be applied, please try again")
