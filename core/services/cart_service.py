"""
Cart service for checkout.

Loads a customer's cart with its entries and clears it once an order has
been committed. Adding and removing items is the cart API's business.
"""

import logging
from typing import Any
from uuid import UUID

from clients.postgres_client import PostgresClient, Transaction
from core.models import Cart, CartEntry, CartVariant, RefType

logger = logging.getLogger(__name__)


def _entry_from_row(row: dict[str, Any]) -> CartEntry:
    variant = None
    if row.get("variant_id") is not None or row.get("variant_name") is not None:
        variant = CartVariant(
            variant_id=row.get("variant_id"),
            name=row.get("variant_name"),
            price=row.get("variant_price"),
        )

    return CartEntry(
        id=row["id"],
        ref_type=RefType(row.get("ref_type") or RefType.PRODUCT.value),
        ref_id=row["ref_id"],
        variant=variant,
        quantity=row["quantity"],
        stored_price=row.get("price"),
    )


class CartService:
    """Service for cart reads and the post-order clear."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get_for_customer(self, customer_id: UUID, db: Transaction | None = None) -> Cart | None:
        """
        Get a customer's cart with entries in the order they were added.

        Args:
            customer_id: Cart owner
            db: Transaction to read in (defaults to a standalone read)

        Returns:
            Cart, or None if the customer has never had one
        """
        db = db or self.postgres

        cart_row = db.execute_single(
            "SELECT id, customer_id, updated_at FROM carts WHERE customer_id = %s",
            (customer_id,)
        )
        if cart_row is None:
            return None

        rows = db.execute(
            """
            SELECT id, ref_type, ref_id, variant_id, variant_name, variant_price,
                   quantity, price
            FROM cart_items
            WHERE cart_id = %s
            ORDER BY added_at ASC, id ASC
            """,
            (cart_row["id"],)
        )

        return Cart(
            id=cart_row["id"],
            customer_id=cart_row["customer_id"],
            items=[_entry_from_row(row) for row in rows],
            updated_at=cart_row.get("updated_at"),
        )

    def clear(self, tx: Transaction, cart_id: UUID) -> int:
        """
        Remove every entry from a cart inside the order commit.

        Returns:
            Number of entries removed
        """
        removed = tx.execute_returning(
            "DELETE FROM cart_items WHERE cart_id = %s RETURNING id",
            (cart_id,)
        )
        tx.execute(
            "UPDATE carts SET updated_at = now() WHERE id = %s",
            (cart_id,)
        )
        logger.debug(f"Cleared {len(removed)} entries from cart {cart_id}")
        return len(removed)
