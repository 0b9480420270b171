"""
Catalog service for checkout.

Read-only pricing view over products, their variants and bundles, plus the
one write checkout performs on the catalog: reserving stock at order commit.
Catalog administration lives elsewhere.
"""

import logging
from collections import defaultdict
from typing import Any, Iterable
from uuid import UUID

from clients.postgres_client import PostgresClient, Transaction
from core.exceptions import StockInsufficient
from core.models import CatalogRecord, LineItem, RefType, Variant

logger = logging.getLogger(__name__)


def _product_record(row: dict[str, Any], variants: list[Variant]) -> CatalogRecord:
    return CatalogRecord(
        id=row["id"],
        ref_type=RefType.PRODUCT,
        name=row["name"],
        sku=row.get("sku"),
        base_price=row.get("base_price"),
        mrp=row.get("mrp"),
        tax_rate=row.get("tax_rate"),
        variants=variants,
        stock_quantity=row.get("stock_quantity") or 0,
        category_id=row.get("category_id"),
        brand_id=row.get("brand_id"),
        is_active=row.get("is_active") is not False,
        updated_at=row.get("updated_at"),
    )


def _bundle_record(row: dict[str, Any]) -> CatalogRecord:
    """
    Bundles sell at their discount price when one is set, else at the full
    total of their contents; the full total doubles as the MRP.
    """
    discount_price = row.get("discount_price")
    total_price = row.get("total_price")
    selling = discount_price if discount_price and discount_price > 0 else total_price

    return CatalogRecord(
        id=row["id"],
        ref_type=RefType.BUNDLE,
        name=row["name"],
        sku=row.get("sku"),
        base_price=selling,
        mrp=total_price,
        tax_rate=row.get("tax_rate"),
        stock_quantity=row.get("stock_quantity"),  # NULL: built to order
        is_active=row.get("is_active") is not False,
        updated_at=row.get("updated_at"),
    )


class CatalogService:
    """Service for catalog lookups and stock reservation."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get_records(
        self,
        refs: Iterable[tuple[RefType, UUID]],
        db: Transaction | None = None,
    ) -> dict[tuple[RefType, UUID], CatalogRecord]:
        """
        Fetch current catalog records for a set of references.

        Deleted records are left out of the result, so callers see them
        as missing. Deactivated records are returned with is_active False.

        Args:
            refs: (ref_type, ref_id) pairs, duplicates allowed
            db: Transaction to read in (defaults to a standalone read)

        Returns:
            Dict keyed by (ref_type, ref_id)
        """
        db = db or self.postgres
        wanted: dict[RefType, set[UUID]] = defaultdict(set)
        for ref_type, ref_id in refs:
            wanted[ref_type].add(ref_id)

        records: dict[tuple[RefType, UUID], CatalogRecord] = {}

        product_ids = sorted(wanted[RefType.PRODUCT], key=str)
        if product_ids:
            rows = db.execute(
                """
                SELECT * FROM products
                WHERE id = ANY(%s::uuid[]) AND deleted_at IS NULL
                """,
                (product_ids,)
            )
            variant_rows = db.execute(
                """
                SELECT * FROM product_variants
                WHERE product_id = ANY(%s::uuid[]) AND deleted_at IS NULL
                ORDER BY display_order ASC
                """,
                (product_ids,)
            )
            variants_by_product: dict[UUID, list[Variant]] = defaultdict(list)
            for variant_row in variant_rows:
                variants_by_product[variant_row["product_id"]].append(
                    Variant.model_validate(variant_row)
                )
            for row in rows:
                record = _product_record(row, variants_by_product[row["id"]])
                records[(RefType.PRODUCT, record.id)] = record

        bundle_ids = sorted(wanted[RefType.BUNDLE], key=str)
        if bundle_ids:
            rows = db.execute(
                """
                SELECT * FROM bundles
                WHERE id = ANY(%s::uuid[]) AND deleted_at IS NULL
                """,
                (bundle_ids,)
            )
            for row in rows:
                record = _bundle_record(row)
                records[(RefType.BUNDLE, record.id)] = record

        return records

    def get_record(self, ref_type: RefType, ref_id: UUID) -> CatalogRecord | None:
        """
        Get one catalog record.

        Returns:
            Record if found and not deleted, None otherwise.
        """
        return self.get_records([(ref_type, ref_id)]).get((ref_type, ref_id))

    def reserve_stock(self, tx: Transaction, item: LineItem, quantity: int | None = None) -> int | None:
        """
        Decrement stock for a committed line, only if enough remains.

        The conditional UPDATE makes concurrent commits unable to oversell.

        Args:
            tx: Order commit transaction
            item: Line item being committed
            quantity: Units to reserve (defaults to item.quantity)

        Returns:
            Remaining stock, or None if the record does not track stock

        Raises:
            StockInsufficient: If the stock was taken in the meantime
        """
        quantity = quantity or item.quantity

        if item.ref_type == RefType.BUNDLE:
            row = tx.execute_single(
                """
                UPDATE bundles
                SET stock_quantity = stock_quantity - %s, updated_at = now()
                WHERE id = %s AND (stock_quantity IS NULL OR stock_quantity >= %s)
                RETURNING stock_quantity
                """,
                (quantity, item.ref_id, quantity)
            )
        elif item.variant_id is not None:
            row = tx.execute_single(
                """
                UPDATE product_variants
                SET stock = stock - %s, updated_at = now()
                WHERE id = %s AND product_id = %s AND stock >= %s
                RETURNING stock AS stock_quantity
                """,
                (quantity, item.variant_id, item.ref_id, quantity)
            )
        else:
            row = tx.execute_single(
                """
                UPDATE products
                SET stock_quantity = stock_quantity - %s, updated_at = now()
                WHERE id = %s AND stock_quantity >= %s
                RETURNING stock_quantity
                """,
                (quantity, item.ref_id, quantity)
            )

        if row is None:
            logger.warning(
                f"Stock reservation lost race for {item.ref_type.value} {item.ref_id} "
                f"(variant={item.variant_id}, quantity={quantity})"
            )
            raise StockInsufficient(item.name or item.ref_type.value, 0, quantity)

        return row["stock_quantity"]
