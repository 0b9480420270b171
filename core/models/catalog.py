"""Catalog domain models (products and bundles).

Prices are Decimal rupees with 2 decimal places. Tax rates are stored as
whatever the admin entered (18, 0.18, ...) and are only ever interpreted
by core.pricing.tax.normalize_tax_rate.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class RefType(str, Enum):
    """Kind of catalog record a cart entry points to."""

    PRODUCT = "product"
    BUNDLE = "bundle"  # Build-your-own gift box


class Variant(BaseModel):
    """A purchasable variant of a product (size, colour, ...)."""

    id: UUID
    name: str | None = None
    sku: str | None = None
    price: Decimal | None = None
    mrp: Decimal | None = None
    tax_rate: Decimal | str | None = None
    stock: int = Field(0, ge=0)
    is_active: bool = True

    model_config = {"from_attributes": True}


class CatalogRecord(BaseModel):
    """
    Authoritative pricing view of a product or bundle.

    stock_quantity None means stock is not tracked (bundles are built to order).
    """

    id: UUID
    ref_type: RefType
    name: str
    sku: str | None = None
    base_price: Decimal | None = None
    mrp: Decimal | None = None
    tax_rate: Decimal | str | None = None
    variants: list[Variant] = Field(default_factory=list)
    stock_quantity: int | None = None
    category_id: UUID | None = None
    brand_id: UUID | None = None
    is_active: bool = True
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    def find_variant(self, variant_id: UUID | None) -> Variant | None:
        """Variant by ID, or None if not given or no longer offered (missing or inactive)."""
        if variant_id is None:
            return None
        for variant in self.variants:
            if variant.id == variant_id and variant.is_active:
                return variant
        return None

    def stock_for(self, variant_id: UUID | None) -> int | None:
        """
        Available stock for this record or one of its variants.

        Returns None when stock is not tracked. A requested variant that is
        no longer offered has no stock.
        """
        if variant_id is not None:
            variant = self.find_variant(variant_id)
            return variant.stock if variant else 0
        return self.stock_quantity
