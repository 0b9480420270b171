"""Cart domain models.

A cart entry carries the client-side price snapshot from when the item was
added. That snapshot is a fallback only; checkout always re-reads the catalog.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.catalog import RefType


class CartVariant(BaseModel):
    """Variant selection stored on a cart entry."""

    variant_id: UUID | None = None
    name: str | None = None
    price: Decimal | None = None


class CartEntry(BaseModel):
    """One line in a customer's cart."""

    id: UUID | None = None
    ref_type: RefType = RefType.PRODUCT
    ref_id: UUID
    variant: CartVariant | None = None
    quantity: int = Field(..., ge=1, le=100)
    stored_price: Decimal | None = None

    model_config = {"from_attributes": True}

    @property
    def variant_id(self) -> UUID | None:
        return self.variant.variant_id if self.variant else None


class Cart(BaseModel):
    """A customer's cart with its ordered entries."""

    id: UUID
    customer_id: UUID
    items: list[CartEntry] = Field(default_factory=list)
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @property
    def total_quantity(self) -> int:
        return sum(entry.quantity for entry in self.items)
