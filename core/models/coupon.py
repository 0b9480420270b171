"""Coupon domain models.

Coupons are administered elsewhere; checkout reads them and only ever
increments usage_count (once per committed order).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class DiscountType(str, Enum):
    """How a coupon reduces the amount due."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"  # Caller zeroes shipping, discount is 0


class ApplicableTo(str, Enum):
    """Which cart lines a coupon's discount base is drawn from."""

    ALL_PRODUCTS = "all_products"
    SPECIFIC_PRODUCTS = "specific_products"
    SPECIFIC_CATEGORIES = "specific_categories"
    SPECIFIC_BRANDS = "specific_brands"


class UserEligibility(str, Enum):
    """Which customers may redeem a coupon."""

    ALL_USERS = "all_users"
    NEW_USERS = "new_users"
    EXISTING_USERS = "existing_users"
    SPECIFIC_USERS = "specific_users"


class CouponStatus(str, Enum):
    """Coupon lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"


class Coupon(BaseModel):
    """Full coupon entity as stored."""

    id: UUID
    code: str = Field(..., min_length=1, max_length=20)
    name: str
    discount_type: DiscountType
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    maximum_discount: Decimal | None = Field(None, ge=0)
    minimum_cart_value: Decimal = Field(Decimal("0"), ge=0)
    usage_limit: int | None = Field(None, ge=0)
    usage_count: int = Field(0, ge=0)
    usage_limit_per_user: int | None = Field(1, ge=0)
    valid_from: datetime
    valid_until: datetime
    applicable_to: ApplicableTo = ApplicableTo.ALL_PRODUCTS
    specific_products: list[UUID] = Field(default_factory=list)
    specific_categories: list[UUID] = Field(default_factory=list)
    specific_brands: list[UUID] = Field(default_factory=list)
    excluded_products: list[UUID] = Field(default_factory=list)
    user_eligibility: UserEligibility = UserEligibility.ALL_USERS
    allowed_users: list[UUID] = Field(default_factory=list)
    status: CouponStatus = CouponStatus.ACTIVE
    is_one_time_use: bool = False
    version: int = 0

    model_config = {"from_attributes": True}

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator(
        "specific_products", "specific_categories", "specific_brands",
        "excluded_products", "allowed_users",
        mode="before",
    )
    @classmethod
    def null_array_as_empty(cls, value):
        return [] if value is None else value

    @model_validator(mode="after")
    def validate_discount(self) -> "Coupon":
        """Percentage coupons cannot exceed 100%."""
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100%")
        return self

    @property
    def remaining_uses(self) -> int | None:
        """Uses left before the global limit, None if unlimited."""
        if not self.usage_limit:
            return None
        return max(0, self.usage_limit - self.usage_count)
