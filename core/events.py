"""
Domain events for the storefront checkout.

Immutable event objects published after an order commit. Handlers (order
confirmation mail, analytics, stock alerts) react without the order service
knowing who is listening.

Events carry the full domain object so handlers don't need to re-fetch state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class StorefrontEvent:
    """Base class for all storefront domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


@dataclass(frozen=True)
class OrderPlaced(StorefrontEvent):
    """An order was committed: stock reserved, coupon counted, cart cleared."""
    order: Any = None  # Order; Any avoids a circular import

    @classmethod
    def create(cls, order: Any) -> "OrderPlaced":
        return cls(order=order)


@dataclass(frozen=True)
class CouponRedeemed(StorefrontEvent):
    """A coupon was counted against an order."""
    order: Any = None
    coupon_code: str = ""
    usage_count: int = 0

    @classmethod
    def create(cls, order: Any, coupon_code: str, usage_count: int) -> "CouponRedeemed":
        return cls(order=order, coupon_code=coupon_code, usage_count=usage_count)
