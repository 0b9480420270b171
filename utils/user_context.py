"""Propagate the signed-in customer's identity through the call stack using contextvars."""

from contextvars import ContextVar
from uuid import UUID
from contextlib import contextmanager

_current_customer_id: ContextVar[UUID | None] = ContextVar("current_customer_id", default=None)


def get_current_customer_id() -> UUID:
    """
    Get current customer ID from context.

    Raises RuntimeError if no customer context is set. Carts, coupon
    redemptions and orders are always per-customer; reaching them without a
    customer is a bug in the caller.
    """
    customer_id = _current_customer_id.get()
    if customer_id is None:
        raise RuntimeError(
            "No customer context set. This usually means you're calling "
            "customer-scoped code outside of an authenticated request."
        )
    return customer_id


def set_current_customer_id(customer_id: UUID) -> None:
    """
    Set current customer ID in context.

    Called by the auth layer after validating the session.
    """
    _current_customer_id.set(customer_id)


def clear_current_customer_id() -> None:
    """
    Clear customer context.

    Must be called in a finally block to prevent context leakage between requests.
    """
    _current_customer_id.set(None)


@contextmanager
def customer_context(customer_id: UUID):
    """
    Temporarily act as a customer.

    Example:
        with customer_context(customer_id):
            preview = checkout_service.preview()
    """
    previous = _current_customer_id.get()
    set_current_customer_id(customer_id)
    try:
        yield
    finally:
        if previous is None:
            clear_current_customer_id()
        else:
            set_current_customer_id(previous)
