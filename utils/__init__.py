"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, to_utc, date_stamp
from utils.user_context import (
    get_current_customer_id,
    set_current_customer_id,
    clear_current_customer_id,
    customer_context,
)
