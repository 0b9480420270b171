"""UTC-everywhere time handling for order stamps and coupon validity windows."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def date_stamp(dt: datetime | None = None) -> str:
    """UTC calendar date as YYYYMMDD, used in order numbers."""
    return to_utc(dt or now_utc()).strftime("%Y%m%d")
