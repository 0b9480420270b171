"""Tests for utils/timezone.py - UTC-everywhere time handling."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from utils.timezone import now_utc, to_utc, date_stamp


class TestNowUtc:
    """Tests for now_utc()."""

    def test_is_utc(self):
        """Result must be timezone-aware UTC."""
        result = now_utc()
        assert result.tzinfo == timezone.utc


class TestToUtc:
    """Tests for to_utc()."""

    def test_raises_on_naive(self):
        """Naive datetime must raise ValueError."""
        with pytest.raises(ValueError, match="naive"):
            to_utc(datetime(2026, 1, 1, 12, 0, 0))

    def test_converts_other_timezone(self):
        """Kolkata 05:30 is UTC midnight."""
        kolkata = datetime(2026, 3, 1, 5, 30, 0, tzinfo=ZoneInfo("Asia/Kolkata"))
        result = to_utc(kolkata)
        assert result.tzinfo == timezone.utc
        assert (result.day, result.hour, result.minute) == (1, 0, 0)


class TestDateStamp:
    """Tests for date_stamp() used in order numbers."""

    def test_formats_utc_date(self):
        assert date_stamp(datetime(2026, 10, 18, 23, 59, tzinfo=timezone.utc)) == "20261018"

    def test_uses_utc_calendar_day(self):
        """Just after midnight in Kolkata is still the previous day in UTC."""
        kolkata = datetime(2026, 10, 19, 0, 30, tzinfo=ZoneInfo("Asia/Kolkata"))
        assert date_stamp(kolkata) == "20261018"

    def test_defaults_to_today(self):
        assert date_stamp() == now_utc().strftime("%Y%m%d")
