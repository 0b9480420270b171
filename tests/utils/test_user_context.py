"""Tests for utils/user_context.py - customer identity propagation via contextvars."""

from uuid import uuid4

import pytest

from utils.user_context import (
    get_current_customer_id,
    set_current_customer_id,
    clear_current_customer_id,
    customer_context,
)


class TestGetCurrentCustomerId:
    """Tests for get_current_customer_id()."""

    def test_raises_without_set(self):
        """Must raise RuntimeError when no context is set."""
        with pytest.raises(RuntimeError, match="No customer context"):
            get_current_customer_id()


class TestSetAndClear:

    def test_set_then_get_returns_uuid(self):
        customer_id = uuid4()
        set_current_customer_id(customer_id)
        assert get_current_customer_id() == customer_id

    def test_clear_then_get_raises(self):
        set_current_customer_id(uuid4())
        clear_current_customer_id()
        with pytest.raises(RuntimeError):
            get_current_customer_id()


class TestCustomerContextManager:
    """Tests for customer_context() context manager."""

    def test_restores_previous(self):
        """Nested context managers should restore outer context."""
        outer_id = uuid4()
        inner_id = uuid4()

        with customer_context(outer_id):
            with customer_context(inner_id):
                assert get_current_customer_id() == inner_id

            assert get_current_customer_id() == outer_id

        with pytest.raises(RuntimeError):
            get_current_customer_id()

    def test_clears_on_exception(self):
        """Context should be cleared even if exception is raised."""
        with pytest.raises(ValueError):
            with customer_context(uuid4()):
                raise ValueError("test exception")

        with pytest.raises(RuntimeError):
            get_current_customer_id()
