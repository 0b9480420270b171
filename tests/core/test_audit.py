"""Tests for the checkout audit trail."""

from unittest.mock import Mock
from uuid import uuid4

import pytest
from psycopg2.extras import Json

from core.audit import AuditAction, AuditLogger


class TestAuditAction:
    """Tests for AuditAction enum."""

    def test_has_create_update(self):
        """AuditAction has required values."""
        assert AuditAction.CREATE.value == "create"
        assert AuditAction.UPDATE.value == "update"


class TestLogChange:
    """Tests for AuditLogger.log_change."""

    def test_writes_through_given_transaction(self, test_customer_id):
        """Entry goes to the transaction, not the standalone client."""
        postgres = Mock()
        tx = Mock()
        entity_id = uuid4()

        AuditLogger(postgres).log_change(
            entity_type="order",
            entity_id=entity_id,
            action=AuditAction.CREATE,
            changes={"created": {"order_number": "ORD-20260101-AAAAA"}},
            customer_id=test_customer_id,
            db=tx,
        )

        postgres.execute.assert_not_called()
        query, params = tx.execute.call_args[0]
        assert "INSERT INTO audit_log" in query
        assert params[1] == test_customer_id
        assert params[2] == "order"
        assert params[3] == entity_id
        assert params[4] == "create"
        assert isinstance(params[5], Json)
        assert params[5].adapted == {"created": {"order_number": "ORD-20260101-AAAAA"}}

    def test_defaults_to_current_customer(self, as_test_customer):
        postgres = Mock()

        AuditLogger(postgres).log_change(
            entity_type="order",
            entity_id=uuid4(),
            action=AuditAction.UPDATE,
            changes={"status": {"old": "created", "new": "confirmed"}},
        )

        params = postgres.execute.call_args[0][1]
        assert params[1] == as_test_customer

    def test_without_customer_context_raises(self):
        with pytest.raises(RuntimeError, match="No customer context"):
            AuditLogger(Mock()).log_change(
                entity_type="order",
                entity_id=uuid4(),
                action=AuditAction.CREATE,
                changes={},
            )


class TestEntityHistory:

    def test_returns_rows_newest_first(self):
        postgres = Mock()
        postgres.execute.return_value = [{"action": "update"}, {"action": "create"}]
        entity_id = uuid4()

        history = AuditLogger(postgres).get_entity_history("order", entity_id)

        assert history == [{"action": "update"}, {"action": "create"}]
        query, params = postgres.execute.call_args[0]
        assert "ORDER BY created_at DESC" in query
        assert params == ("order", entity_id)
