"""
Audit trail for checkout mutations.

Every order commit and coupon redemption is logged here. The audit log is:
- Append-only (entries never modified or deleted)
- Customer-attributed (whose checkout made the change)
- Detailed (captures the priced snapshot)

Entries written with a Transaction land or roll back together with the
change they describe.
"""

from enum import Enum
from uuid import UUID, uuid4
from typing import Any

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient, Transaction
from utils.user_context import get_current_customer_id
from utils.timezone import now_utc


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"


class AuditLogger:
    """
    Audit trail for checkout mutations.

    IMPORTANT: Always use model_dump(mode="json") when passing Pydantic models
    so UUIDs, Decimals and datetimes serialize cleanly.

    Usage:
        audit = AuditLogger(postgres)

        with postgres.transaction() as tx:
            ...
            audit.log_change(
                entity_type="order",
                entity_id=order.id,
                action=AuditAction.CREATE,
                changes={"created": order.model_dump(mode="json")},
                db=tx,
            )
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
        customer_id: UUID | None = None,
        db: Transaction | None = None,
    ) -> None:
        """
        Log an entity change.

        Args:
            entity_type: Type of entity ("order", "coupon", ...)
            entity_id: ID of the entity
            action: The action performed
            changes: {"created": {...}} for CREATE, {"field": {"old", "new"}} for UPDATE
            customer_id: Acting customer (defaults to current context)
            db: Transaction to write in (defaults to a standalone statement)
        """
        if customer_id is None:
            customer_id = get_current_customer_id()

        (db or self.postgres).execute(
            """
            INSERT INTO audit_log (id, customer_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                uuid4(),
                customer_id,
                entity_type,
                entity_id,
                action.value,
                Json(changes),
                now_utc()
            )
        )

    def get_entity_history(
        self,
        entity_type: str,
        entity_id: UUID
    ) -> list[dict[str, Any]]:
        """
        Get full audit history for an entity, newest first.
        """
        return self.postgres.execute(
            """
            SELECT id, customer_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE entity_type = %s AND entity_id = %s
            ORDER BY created_at DESC
            """,
            (entity_type, entity_id)
        )
