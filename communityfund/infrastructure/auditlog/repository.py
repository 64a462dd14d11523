"""
Audit Log Repository - append-only trail of mutations

Every use case that writes to the database records who did what to which row.
"""
from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from communityfund.infrastructure.db.models import AuditLog


class AuditLogRepository:
    """
    Repository for audit_logs rows
    """

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        action: str,
        entity: str,
        entity_id: int,
        payload: Dict[str, Any],
        actor_user_id: Optional[int] = None,
        occurred_at: Optional[datetime] = None,
    ) -> int:
        """
        Append an audit entry (flushed, not committed)

        Args:
            action: What happened (e.g. "plan_activity_created")
            entity: Table / aggregate name (e.g. "plan_activities")
            entity_id: Primary key of the affected row
            payload: JSON-serialisable details
            actor_user_id: Who did it (None for system jobs)
            occurred_at: When (default: now)

        Returns:
            audit_log id

        Example:
            >>> repo = AuditLogRepository(db)
            >>> repo.append(
            ...     action="receipt_verified",
            ...     entity="receipts",
            ...     entity_id=42,
            ...     payload={"verified": True},
            ...     actor_user_id=1,
            ... )
        """
        if occurred_at is None:
            occurred_at = datetime.utcnow()

        entry = AuditLog(
            actor_user_id=actor_user_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            payload_json=payload,
            occurred_at=occurred_at,
        )

        self.db.add(entry)
        self.db.flush()

        return entry.id

    def list_for_entity(self, entity: str, entity_id: int) -> List[AuditLog]:
        """
        History of one row, oldest first
        """
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.entity == entity, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.id.asc())
            .all()
        )

    def count(self, action: Optional[str] = None) -> int:
        query = self.db.query(AuditLog)
        if action:
            query = query.filter(AuditLog.action == action)
        return query.count()
