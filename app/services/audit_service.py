"""
Audit Logging Service

Service for recording and querying listing lifecycle and moderation actions.
"""

from typing import List, Dict, Any, Optional
from sqlmodel import Session, select, desc, func
from datetime import datetime, timedelta
import logging

from app.models.audit_log import AuditLog, AuditAction

logger = logging.getLogger(__name__)


class AuditServiceError(Exception):
    """Base exception for audit service operations."""
    pass


class AuditService:
    """Service for managing audit logs."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        action: AuditAction,
        actor_principal: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Stage an audit entry in the caller's transaction.

        The entry is committed (or rolled back) together with the change it
        describes.
        """
        audit_log = AuditLog(
            action=action,
            actor_principal=actor_principal,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details or {},
        )
        self.db.add(audit_log)
        return audit_log

    async def log_action(
        self,
        action: AuditAction,
        actor_principal: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Log an audit action in its own transaction.

        Args:
            action: The type of action being logged
            actor_principal: Principal performing the action
            entity_type: Type of entity (listing, profile, ...)
            entity_id: ID of the affected entity
            details: Additional details about the action

        Returns:
            The created audit log entry
        """
        try:
            audit_log = self.record(
                action=action,
                actor_principal=actor_principal,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details,
            )
            self.db.commit()
            self.db.refresh(audit_log)

            return audit_log

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to log audit action {action}: {e}")
            raise AuditServiceError(f"Failed to log audit action: {e}")

    async def get_audit_logs(
        self,
        action: Optional[AuditAction] = None,
        actor_principal: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[AuditLog]:
        """Retrieve audit logs with filtering options, newest first."""
        try:
            query = select(AuditLog)

            # Apply filters
            if action:
                query = query.where(AuditLog.action == action)
            if actor_principal:
                query = query.where(AuditLog.actor_principal == actor_principal)
            if entity_type:
                query = query.where(AuditLog.entity_type == entity_type)
            if entity_id:
                query = query.where(AuditLog.entity_id == entity_id)
            if start_date:
                query = query.where(AuditLog.created_at >= start_date)
            if end_date:
                query = query.where(AuditLog.created_at <= end_date)

            # Apply ordering and pagination
            query = query.order_by(desc(AuditLog.created_at), desc(AuditLog.id)).offset(skip).limit(limit)

            return list(self.db.exec(query).all())

        except Exception as e:
            logger.error(f"Failed to retrieve audit logs: {e}")
            raise AuditServiceError(f"Failed to retrieve audit logs: {e}")

    async def get_activity_summary(self, hours: int = 24) -> Dict[str, Any]:
        """Count recent actions, in total and per type."""
        try:
            cutoff_date = datetime.utcnow() - timedelta(hours=hours)

            total_actions = self.db.exec(
                select(func.count(AuditLog.id))
                .where(AuditLog.created_at >= cutoff_date)
            ).one()

            action_stats = self.db.exec(
                select(AuditLog.action, func.count(AuditLog.id))
                .where(AuditLog.created_at >= cutoff_date)
                .group_by(AuditLog.action)
            ).all()

            return {
                "period_hours": hours,
                "total_actions": total_actions,
                "action_breakdown": {
                    AuditAction(action).value: count for action, count in action_stats
                },
            }

        except Exception as e:
            logger.error(f"Failed to summarise audit activity: {e}")
            raise AuditServiceError(f"Failed to summarise audit activity: {e}")

    async def cleanup_old_logs(self, days_to_keep: int = 90) -> int:
        """
        Delete audit logs older than the retention window.

        Args:
            days_to_keep: Number of days of logs to keep

        Returns:
            Number of deleted logs
        """
        try:
            cutoff_date = datetime.utcnow() - timedelta(days=days_to_keep)

            old_logs = self.db.exec(
                select(AuditLog)
                .where(AuditLog.created_at < cutoff_date)
            ).all()

            for log in old_logs:
                self.db.delete(log)

            self.db.commit()

            logger.info(f"Cleaned up {len(old_logs)} old audit logs")
            return len(old_logs)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to clean up audit logs: {e}")
            raise AuditServiceError(f"Failed to clean up audit logs: {e}")
