"""
Admin audit trail and error monitoring endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlmodel import Session
from typing import List, Optional
from datetime import datetime

from app.api.v1.endpoints.users import get_current_admin_caller
from app.db.session import get_session
from app.models.audit_log import AuditAction, AuditLogResponse
from app.services.access_control import CallerContext
from app.services.audit_service import AuditService, AuditServiceError
from app.services.error_handler import error_handler

router = APIRouter()


@router.get("/", response_model=List[AuditLogResponse])
async def get_audit_logs(
    action: Optional[AuditAction] = Query(None, description="Filter by action type"),
    actor_principal: Optional[str] = Query(None, description="Filter by acting principal"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type"),
    entity_id: Optional[str] = Query(None, description="Filter by entity ID"),
    start_date: Optional[datetime] = Query(None, description="Filter by start date"),
    end_date: Optional[datetime] = Query(None, description="Filter by end date"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records to return"),
    admin_caller: CallerContext = Depends(get_current_admin_caller),
    db: Session = Depends(get_session)
):
    """
    Retrieve audit logs with filtering options.

    Only admins can access audit logs.
    """
    try:
        audit_service = AuditService(db)
        logs = await audit_service.get_audit_logs(
            action=action,
            actor_principal=actor_principal,
            entity_type=entity_type,
            entity_id=entity_id,
            start_date=start_date,
            end_date=end_date,
            skip=skip,
            limit=limit
        )
        return [AuditLogResponse.model_validate(log, from_attributes=True) for log in logs]

    except AuditServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/summary")
async def get_activity_summary(
    hours: int = Query(24, ge=1, le=24 * 30, description="Size of the window in hours"),
    admin_caller: CallerContext = Depends(get_current_admin_caller),
    db: Session = Depends(get_session)
):
    """Counts of recent moderation activity per action."""
    try:
        return await AuditService(db).get_activity_summary(hours)
    except AuditServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/errors")
async def get_error_statistics(
    admin_caller: CallerContext = Depends(get_current_admin_caller),
):
    """Statistics of unexpected errors seen by this process."""
    return error_handler.get_error_statistics()


@router.post("/cleanup")
async def cleanup_old_logs(
    days_to_keep: int = Query(90, ge=7, le=365, description="Number of days of logs to keep"),
    admin_caller: CallerContext = Depends(get_current_admin_caller),
    db: Session = Depends(get_session)
):
    """
    Delete old audit logs.

    The cleanup itself is recorded as a new audit entry.
    """
    try:
        audit_service = AuditService(db)
        deleted_count = await audit_service.cleanup_old_logs(days_to_keep)

        await audit_service.log_action(
            action=AuditAction.LOG_CLEANUP,
            actor_principal=admin_caller.principal,
            entity_type="audit_log",
            details={
                "days_to_keep": days_to_keep,
                "deleted_count": deleted_count
            }
        )

        return {
            "success": True,
            "deleted_count": deleted_count,
            "days_kept": days_to_keep,
            "cleaned_at": datetime.utcnow(),
            "cleaned_by": admin_caller.principal
        }

    except AuditServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
