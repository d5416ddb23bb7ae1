"""
Audit Log Model

Database model for tracking listing lifecycle and moderation actions.
"""

from typing import Optional, Dict, Any
from sqlmodel import SQLModel, Field, JSON, Column
from datetime import datetime
from enum import Enum


class AuditAction(str, Enum):
    """Enum for different types of audit actions."""
    LISTING_CREATED = "listing_created"
    LISTING_APPROVED = "listing_approved"
    LISTING_REJECTED = "listing_rejected"
    PHOTO_ADDED = "photo_added"
    EDIT_REQUEST_SUBMITTED = "edit_request_submitted"
    EDIT_REQUEST_APPROVED = "edit_request_approved"
    EDIT_REQUEST_REJECTED = "edit_request_rejected"
    DELETE_REQUEST_SUBMITTED = "delete_request_submitted"
    DELETE_REQUEST_APPROVED = "delete_request_approved"
    DELETE_REQUEST_REJECTED = "delete_request_rejected"
    PROFILE_CREATED = "profile_created"
    ROLE_ASSIGNED = "role_assigned"
    LOG_CLEANUP = "log_cleanup"


class AuditLogBase(SQLModel):
    """Base audit log model with shared fields."""
    action: AuditAction
    actor_principal: Optional[str] = Field(default=None, description="Principal who performed the action")
    entity_type: Optional[str] = Field(default=None, description="Type of entity affected (listing, profile, ...)")
    entity_id: Optional[str] = Field(default=None, description="ID of the affected entity")
    details: Dict[str, Any] = Field(default={}, sa_column=Column(JSON), description="Additional details about the action")


class AuditLog(AuditLogBase, table=True):
    """Audit log table model."""
    __tablename__ = "audit_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, description="When the action occurred")


class AuditLogResponse(AuditLogBase):
    """Schema for audit log responses."""
    id: int
    created_at: datetime
