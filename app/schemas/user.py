from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.models.user import UserRole


class ProfileSaveSchema(BaseModel):
    """Schema for saving the caller's profile."""
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.OWNER


class ProfileResponseSchema(BaseModel):
    """Schema for profile response data."""
    principal: str
    name: str
    role: UserRole
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleResponseSchema(BaseModel):
    role: UserRole


class RoleAssignSchema(BaseModel):
    """Schema for the admin role assignment request."""
    role: UserRole


class IsAdminResponseSchema(BaseModel):
    is_admin: bool
