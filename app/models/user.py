import enum
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime


class UserRole(str, enum.Enum):
    """Roles a caller can resolve to."""
    GUEST = "guest"
    OWNER = "owner"
    ADMIN = "admin"


class UserProfileBase(SQLModel):
    """Base profile model with shared fields."""
    name: str = Field(max_length=100)
    role: UserRole = Field(default=UserRole.OWNER, description="Owner or admin; never guest")


class UserProfile(UserProfileBase, table=True):
    """Profile saved by an authenticated principal on first use."""
    __tablename__ = "user_profiles"

    principal: str = Field(primary_key=True, max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default=None)
