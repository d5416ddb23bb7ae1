import enum
from typing import Any, Dict, Optional
from datetime import datetime

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


class RequestKind(str, enum.Enum):
    EDIT = "edit"
    DELETE = "delete"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def pending_key_for(listing_id: int, kind: RequestKind) -> str:
    """Key of the single pending slot a listing has for a request kind."""
    return f"{listing_id}:{kind.value}"


class ModerationRequest(SQLModel, table=True):
    """An owner's edit or delete proposal awaiting (or past) admin review."""
    __tablename__ = "moderation_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    kind: RequestKind = Field(index=True)
    # Weak reference: no foreign key, requests outlive deleted listings
    listing_id: int = Field(index=True)
    owner: str = Field(index=True, max_length=255)
    status: RequestStatus = Field(default=RequestStatus.PENDING, index=True)
    rejection_reason: Optional[str] = Field(default=None)
    # Full proposed listing for edit requests, None for delete requests
    edited_listing: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    # "<listing_id>:<kind>" while pending, NULL once resolved
    pending_key: Optional[str] = Field(default=None, unique=True, max_length=64)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    reviewed_at: Optional[datetime] = Field(default=None)
