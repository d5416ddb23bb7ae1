"""
Moderation request schemas for API request/response serialization.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.moderation import ModerationRequest, RequestKind
from app.schemas.listing import ListingEditPayload, StatusRead, status_view


class ProcessRequestSchema(BaseModel):
    """Admin decision on a pending request."""
    approved: bool
    rejection_reason: Optional[str] = None


class DeleteRequestRead(BaseModel):
    id: int
    listing_id: int
    owner: str
    status: StatusRead
    created_at: datetime
    reviewed_at: Optional[datetime] = None

    @classmethod
    def from_request(cls, request: ModerationRequest) -> "DeleteRequestRead":
        return cls(
            id=request.id,
            listing_id=request.listing_id,
            owner=request.owner,
            status=status_view(request.status, request.rejection_reason),
            created_at=request.created_at,
            reviewed_at=request.reviewed_at,
        )


class EditRequestRead(DeleteRequestRead):
    edited_listing: ListingEditPayload

    @classmethod
    def from_request(cls, request: ModerationRequest) -> "EditRequestRead":
        base = DeleteRequestRead.from_request(request)
        return cls(**base.model_dump(), edited_listing=request.edited_listing)


class OwnerRequestRead(DeleteRequestRead):
    """A request as listed in its submitter's history."""
    kind: RequestKind
    edited_listing: Optional[ListingEditPayload] = None

    @classmethod
    def from_request(cls, request: ModerationRequest) -> "OwnerRequestRead":
        base = DeleteRequestRead.from_request(request)
        return cls(**base.model_dump(), kind=request.kind, edited_listing=request.edited_listing)
