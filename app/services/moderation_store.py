"""
Moderation Request Store

Owns edit and delete requests. The single pending slot per (listing, kind) is
addressed through ``pending_key``, an indexed UNIQUE column, so the conflict
check is one lookup and a racing insert is refused by the database.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, desc

from app.models.moderation import (
    ModerationRequest,
    RequestKind,
    RequestStatus,
    pending_key_for,
)
from app.services.errors import (
    ConflictError,
    InvalidStateError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ModerationRequestStore:
    """Service for submitting and resolving moderation requests."""

    def __init__(self, db: Session):
        self.db = db

    async def get_pending(self, listing_id: int, kind: RequestKind) -> Optional[ModerationRequest]:
        """Get the pending request of a kind for a listing, if any."""
        return self.db.exec(
            select(ModerationRequest).where(
                ModerationRequest.pending_key == pending_key_for(listing_id, kind)
            )
        ).first()

    async def _submit(
        self,
        kind: RequestKind,
        listing_id: int,
        owner: str,
        edited_listing: Optional[Dict[str, Any]] = None,
    ) -> ModerationRequest:
        if await self.get_pending(listing_id, kind) is not None:
            raise ConflictError(
                f"A pending {kind.value} request already exists for listing {listing_id}"
            )

        request = ModerationRequest(
            kind=kind,
            listing_id=listing_id,
            owner=owner,
            status=RequestStatus.PENDING,
            edited_listing=edited_listing,
            pending_key=pending_key_for(listing_id, kind),
        )
        self.db.add(request)
        try:
            self.db.flush()
        except IntegrityError:
            # Another submitter filled the slot after our lookup
            self.db.rollback()
            raise ConflictError(
                f"A pending {kind.value} request already exists for listing {listing_id}"
            )
        self.db.refresh(request)
        logger.debug(f"Opened pending {kind.value} slot {request.pending_key} as request {request.id}")
        return request

    async def submit_edit(
        self, listing_id: int, owner: str, edited_listing: Dict[str, Any]
    ) -> ModerationRequest:
        """Create a pending edit request carrying the full proposed listing."""
        if edited_listing.get("id") != listing_id:
            raise ValidationError("Edited listing id must match the target listing")
        return await self._submit(RequestKind.EDIT, listing_id, owner, edited_listing)

    async def submit_delete(self, listing_id: int, owner: str) -> ModerationRequest:
        """Create a pending delete request."""
        return await self._submit(RequestKind.DELETE, listing_id, owner)

    async def get_all(self, kind: RequestKind) -> List[ModerationRequest]:
        """Get every request of a kind, newest first."""
        statement = (
            select(ModerationRequest)
            .where(ModerationRequest.kind == kind)
            .order_by(desc(ModerationRequest.created_at), desc(ModerationRequest.id))
        )
        return list(self.db.exec(statement).all())

    async def list_for_owner(
        self, owner: str, kind: Optional[RequestKind] = None
    ) -> List[ModerationRequest]:
        """Get the requests submitted by one owner."""
        statement = select(ModerationRequest).where(ModerationRequest.owner == owner)
        if kind is not None:
            statement = statement.where(ModerationRequest.kind == kind)
        statement = statement.order_by(desc(ModerationRequest.created_at), desc(ModerationRequest.id))
        return list(self.db.exec(statement).all())

    async def resolve(
        self,
        listing_id: int,
        kind: RequestKind,
        approved: bool,
        rejection_reason: Optional[str] = None,
    ) -> ModerationRequest:
        """
        Approve or reject the pending request of a kind for a listing.

        Rejections need a non-blank reason; an approval ignores any reason.
        The update is conditional on the request still being pending, so the
        second of two concurrent reviewers gets InvalidStateError.
        """
        request = await self.get_pending(listing_id, kind)
        if request is None:
            raise InvalidStateError(
                f"No pending {kind.value} request for listing {listing_id}"
            )

        reason = (rejection_reason or "").strip()
        if not approved and not reason:
            raise ValidationError("A rejection reason is required")

        result = self.db.exec(
            update(ModerationRequest)
            .where(
                ModerationRequest.id == request.id,
                ModerationRequest.status == RequestStatus.PENDING,
            )
            .values(
                status=RequestStatus.APPROVED if approved else RequestStatus.REJECTED,
                rejection_reason=None if approved else reason,
                reviewed_at=datetime.utcnow(),
                pending_key=None,
            )
        )
        if result.rowcount != 1:
            raise InvalidStateError(
                f"The {kind.value} request for listing {listing_id} was already resolved"
            )

        self.db.refresh(request)
        logger.debug(f"Request {request.id} resolved as {request.status.value}")
        return request
