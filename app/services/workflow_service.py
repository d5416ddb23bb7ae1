"""
Moderation Workflow Service

Orchestrates the listing lifecycle: creation, admin review of new listings,
and the owner edit/delete request cycle. Every public operation takes the
caller's context explicitly, passes the access control gate first, and runs
as a single transaction together with its audit entry.
"""

import logging
from typing import Dict, List, Optional

from sqlmodel import Session

from app.db.transaction import transactional
from app.models.audit_log import AuditAction
from app.models.listing import Facility, Listing, ListingStatus
from app.models.moderation import ModerationRequest, RequestKind
from app.models.user import UserRole
from app.schemas.listing import (
    ListingEditPayload,
    ListingInput,
    PhotoRef,
    listing_snapshot,
)
from app.services.access_control import AccessControlGate, CallerContext
from app.services.audit_service import AuditService
from app.services.errors import ForbiddenError, InvalidStateError, ValidationError
from app.services.listing_store import ListingStore
from app.services.moderation_store import ModerationRequestStore

logger = logging.getLogger(__name__)


class ModerationWorkflowService:
    """Service coordinating listing transitions and moderation requests."""

    def __init__(self, db: Session, gate: Optional[AccessControlGate] = None):
        self.db = db
        self.gate = gate or AccessControlGate(db)
        self.listings = ListingStore(db)
        self.requests = ModerationRequestStore(db)
        self.audit = AuditService(db)

    @staticmethod
    def _validate_listing(data: ListingInput) -> None:
        if not data.rental_durations:
            raise ValidationError("At least one rental duration is required")
        if data.price < 0:
            raise ValidationError("Price cannot be negative")

    # Listing lifecycle

    @transactional
    async def create_listing(self, ctx: CallerContext, data: ListingInput) -> Listing:
        """Create a listing owned by the caller; it always starts pending."""
        await self.gate.require(ctx, UserRole.OWNER, UserRole.ADMIN)
        self._validate_listing(data)

        listing = await self.listings.create(ctx.principal, data.model_dump())
        self.audit.record(
            AuditAction.LISTING_CREATED,
            actor_principal=ctx.principal,
            entity_type="listing",
            entity_id=listing.id,
            details={"title": listing.title, "property_type": listing.property_type.value},
        )
        logger.info(f"Listing {listing.id} created by {ctx.principal}; awaiting review")
        return listing

    async def get_listing(self, listing_id: int) -> Listing:
        """Get a listing by its ID."""
        return await self.listings.get(listing_id)

    async def get_all_listings(
        self, ctx: CallerContext, status: Optional[ListingStatus] = None
    ) -> List[Listing]:
        """Admins see every listing (optionally by status); everyone else sees approved ones."""
        role = await self.gate.resolver.resolve_role(ctx.principal)
        if role == UserRole.ADMIN:
            return await self.listings.list_all(status)
        return await self.listings.list_all(ListingStatus.APPROVED)

    async def get_listings_by_owner(self, ctx: CallerContext, owner: str) -> List[Listing]:
        """Owners and admins see all of an owner's listings; others only the approved ones."""
        listings = await self.listings.list_by_owner(owner)
        if ctx.principal == owner:
            return listings
        role = await self.gate.resolver.resolve_role(ctx.principal)
        if role == UserRole.ADMIN:
            return listings
        return [listing for listing in listings if listing.status == ListingStatus.APPROVED]

    async def get_listing_photos(self, listing_id: int) -> List[Dict]:
        listing = await self.listings.get(listing_id)
        return listing.photos

    async def get_listing_facilities(self, listing_id: int) -> List[Facility]:
        listing = await self.listings.get(listing_id)
        return [Facility(value) for value in listing.facilities]

    async def get_property_type_counts(self) -> Dict[str, int]:
        return await self.listings.count_by_property_type()

    async def get_listing_locations(self) -> List[str]:
        return await self.listings.locations()

    @transactional
    async def approve_listing(self, ctx: CallerContext, listing_id: int) -> Listing:
        """Approve a pending listing. Approving twice fails the second time."""
        await self.gate.require(ctx, UserRole.ADMIN)
        listing = await self.listings.get(listing_id)
        if listing.status != ListingStatus.PENDING:
            raise InvalidStateError(
                f"Listing {listing_id} is {listing.status.value}, only pending listings can be approved"
            )

        changed = await self.listings.set_status(
            listing_id, ListingStatus.APPROVED, expected=ListingStatus.PENDING
        )
        if not changed:
            raise InvalidStateError(f"Listing {listing_id} was reviewed concurrently")

        self.audit.record(
            AuditAction.LISTING_APPROVED,
            actor_principal=ctx.principal,
            entity_type="listing",
            entity_id=listing_id,
        )
        logger.info(f"Listing {listing_id} approved by {ctx.principal}")
        return listing

    @transactional
    async def reject_listing(self, ctx: CallerContext, listing_id: int, reason: str) -> Listing:
        """Reject a pending listing with a mandatory reason."""
        await self.gate.require(ctx, UserRole.ADMIN)
        listing = await self.listings.get(listing_id)
        if listing.status != ListingStatus.PENDING:
            raise InvalidStateError(
                f"Listing {listing_id} is {listing.status.value}, only pending listings can be rejected"
            )

        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")

        changed = await self.listings.set_status(
            listing_id, ListingStatus.REJECTED, reason=reason, expected=ListingStatus.PENDING
        )
        if not changed:
            raise InvalidStateError(f"Listing {listing_id} was reviewed concurrently")

        self.audit.record(
            AuditAction.LISTING_REJECTED,
            actor_principal=ctx.principal,
            entity_type="listing",
            entity_id=listing_id,
            details={"reason": reason},
        )
        logger.info(f"Listing {listing_id} rejected by {ctx.principal}: {reason}")
        return listing

    @transactional
    async def upload_photo(self, ctx: CallerContext, listing_id: int, photo: PhotoRef) -> Listing:
        """
        Attach a photo to a listing that has not been reviewed yet.

        Once a listing is approved or rejected its photos change only through
        an edit request.
        """
        role = await self.gate.require(ctx, UserRole.OWNER, UserRole.ADMIN)
        listing = await self.listings.get(listing_id)
        if role != UserRole.ADMIN:
            self.gate.require_owner_of(ctx, listing)
        if listing.status != ListingStatus.PENDING:
            raise InvalidStateError(
                f"Listing {listing_id} has been reviewed; submit an edit request to change photos"
            )

        listing = await self.listings.add_photo(listing_id, photo.model_dump())
        self.audit.record(
            AuditAction.PHOTO_ADDED,
            actor_principal=ctx.principal,
            entity_type="listing",
            entity_id=listing_id,
            details={"blob_id": photo.blob_id},
        )
        logger.info(f"Photo {photo.blob_id} added to listing {listing_id}")
        return listing

    # Edit and delete requests

    @transactional
    async def submit_edit_request(
        self, ctx: CallerContext, listing_id: int, payload: ListingEditPayload
    ) -> ModerationRequest:
        """Propose a full replacement of a listing's fields for admin review."""
        await self.gate.require(ctx, UserRole.OWNER)
        listing = await self.listings.get(listing_id)
        # Ownership is checked before the pending-slot conflict
        self.gate.require_owner_of(ctx, listing)

        if payload.id != listing_id:
            raise ValidationError(
                f"Edited listing id {payload.id} does not match listing {listing_id}"
            )
        self._validate_listing(payload)

        request = await self.requests.submit_edit(listing_id, ctx.principal, listing_snapshot(payload))
        self.audit.record(
            AuditAction.EDIT_REQUEST_SUBMITTED,
            actor_principal=ctx.principal,
            entity_type="listing",
            entity_id=listing_id,
            details={"request_id": request.id},
        )
        logger.info(f"Edit request {request.id} submitted for listing {listing_id}")
        return request

    @transactional
    async def submit_delete_request(self, ctx: CallerContext, listing_id: int) -> ModerationRequest:
        """Ask an admin to remove a listing."""
        await self.gate.require(ctx, UserRole.OWNER)
        listing = await self.listings.get(listing_id)
        self.gate.require_owner_of(ctx, listing)

        request = await self.requests.submit_delete(listing_id, ctx.principal)
        self.audit.record(
            AuditAction.DELETE_REQUEST_SUBMITTED,
            actor_principal=ctx.principal,
            entity_type="listing",
            entity_id=listing_id,
            details={"request_id": request.id},
        )
        logger.info(f"Delete request {request.id} submitted for listing {listing_id}")
        return request

    async def get_all_edit_requests(self, ctx: CallerContext) -> List[ModerationRequest]:
        await self.gate.require(ctx, UserRole.ADMIN)
        return await self.requests.get_all(RequestKind.EDIT)

    async def get_all_delete_requests(self, ctx: CallerContext) -> List[ModerationRequest]:
        await self.gate.require(ctx, UserRole.ADMIN)
        return await self.requests.get_all(RequestKind.DELETE)

    async def get_my_requests(
        self, ctx: CallerContext, kind: Optional[RequestKind] = None
    ) -> List[ModerationRequest]:
        """Requests the caller has submitted."""
        if not ctx.is_authenticated:
            raise ForbiddenError("Sign in to see your requests")
        return await self.requests.list_for_owner(ctx.principal, kind)

    @transactional
    async def process_edit_request(
        self,
        ctx: CallerContext,
        listing_id: int,
        approved: bool,
        rejection_reason: Optional[str] = None,
    ) -> ModerationRequest:
        """
        Resolve the pending edit request of a listing.

        On approval the proposed mutable fields replace the live ones in the
        same transaction; the listing's status is left as it was. On rejection
        the listing is untouched and the reason is kept on the request.
        """
        await self.gate.require(ctx, UserRole.ADMIN)
        request = await self.requests.resolve(
            listing_id, RequestKind.EDIT, approved, rejection_reason
        )

        if approved:
            await self.listings.replace_fields(listing_id, request.edited_listing or {})
            action = AuditAction.EDIT_REQUEST_APPROVED
        else:
            action = AuditAction.EDIT_REQUEST_REJECTED

        self.audit.record(
            action,
            actor_principal=ctx.principal,
            entity_type="listing",
            entity_id=listing_id,
            details={"request_id": request.id, "reason": request.rejection_reason},
        )
        logger.info(
            f"Edit request {request.id} for listing {listing_id} "
            f"{'approved' if approved else 'rejected'} by {ctx.principal}"
        )
        return request

    @transactional
    async def process_delete_request(
        self,
        ctx: CallerContext,
        listing_id: int,
        approved: bool,
        rejection_reason: Optional[str] = None,
    ) -> ModerationRequest:
        """
        Resolve the pending delete request of a listing.

        On approval the listing is removed permanently. Its photo blobs are
        left for the blob service to reclaim and past requests are kept.
        """
        await self.gate.require(ctx, UserRole.ADMIN)
        request = await self.requests.resolve(
            listing_id, RequestKind.DELETE, approved, rejection_reason
        )

        if approved:
            await self.listings.delete(listing_id)
            action = AuditAction.DELETE_REQUEST_APPROVED
        else:
            action = AuditAction.DELETE_REQUEST_REJECTED

        self.audit.record(
            action,
            actor_principal=ctx.principal,
            entity_type="listing",
            entity_id=listing_id,
            details={"request_id": request.id, "reason": request.rejection_reason},
        )
        logger.info(
            f"Delete request {request.id} for listing {listing_id} "
            f"{'approved' if approved else 'rejected'} by {ctx.principal}"
        )
        return request
