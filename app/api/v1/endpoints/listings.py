from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlmodel import Session

from app.api.v1.endpoints.users import get_authenticated_caller, get_caller
from app.core.config import settings
from app.core.rate_limit import limiter
from app.db.session import get_session
from app.models.listing import Facility, ListingStatus
from app.schemas.listing import (
    ListingInput,
    ListingRead,
    ListingRejectSchema,
    PhotoRef,
    PropertyTypeCountsSchema,
    StatusRead,
    status_view,
)
from app.services.access_control import CallerContext
from app.services.workflow_service import ModerationWorkflowService

router = APIRouter()


def get_workflow_service(db: Session = Depends(get_session)) -> ModerationWorkflowService:
    return ModerationWorkflowService(db)


@router.post("/", response_model=ListingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.moderation_rate_limit)
async def create_listing(
    request: Request,
    listing_data: ListingInput,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """
    Create a listing owned by the caller.

    New listings always start pending and stay invisible to guests until an
    admin approves them.
    """
    listing = await service.create_listing(caller, listing_data)
    return ListingRead.from_listing(listing)


@router.get("/", response_model=List[ListingRead])
async def list_listings(
    status_filter: Optional[ListingStatus] = Query(
        None, alias="status", description="Filter by status (admins only)"
    ),
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """List listings. Admins see every status; everyone else sees approved ones."""
    listings = await service.get_all_listings(caller, status_filter)
    return [ListingRead.from_listing(listing) for listing in listings]


@router.get("/mine", response_model=List[ListingRead])
async def list_my_listings(
    caller: CallerContext = Depends(get_authenticated_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """List the caller's own listings in every status."""
    listings = await service.get_listings_by_owner(caller, caller.principal)
    return [ListingRead.from_listing(listing) for listing in listings]


@router.get("/owner/{owner}", response_model=List[ListingRead])
async def list_listings_by_owner(
    owner: str,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    listings = await service.get_listings_by_owner(caller, owner)
    return [ListingRead.from_listing(listing) for listing in listings]


@router.get("/stats/property-types", response_model=PropertyTypeCountsSchema)
async def count_listings_by_property_type(
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """Count approved listings per property type."""
    return PropertyTypeCountsSchema(**await service.get_property_type_counts())


@router.get("/stats/locations", response_model=List[str])
async def list_listing_locations(
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """Distinct locations of approved listings."""
    return await service.get_listing_locations()


@router.get("/{listing_id}", response_model=ListingRead)
async def get_listing(
    listing_id: int,
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    listing = await service.get_listing(listing_id)
    return ListingRead.from_listing(listing)


@router.get("/{listing_id}/status", response_model=StatusRead)
async def get_listing_status(
    listing_id: int,
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    listing = await service.get_listing(listing_id)
    return status_view(listing.status, listing.rejection_reason)


@router.get("/{listing_id}/photos", response_model=List[PhotoRef])
async def get_listing_photos(
    listing_id: int,
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    return await service.get_listing_photos(listing_id)


@router.get("/{listing_id}/facilities", response_model=List[Facility])
async def get_listing_facilities(
    listing_id: int,
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    return await service.get_listing_facilities(listing_id)


@router.post("/{listing_id}/photos", response_model=ListingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.moderation_rate_limit)
async def upload_listing_photo(
    request: Request,
    listing_id: int,
    photo: PhotoRef,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """
    Attach an uploaded photo to a pending listing.

    The image itself lives in the blob service; only its reference is stored.
    """
    listing = await service.upload_photo(caller, listing_id, photo)
    return ListingRead.from_listing(listing)


@router.post("/{listing_id}/approve", response_model=ListingRead)
async def approve_listing(
    listing_id: int,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """Approve a pending listing (admin only)."""
    listing = await service.approve_listing(caller, listing_id)
    return ListingRead.from_listing(listing)


@router.post("/{listing_id}/reject", response_model=ListingRead)
async def reject_listing(
    listing_id: int,
    reject_data: ListingRejectSchema,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """Reject a pending listing with a reason (admin only)."""
    listing = await service.reject_listing(caller, listing_id, reject_data.reason)
    return ListingRead.from_listing(listing)
