from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from app.api.v1.endpoints.listings import get_workflow_service
from app.api.v1.endpoints.users import get_authenticated_caller, get_caller
from app.core.config import settings
from app.core.rate_limit import limiter
from app.models.moderation import RequestKind
from app.schemas.listing import ListingEditPayload
from app.schemas.moderation import (
    DeleteRequestRead,
    EditRequestRead,
    OwnerRequestRead,
    ProcessRequestSchema,
)
from app.services.access_control import CallerContext
from app.services.workflow_service import ModerationWorkflowService

router = APIRouter()


@router.post(
    "/listings/{listing_id}/edit-request",
    response_model=EditRequestRead,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.moderation_rate_limit)
async def submit_edit_request(
    request: Request,
    listing_id: int,
    edited_listing: ListingEditPayload,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """
    Propose new content for one of the caller's listings.

    The body is the complete replacement listing and its ``id`` must match
    the path. Only one edit request per listing may be pending at a time.
    """
    moderation_request = await service.submit_edit_request(caller, listing_id, edited_listing)
    return EditRequestRead.from_request(moderation_request)


@router.post(
    "/listings/{listing_id}/delete-request",
    response_model=DeleteRequestRead,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.moderation_rate_limit)
async def submit_delete_request(
    request: Request,
    listing_id: int,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """Ask an admin to remove one of the caller's listings."""
    moderation_request = await service.submit_delete_request(caller, listing_id)
    return DeleteRequestRead.from_request(moderation_request)


@router.get("/edit-requests", response_model=List[EditRequestRead])
async def list_edit_requests(
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """All edit requests, pending and resolved (admin only)."""
    requests = await service.get_all_edit_requests(caller)
    return [EditRequestRead.from_request(r) for r in requests]


@router.get("/delete-requests", response_model=List[DeleteRequestRead])
async def list_delete_requests(
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """All delete requests, pending and resolved (admin only)."""
    requests = await service.get_all_delete_requests(caller)
    return [DeleteRequestRead.from_request(r) for r in requests]


@router.get("/requests/mine", response_model=List[OwnerRequestRead])
async def list_my_requests(
    kind: Optional[RequestKind] = Query(None, description="Only edit or only delete requests"),
    caller: CallerContext = Depends(get_authenticated_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    requests = await service.get_my_requests(caller, kind)
    return [OwnerRequestRead.from_request(r) for r in requests]


@router.post("/edit-requests/{listing_id}/process", response_model=EditRequestRead)
async def process_edit_request(
    listing_id: int,
    decision: ProcessRequestSchema,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """
    Approve or reject the pending edit request of a listing (admin only).

    Approval applies the proposed content to the live listing; a rejection
    needs a reason.
    """
    moderation_request = await service.process_edit_request(
        caller, listing_id, decision.approved, decision.rejection_reason
    )
    return EditRequestRead.from_request(moderation_request)


@router.post("/delete-requests/{listing_id}/process", response_model=DeleteRequestRead)
async def process_delete_request(
    listing_id: int,
    decision: ProcessRequestSchema,
    caller: CallerContext = Depends(get_caller),
    service: ModerationWorkflowService = Depends(get_workflow_service),
):
    """Approve (removing the listing) or reject a pending delete request (admin only)."""
    moderation_request = await service.process_delete_request(
        caller, listing_id, decision.approved, decision.rejection_reason
    )
    return DeleteRequestRead.from_request(moderation_request)
