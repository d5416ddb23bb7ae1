import pytest
from sqlmodel import Session, select

from app.models.audit_log import AuditAction, AuditLog
from app.models.listing import Listing, ListingStatus
from app.models.moderation import RequestKind, RequestStatus
from app.schemas.listing import PhotoRef
from app.services.access_control import CallerContext
from app.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    ValidationError,
    NotFoundError,
)
from app.services.workflow_service import ModerationWorkflowService


@pytest.fixture
def service(session: Session):
    return ModerationWorkflowService(session)


def _snapshot(listing):
    return {field: getattr(listing, field) for field in Listing.model_fields}


@pytest.fixture
def photo():
    return PhotoRef(blob_id="blob-1", url="https://blobs/blob-1", content_type="image/jpeg", size_bytes=2048)


@pytest.mark.asyncio
async def test_full_lifecycle(service, owner_ctx, admin_ctx, listing_input, make_edit_payload):
    listing = await service.create_listing(owner_ctx, listing_input)
    assert listing.status == ListingStatus.PENDING

    listing = await service.approve_listing(admin_ctx, listing.id)
    assert listing.status == ListingStatus.APPROVED
    created_at = listing.created_at

    payload = make_edit_payload(listing.id, title=listing_input.title, price=2_000_000,
                                facilities=["wifi", "parking"], rental_durations=["monthly"])
    request = await service.submit_edit_request(owner_ctx, listing.id, payload)
    assert request.status == RequestStatus.PENDING
    assert (await service.get_listing(listing.id)).price == 1_500_000

    await service.process_edit_request(admin_ctx, listing.id, approved=True)
    listing = await service.get_listing(listing.id)
    assert listing.price == 2_000_000
    assert listing.status == ListingStatus.APPROVED
    assert listing.owner == owner_ctx.principal
    assert listing.created_at == created_at

    before = _snapshot(listing)
    await service.submit_delete_request(owner_ctx, listing.id)
    delete_request = await service.process_delete_request(
        admin_ctx, listing.id, approved=False, rejection_reason="insufficient justification"
    )
    assert delete_request.status == RequestStatus.REJECTED
    assert delete_request.rejection_reason == "insufficient justification"
    assert _snapshot(await service.get_listing(listing.id)) == before


@pytest.mark.asyncio
async def test_non_owner_is_forbidden_before_conflict(
    service, owner_ctx, other_owner_ctx, admin_ctx, listing_input, make_edit_payload
):
    listing = await service.create_listing(owner_ctx, listing_input)
    await service.approve_listing(admin_ctx, listing.id)
    await service.submit_edit_request(owner_ctx, listing.id, make_edit_payload(listing.id))

    with pytest.raises(ForbiddenError):
        await service.submit_edit_request(other_owner_ctx, listing.id, make_edit_payload(listing.id))
    with pytest.raises(ConflictError):
        await service.submit_edit_request(owner_ctx, listing.id, make_edit_payload(listing.id))


@pytest.mark.asyncio
async def test_admin_cannot_file_requests(service, owner_ctx, admin_ctx, listing_input):
    listing = await service.create_listing(owner_ctx, listing_input)

    with pytest.raises(ForbiddenError):
        await service.submit_delete_request(admin_ctx, listing.id)


@pytest.mark.asyncio
async def test_guest_cannot_create(service, listing_input):
    with pytest.raises(ForbiddenError):
        await service.create_listing(CallerContext(principal="no-profile"), listing_input)


@pytest.mark.asyncio
async def test_admin_created_listing_still_needs_approval(service, admin_ctx, listing_input):
    listing = await service.create_listing(admin_ctx, listing_input)
    assert listing.status == ListingStatus.PENDING


@pytest.mark.asyncio
async def test_create_requires_rental_duration(service, owner_ctx, listing_input):
    listing_input.rental_durations = []
    with pytest.raises(ValidationError):
        await service.create_listing(owner_ctx, listing_input)


@pytest.mark.asyncio
async def test_approving_twice_fails(service, owner_ctx, admin_ctx, listing_input):
    listing = await service.create_listing(owner_ctx, listing_input)
    await service.approve_listing(admin_ctx, listing.id)

    with pytest.raises(InvalidStateError):
        await service.approve_listing(admin_ctx, listing.id)


@pytest.mark.asyncio
async def test_owner_cannot_approve(service, owner_ctx, listing_input):
    listing = await service.create_listing(owner_ctx, listing_input)

    with pytest.raises(ForbiddenError):
        await service.approve_listing(owner_ctx, listing.id)
    assert (await service.get_listing(listing.id)).status == ListingStatus.PENDING


@pytest.mark.asyncio
async def test_reject_listing_keeps_reason(service, owner_ctx, admin_ctx, listing_input):
    listing = await service.create_listing(owner_ctx, listing_input)

    with pytest.raises(ValidationError):
        await service.reject_listing(admin_ctx, listing.id, "")

    listing = await service.reject_listing(admin_ctx, listing.id, "Missing photos")
    assert listing.status == ListingStatus.REJECTED
    assert listing.rejection_reason == "Missing photos"

    with pytest.raises(InvalidStateError):
        await service.approve_listing(admin_ctx, listing.id)


@pytest.mark.asyncio
async def test_edit_payload_validation(service, owner_ctx, admin_ctx, listing_input, make_edit_payload):
    listing = await service.create_listing(owner_ctx, listing_input)

    with pytest.raises(ValidationError):
        await service.submit_edit_request(owner_ctx, listing.id, make_edit_payload(listing.id + 1))
    with pytest.raises(ValidationError):
        await service.submit_edit_request(owner_ctx, listing.id, make_edit_payload(listing.id, rental_durations=[]))
    assert await service.get_my_requests(owner_ctx) == []


@pytest.mark.asyncio
async def test_rejected_edit_leaves_listing_untouched(
    service, owner_ctx, admin_ctx, listing_input, make_edit_payload
):
    listing = await service.create_listing(owner_ctx, listing_input)
    before = _snapshot(listing)
    await service.submit_edit_request(owner_ctx, listing.id, make_edit_payload(listing.id))

    request = await service.process_edit_request(
        admin_ctx, listing.id, approved=False, rejection_reason="Price too high"
    )

    assert request.status == RequestStatus.REJECTED
    assert _snapshot(await service.get_listing(listing.id)) == before


@pytest.mark.asyncio
async def test_approved_delete_removes_listing(service, owner_ctx, admin_ctx, listing_input):
    listing = await service.create_listing(owner_ctx, listing_input)
    await service.submit_delete_request(owner_ctx, listing.id)

    request = await service.process_delete_request(admin_ctx, listing.id, approved=True)

    assert request.status == RequestStatus.APPROVED
    with pytest.raises(NotFoundError):
        await service.get_listing(listing.id)
    # The resolved request outlives the listing
    assert [r.id for r in await service.get_all_delete_requests(admin_ctx)] == [request.id]


@pytest.mark.asyncio
async def test_processing_without_pending_request(service, owner_ctx, admin_ctx, listing_input):
    listing = await service.create_listing(owner_ctx, listing_input)

    with pytest.raises(InvalidStateError):
        await service.process_edit_request(admin_ctx, listing.id, approved=True)


@pytest.mark.asyncio
async def test_edit_of_deleted_listing_stays_pending(
    service, owner_ctx, admin_ctx, listing_input, make_edit_payload
):
    listing = await service.create_listing(owner_ctx, listing_input)
    await service.submit_edit_request(owner_ctx, listing.id, make_edit_payload(listing.id))
    await service.submit_delete_request(owner_ctx, listing.id)
    await service.process_delete_request(admin_ctx, listing.id, approved=True)

    with pytest.raises(NotFoundError):
        await service.process_edit_request(admin_ctx, listing.id, approved=True)
    assert await service.requests.get_pending(listing.id, RequestKind.EDIT) is not None


@pytest.mark.asyncio
async def test_upload_photo_rules(service, owner_ctx, other_owner_ctx, admin_ctx, listing_input, photo):
    listing = await service.create_listing(owner_ctx, listing_input)

    with pytest.raises(ForbiddenError):
        await service.upload_photo(other_owner_ctx, listing.id, photo)

    listing = await service.upload_photo(owner_ctx, listing.id, photo)
    assert [p["blob_id"] for p in await service.get_listing_photos(listing.id)] == ["blob-1"]

    await service.approve_listing(admin_ctx, listing.id)
    with pytest.raises(InvalidStateError):
        await service.upload_photo(owner_ctx, listing.id, photo)


@pytest.mark.asyncio
async def test_visibility_of_listings(service, owner_ctx, other_owner_ctx, admin_ctx, listing_input):
    pending = await service.create_listing(owner_ctx, listing_input)
    approved = await service.create_listing(owner_ctx, listing_input)
    await service.approve_listing(admin_ctx, approved.id)

    guest = CallerContext()
    assert [l.id for l in await service.get_all_listings(guest)] == [approved.id]
    assert [l.id for l in await service.get_all_listings(other_owner_ctx, ListingStatus.PENDING)] == [approved.id]
    assert {l.id for l in await service.get_all_listings(admin_ctx)} == {pending.id, approved.id}
    assert [l.id for l in await service.get_all_listings(admin_ctx, ListingStatus.PENDING)] == [pending.id]

    assert len(await service.get_listings_by_owner(owner_ctx, owner_ctx.principal)) == 2
    assert [l.id for l in await service.get_listings_by_owner(guest, owner_ctx.principal)] == [approved.id]
    assert len(await service.get_listings_by_owner(admin_ctx, owner_ctx.principal)) == 2


@pytest.mark.asyncio
async def test_transitions_are_audited(session: Session, service, owner_ctx, admin_ctx, listing_input):
    listing = await service.create_listing(owner_ctx, listing_input)
    await service.approve_listing(admin_ctx, listing.id)

    with pytest.raises(InvalidStateError):
        await service.approve_listing(admin_ctx, listing.id)

    actions = [log.action for log in session.exec(select(AuditLog).order_by(AuditLog.id)).all()]
    assert actions == [AuditAction.LISTING_CREATED, AuditAction.LISTING_APPROVED]


@pytest.mark.asyncio
async def test_my_requests_need_sign_in(service):
    with pytest.raises(ForbiddenError):
        await service.get_my_requests(CallerContext())
