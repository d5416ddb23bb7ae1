import pytest
from unittest.mock import AsyncMock, patch
from sqlmodel import Session

from app.models.moderation import ModerationRequest, RequestKind, RequestStatus
from app.services.errors import ConflictError, InvalidStateError, ValidationError
from app.services.moderation_store import ModerationRequestStore


@pytest.fixture
def store(session: Session):
    return ModerationRequestStore(session)


@pytest.fixture
def snapshot(make_edit_payload):
    return make_edit_payload(1).model_dump(mode="json")


@pytest.mark.asyncio
async def test_submit_edit_creates_pending_request(store: ModerationRequestStore, snapshot):
    request = await store.submit_edit(1, "owner-1", snapshot)

    assert request.kind == RequestKind.EDIT
    assert request.status == RequestStatus.PENDING
    assert request.pending_key == "1:edit"
    assert request.edited_listing["price"] == 1_750_000
    assert (await store.get_pending(1, RequestKind.EDIT)).id == request.id


@pytest.mark.asyncio
async def test_edit_payload_must_target_listing(store: ModerationRequestStore, snapshot):
    with pytest.raises(ValidationError):
        await store.submit_edit(2, "owner-1", snapshot)


@pytest.mark.asyncio
async def test_second_pending_request_conflicts(store: ModerationRequestStore, snapshot):
    await store.submit_edit(1, "owner-1", snapshot)

    with pytest.raises(ConflictError):
        await store.submit_edit(1, "owner-1", snapshot)


@pytest.mark.asyncio
async def test_edit_and_delete_slots_are_independent(store: ModerationRequestStore, snapshot):
    await store.submit_edit(1, "owner-1", snapshot)
    delete_request = await store.submit_delete(1, "owner-1")

    assert delete_request.edited_listing is None
    assert delete_request.pending_key == "1:delete"


@pytest.mark.asyncio
async def test_racing_insert_is_refused_by_unique_key(session: Session, store: ModerationRequestStore):
    """A submitter whose lookup missed a concurrent insert still gets a conflict."""
    session.add(ModerationRequest(
        kind=RequestKind.DELETE, listing_id=1, owner="owner-1", pending_key="1:delete"
    ))
    session.commit()

    with patch.object(store, "get_pending", AsyncMock(return_value=None)):
        with pytest.raises(ConflictError):
            await store.submit_delete(1, "owner-1")


@pytest.mark.asyncio
async def test_resolve_frees_the_pending_slot(store: ModerationRequestStore):
    first = await store.submit_delete(1, "owner-1")
    resolved = await store.resolve(1, RequestKind.DELETE, approved=False, rejection_reason="keep it")

    assert resolved.id == first.id
    assert resolved.status == RequestStatus.REJECTED
    assert resolved.rejection_reason == "keep it"
    assert resolved.reviewed_at is not None
    assert resolved.pending_key is None

    # History is kept and a new request may be filed
    second = await store.submit_delete(1, "owner-1")
    assert second.id != first.id
    assert len(await store.get_all(RequestKind.DELETE)) == 2


@pytest.mark.asyncio
async def test_approval_drops_any_reason(store: ModerationRequestStore):
    await store.submit_delete(1, "owner-1")
    resolved = await store.resolve(1, RequestKind.DELETE, approved=True, rejection_reason="unused")

    assert resolved.status == RequestStatus.APPROVED
    assert resolved.rejection_reason is None


@pytest.mark.asyncio
async def test_rejection_requires_reason(store: ModerationRequestStore):
    await store.submit_delete(1, "owner-1")

    with pytest.raises(ValidationError):
        await store.resolve(1, RequestKind.DELETE, approved=False, rejection_reason="  ")
    assert (await store.get_pending(1, RequestKind.DELETE)) is not None


@pytest.mark.asyncio
async def test_resolving_twice_is_invalid(store: ModerationRequestStore):
    await store.submit_delete(1, "owner-1")
    await store.resolve(1, RequestKind.DELETE, approved=True)

    with pytest.raises(InvalidStateError):
        await store.resolve(1, RequestKind.DELETE, approved=True)


@pytest.mark.asyncio
async def test_list_for_owner_filters_by_kind(store: ModerationRequestStore, snapshot):
    await store.submit_edit(1, "owner-1", snapshot)
    await store.submit_delete(1, "owner-1")
    await store.submit_delete(2, "owner-2")

    assert len(await store.list_for_owner("owner-1")) == 2
    only_deletes = await store.list_for_owner("owner-1", RequestKind.DELETE)
    assert [r.kind for r in only_deletes] == [RequestKind.DELETE]
