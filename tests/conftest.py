import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("TESTING", "true")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from app.main import app
from app.core.security import create_access_token
from app.db.session import get_session
from app.models.listing import PropertyType, RentalDuration
from app.models.user import UserProfile, UserRole
from app.schemas.listing import ListingEditPayload, ListingInput
from app.services.access_control import CallerContext
from app.services.error_handler import error_handler


@pytest.fixture(name="session")
def session_fixture():
    """Create a test database session."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Create a test client with database session dependency override."""
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
    error_handler.clear_error_history()


def _make_profile(session: Session, principal: str, name: str, role: UserRole) -> UserProfile:
    profile = UserProfile(principal=principal, name=name, role=role)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture(name="owner")
def owner_fixture(session: Session):
    """A saved owner profile."""
    return _make_profile(session, "owner-1", "Budi", UserRole.OWNER)


@pytest.fixture(name="other_owner")
def other_owner_fixture(session: Session):
    return _make_profile(session, "owner-2", "Sari", UserRole.OWNER)


@pytest.fixture(name="admin")
def admin_fixture(session: Session):
    """A saved admin profile."""
    return _make_profile(session, "admin-1", "Admin", UserRole.ADMIN)


@pytest.fixture(name="owner_ctx")
def owner_ctx_fixture(owner: UserProfile):
    return CallerContext(principal=owner.principal)


@pytest.fixture(name="other_owner_ctx")
def other_owner_ctx_fixture(other_owner: UserProfile):
    return CallerContext(principal=other_owner.principal)


@pytest.fixture(name="admin_ctx")
def admin_ctx_fixture(admin: UserProfile):
    return CallerContext(principal=admin.principal)


def bearer_headers(principal: str):
    """Authorization headers for a principal, as the identity provider would issue them."""
    token = create_access_token({"sub": principal})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="owner_headers")
def owner_headers_fixture(owner: UserProfile):
    return bearer_headers(owner.principal)


@pytest.fixture(name="other_owner_headers")
def other_owner_headers_fixture(other_owner: UserProfile):
    return bearer_headers(other_owner.principal)


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(admin: UserProfile):
    return bearer_headers(admin.principal)


@pytest.fixture(name="listing_input")
def listing_input_fixture():
    """A valid kos listing."""
    return ListingInput(
        title="Kos Putri Dekat Kampus",
        description="Kamar bersih, dekat kampus",
        location="Depok",
        price=1_500_000,
        property_type=PropertyType.KOS,
        facilities=["wifi", "parking"],
        rental_durations=[RentalDuration.MONTHLY],
    )


@pytest.fixture(name="listing_json")
def listing_json_fixture(listing_input: ListingInput):
    return listing_input.model_dump(mode="json")


def edit_payload(listing_id: int, **changes) -> ListingEditPayload:
    """A full replacement listing for an edit request."""
    data = {
        "id": listing_id,
        "title": "Kos Putri Renovasi",
        "description": "Baru direnovasi",
        "location": "Depok",
        "price": 1_750_000,
        "property_type": PropertyType.KOS,
        "facilities": ["wifi", "airConditioning"],
        "rental_durations": [RentalDuration.MONTHLY, RentalDuration.YEARLY],
        "photos": [],
    }
    data.update(changes)
    return ListingEditPayload(**data)


@pytest.fixture(name="make_headers")
def make_headers_fixture():
    return bearer_headers


@pytest.fixture(name="make_edit_payload")
def make_edit_payload_fixture():
    return edit_payload
