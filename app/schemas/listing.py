"""
Listing-related Pydantic schemas for API request/response serialization.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from app.models.listing import (
    Facility,
    Listing,
    PropertyType,
    RentalDuration,
)

ALLOWED_PHOTO_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
MAX_PHOTO_SIZE = 5 * 1024 * 1024  # 5MB


class PhotoRef(BaseModel):
    """Opaque reference to a photo held by the blob service."""
    blob_id: str = Field(..., min_length=1, max_length=255, description="Content address of the blob")
    url: str = Field(..., min_length=1, description="Retrievable URL of the blob")
    content_type: str = Field(..., description="MIME type of the image")
    size_bytes: int = Field(..., ge=0, le=MAX_PHOTO_SIZE)

    @field_validator("content_type")
    @classmethod
    def check_content_type(cls, value: str) -> str:
        if value.lower() not in ALLOWED_PHOTO_TYPES:
            raise ValueError("Only JPEG, PNG, and WebP images are allowed")
        return value.lower()


class ListingInput(BaseModel):
    """Fields an owner supplies when creating a listing."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    location: str = Field(..., min_length=1, max_length=255)
    price: int = Field(..., ge=0, description="Price in the smallest currency unit (Rupiah)")
    property_type: PropertyType
    facilities: List[Facility] = Field(default_factory=list)
    # Emptiness is checked by the workflow so it surfaces as a validation_error
    rental_durations: List[RentalDuration] = Field(default_factory=list)
    photos: List[PhotoRef] = Field(default_factory=list)


class ListingEditPayload(ListingInput):
    """Full proposed replacement for a live listing."""
    id: int


class PendingStatus(BaseModel):
    kind: Literal["pending"] = "pending"


class ApprovedStatus(BaseModel):
    kind: Literal["approved"] = "approved"


class RejectedStatus(BaseModel):
    kind: Literal["rejected"] = "rejected"
    reason: str


StatusRead = Annotated[
    Union[PendingStatus, ApprovedStatus, RejectedStatus],
    Field(discriminator="kind"),
]


def status_view(status: str, reason: Optional[str]) -> Union[PendingStatus, ApprovedStatus, RejectedStatus]:
    """Fold a stored status and optional reason into a tagged status."""
    if status == "approved":
        return ApprovedStatus()
    if status == "rejected":
        return RejectedStatus(reason=reason or "")
    return PendingStatus()


class ListingRead(BaseModel):
    id: int
    owner: str
    title: str
    description: str
    location: str
    price: int
    property_type: PropertyType
    facilities: List[Facility]
    rental_durations: List[RentalDuration]
    photos: List[PhotoRef]
    status: StatusRead
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingRead":
        return cls(
            id=listing.id,
            owner=listing.owner,
            title=listing.title,
            description=listing.description,
            location=listing.location,
            price=listing.price,
            property_type=listing.property_type,
            facilities=listing.facilities,
            rental_durations=listing.rental_durations,
            photos=listing.photos,
            status=status_view(listing.status, listing.rejection_reason),
            created_at=listing.created_at,
            updated_at=listing.updated_at,
        )


class ListingRejectSchema(BaseModel):
    """Schema for rejecting a pending listing."""
    reason: str


class PropertyTypeCountsSchema(BaseModel):
    kos: int
    kontrakan: int


def listing_snapshot(payload: ListingEditPayload) -> Dict[str, Any]:
    """JSON-safe copy of a proposed listing, as stored on an edit request."""
    return payload.model_dump(mode="json")
