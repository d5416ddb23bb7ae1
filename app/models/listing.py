import enum
from typing import Any, Dict, List, Optional
from datetime import datetime

from sqlalchemy import Column, JSON, String
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel


class IntegerString(TypeDecorator):
    """Arbitrary-precision integer kept as its decimal text."""
    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class PropertyType(str, enum.Enum):
    KOS = "kos"
    KONTRAKAN = "kontrakan"


class Facility(str, enum.Enum):
    WIFI = "wifi"
    SHARED_BATHROOM = "sharedBathroom"
    FURNITURE = "furniture"
    PARKING = "parking"
    AIR_CONDITIONING = "airConditioning"
    LAUNDRY = "laundry"


class RentalDuration(str, enum.Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ListingStatus(str, enum.Enum):
    """Publication status of a listing."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Fields an approved edit request may replace on the live listing
MUTABLE_LISTING_FIELDS = (
    "title",
    "description",
    "location",
    "price",
    "property_type",
    "facilities",
    "rental_durations",
    "photos",
)


class Listing(SQLModel, table=True):
    """A rentable property record with a moderation status."""
    __tablename__ = "listings"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner: str = Field(index=True, max_length=255)
    title: str = Field(max_length=200)
    description: str = Field(default="")
    location: str = Field(index=True, max_length=255)
    # Smallest currency unit (Rupiah), never a float
    price: int = Field(sa_column=Column(IntegerString, nullable=False))
    property_type: PropertyType
    facilities: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    rental_durations: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    photos: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    status: ListingStatus = Field(default=ListingStatus.PENDING, index=True)
    # Present iff status is rejected
    rejection_reason: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
