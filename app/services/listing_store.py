"""
Listing Store

Owns listing records and their publication status. Writes are flushed but
never committed here; the workflow service commits each operation as one
transaction.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlmodel import Session, select, func, desc

from app.models.listing import (
    Listing,
    ListingStatus,
    MUTABLE_LISTING_FIELDS,
    PropertyType,
)
from app.services.errors import NotFoundError

logger = logging.getLogger(__name__)


def _unique(values: List[Any]) -> List[str]:
    """Drop duplicates from an enum list, keeping first-seen order."""
    seen: List[str] = []
    for value in values:
        raw = getattr(value, "value", value)
        if raw not in seen:
            seen.append(raw)
    return seen


def normalize_listing_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce a mutable-field mapping into the shapes stored on a Listing."""
    normalized = {key: fields[key] for key in MUTABLE_LISTING_FIELDS if key in fields}
    if "property_type" in normalized:
        normalized["property_type"] = PropertyType(normalized["property_type"])
    if "facilities" in normalized:
        normalized["facilities"] = _unique(normalized["facilities"])
    if "rental_durations" in normalized:
        normalized["rental_durations"] = _unique(normalized["rental_durations"])
    if "photos" in normalized:
        normalized["photos"] = [
            photo.model_dump() if hasattr(photo, "model_dump") else dict(photo)
            for photo in normalized["photos"]
        ]
    return normalized


class ListingStore:
    """Service for reading and writing listing records."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _next_timestamp(previous: Optional[datetime]) -> datetime:
        """Current time, but never earlier than (or equal to) the previous stamp."""
        now = datetime.utcnow()
        if previous is not None and now <= previous:
            return previous + timedelta(microseconds=1)
        return now

    async def create(self, owner: str, fields: Dict[str, Any]) -> Listing:
        """Create a new listing in the pending state."""
        now = datetime.utcnow()
        listing = Listing(
            owner=owner,
            status=ListingStatus.PENDING,
            created_at=now,
            updated_at=now,
            **normalize_listing_fields(fields),
        )
        self.db.add(listing)
        self.db.flush()
        self.db.refresh(listing)
        return listing

    async def get(self, listing_id: int) -> Listing:
        """Get a listing by its ID, raising NotFoundError when absent."""
        listing = self.db.get(Listing, listing_id)
        if listing is None:
            raise NotFoundError(f"Listing {listing_id} not found")
        return listing

    async def list_all(self, status: Optional[ListingStatus] = None) -> List[Listing]:
        """Get all listings, optionally restricted to one status."""
        statement = select(Listing)
        if status is not None:
            statement = statement.where(Listing.status == status)
        statement = statement.order_by(desc(Listing.created_at), desc(Listing.id))
        return list(self.db.exec(statement).all())

    async def list_by_owner(self, owner: str) -> List[Listing]:
        """Get every listing belonging to an owner."""
        statement = (
            select(Listing)
            .where(Listing.owner == owner)
            .order_by(desc(Listing.created_at), desc(Listing.id))
        )
        return list(self.db.exec(statement).all())

    async def set_status(
        self,
        listing_id: int,
        new_status: ListingStatus,
        reason: Optional[str] = None,
        expected: Optional[ListingStatus] = None,
    ) -> bool:
        """
        Move a listing to a new status.

        When ``expected`` is given the write only applies if the stored status
        still equals it, so a concurrent transition is detected instead of
        being overwritten. Returns whether the row changed.
        """
        listing = await self.get(listing_id)
        statement = update(Listing).where(Listing.id == listing_id)
        if expected is not None:
            statement = statement.where(Listing.status == expected)
        statement = statement.values(
            status=new_status,
            rejection_reason=reason if new_status == ListingStatus.REJECTED else None,
            updated_at=self._next_timestamp(listing.updated_at),
        )
        result = self.db.exec(statement)
        self.db.refresh(listing)
        if result.rowcount != 1:
            logger.debug(f"Listing {listing_id} not moved to {new_status.value}: status was {listing.status.value}")
        return result.rowcount == 1

    async def replace_fields(self, listing_id: int, fields: Dict[str, Any]) -> Listing:
        """Replace a listing's mutable fields; id, owner, created_at and status stay."""
        listing = await self.get(listing_id)
        for key, value in normalize_listing_fields(fields).items():
            setattr(listing, key, value)
        listing.updated_at = self._next_timestamp(listing.updated_at)
        self.db.add(listing)
        self.db.flush()
        return listing

    async def add_photo(self, listing_id: int, photo: Dict[str, Any]) -> Listing:
        """Append a photo reference to a listing."""
        listing = await self.get(listing_id)
        # Reassign so the JSON column is flagged dirty
        listing.photos = [*listing.photos, dict(photo)]
        listing.updated_at = self._next_timestamp(listing.updated_at)
        self.db.add(listing)
        self.db.flush()
        return listing

    async def delete(self, listing_id: int) -> Listing:
        """Remove a listing permanently."""
        listing = await self.get(listing_id)
        self.db.delete(listing)
        self.db.flush()
        return listing

    async def count_by_property_type(self) -> Dict[str, int]:
        """Count approved listings per property type."""
        counts = {property_type.value: 0 for property_type in PropertyType}
        rows = self.db.exec(
            select(Listing.property_type, func.count(Listing.id))
            .where(Listing.status == ListingStatus.APPROVED)
            .group_by(Listing.property_type)
        ).all()
        for property_type, count in rows:
            counts[PropertyType(property_type).value] = count
        return counts

    async def locations(self) -> List[str]:
        """Distinct locations of approved listings, sorted."""
        rows = self.db.exec(
            select(Listing.location)
            .where(Listing.status == ListingStatus.APPROVED)
            .distinct()
        ).all()
        return sorted(rows)
