from typing import Optional

from sqlmodel import Session

from app.models.user import UserProfile, UserRole


class RoleResolver:
    """Maps a caller's principal to exactly one role."""

    def __init__(self, db: Session):
        self.db = db

    async def resolve_role(self, principal: Optional[str]) -> UserRole:
        """
        Resolve the caller's current role.

        Unauthenticated callers and authenticated callers that have not saved
        a profile yet are guests.
        """
        if not principal:
            return UserRole.GUEST

        # Re-read so a role assigned after the session started is honoured
        profile = self.db.get(UserProfile, principal, populate_existing=True)
        if profile is None:
            return UserRole.GUEST
        return profile.role
