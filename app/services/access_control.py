"""
Access Control Gate

Role checks performed in front of every mutating operation. The caller's role
is resolved at call time from the stored profile, never cached on the context.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlmodel import Session

from app.models.listing import Listing
from app.models.user import UserRole
from app.services.errors import ForbiddenError
from app.services.role_resolver import RoleResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerContext:
    """Identity of the caller, passed explicitly into every core operation."""
    principal: Optional[str] = None
    request_id: Optional[str] = field(default=None, compare=False)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.principal)


class AccessControlGate:
    """Rejects calls whose current role does not satisfy the operation."""

    def __init__(self, db: Session, resolver: Optional[RoleResolver] = None):
        self.db = db
        self.resolver = resolver or RoleResolver(db)

    async def require(self, ctx: CallerContext, *allowed: UserRole) -> UserRole:
        """Return the caller's role, or raise ForbiddenError if it is not allowed."""
        role = await self.resolver.resolve_role(ctx.principal)
        if role not in allowed:
            logger.warning(
                f"Denied {ctx.principal or 'anonymous'} with role {role.value}; "
                f"requires one of {[r.value for r in allowed]}"
            )
            raise ForbiddenError(
                f"Role '{role.value}' may not perform this operation"
            )
        return role

    def require_owner_of(self, ctx: CallerContext, listing: Listing) -> None:
        """Raise ForbiddenError unless the caller owns the listing."""
        if listing.owner != ctx.principal:
            logger.warning(f"Denied {ctx.principal}: not the owner of listing {listing.id}")
            raise ForbiddenError("Only the listing's owner may do this")
