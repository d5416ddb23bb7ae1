"""
User Profile Service

First-use profile creation and the administrative role assignment that sits
outside the moderation workflow.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from app.core.config import settings
from app.db.transaction import transactional
from app.models.audit_log import AuditAction
from app.models.user import UserProfile, UserRole
from app.services.access_control import AccessControlGate, CallerContext
from app.services.audit_service import AuditService
from app.services.errors import (
    ForbiddenError,
    ValidationError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class ProfileService:
    """Service for caller profiles and role assignment."""

    def __init__(self, db: Session, gate: Optional[AccessControlGate] = None):
        self.db = db
        self.settings = settings
        self.gate = gate or AccessControlGate(db)
        self.audit = AuditService(db)

    async def resolve_caller_role(self, ctx: CallerContext) -> UserRole:
        return await self.gate.resolver.resolve_role(ctx.principal)

    async def is_caller_admin(self, ctx: CallerContext) -> bool:
        return await self.resolve_caller_role(ctx) == UserRole.ADMIN

    async def get_caller_profile(self, ctx: CallerContext) -> Optional[UserProfile]:
        if not ctx.is_authenticated:
            return None
        return self.db.get(UserProfile, ctx.principal)

    async def get_profile(self, ctx: CallerContext, principal: str) -> Optional[UserProfile]:
        """Get another principal's profile; callers may read their own, admins any."""
        if ctx.principal != principal:
            await self.gate.require(ctx, UserRole.ADMIN)
        return self.db.get(UserProfile, principal)

    @transactional
    async def save_caller_profile(
        self, ctx: CallerContext, name: str, requested_role: UserRole = UserRole.OWNER
    ) -> UserProfile:
        """
        Create the caller's profile on first use, or rename it afterwards.

        New profiles are owners unless the principal is configured as a
        bootstrap admin; a self-requested admin role is otherwise ignored.
        An existing profile keeps its role.
        """
        if not ctx.is_authenticated:
            raise ForbiddenError("Sign in before saving a profile")

        name = (name or "").strip()
        if not name:
            raise ValidationError("Profile name is required")

        profile = self.db.get(UserProfile, ctx.principal)
        if profile is not None:
            profile.name = name
            profile.updated_at = datetime.utcnow()
            self.db.add(profile)
            self.db.flush()
            return profile

        if ctx.principal in self.settings.bootstrap_admin_principals:
            role = UserRole.ADMIN
        else:
            role = UserRole.OWNER
            if requested_role == UserRole.ADMIN:
                logger.warning(f"{ctx.principal} requested the admin role at sign-up; created as owner")

        profile = UserProfile(principal=ctx.principal, name=name, role=role)
        self.db.add(profile)
        self.db.flush()
        self.audit.record(
            AuditAction.PROFILE_CREATED,
            actor_principal=ctx.principal,
            entity_type="profile",
            entity_id=ctx.principal,
            details={"role": role.value},
        )
        logger.info(f"Profile created for {ctx.principal} with role {role.value}")
        return profile

    @transactional
    async def assign_role(self, ctx: CallerContext, principal: str, role: UserRole) -> UserProfile:
        """Change a principal's role. Admin only."""
        await self.gate.require(ctx, UserRole.ADMIN)
        if role == UserRole.GUEST:
            raise ValidationError("Profiles can only hold the owner or admin role")

        profile = self.db.get(UserProfile, principal)
        if profile is None:
            raise NotFoundError(f"No profile for {principal}")

        previous = profile.role
        profile.role = role
        profile.updated_at = datetime.utcnow()
        self.db.add(profile)
        self.db.flush()
        self.audit.record(
            AuditAction.ROLE_ASSIGNED,
            actor_principal=ctx.principal,
            entity_type="profile",
            entity_id=principal,
            details={"from": previous.value, "to": role.value},
        )
        logger.info(f"{ctx.principal} changed role of {principal} from {previous.value} to {role.value}")
        return profile
