from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from app.core.config import settings
from app.core.rate_limit import limiter
from app.core.security import verify_token
from app.db.session import get_session
from app.models.user import UserRole
from app.schemas.user import (
    IsAdminResponseSchema,
    ProfileResponseSchema,
    ProfileSaveSchema,
    RoleAssignSchema,
    RoleResponseSchema,
)
from app.services.access_control import AccessControlGate, CallerContext
from app.services.profile_service import ProfileService

router = APIRouter()

# Tokens are issued by the external identity provider; a missing token means guest
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.token_url, auto_error=False)


async def get_caller(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> CallerContext:
    """Build the caller context for this request from the bearer token."""
    if not token:
        return CallerContext()

    payload = verify_token(token)
    principal: str = payload["sub"]
    request.state.principal = principal
    return CallerContext(principal=principal, request_id=request.headers.get("x-request-id"))


async def get_authenticated_caller(
    caller: CallerContext = Depends(get_caller),
) -> CallerContext:
    """Require a bearer token."""
    if not caller.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller


async def get_current_admin_caller(
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_session),
) -> CallerContext:
    """Require the admin role."""
    await AccessControlGate(db).require(caller, UserRole.ADMIN)
    return caller


def get_profile_service(db: Session = Depends(get_session)) -> ProfileService:
    return ProfileService(db)


@router.get("/me", response_model=Optional[ProfileResponseSchema])
async def read_my_profile(
    caller: CallerContext = Depends(get_caller),
    service: ProfileService = Depends(get_profile_service),
):
    """Get the caller's profile, or null before it has been saved."""
    profile = await service.get_caller_profile(caller)
    if profile is None:
        return None
    return ProfileResponseSchema.model_validate(profile)


@router.put("/me", response_model=ProfileResponseSchema)
@limiter.limit("10/minute")
async def save_my_profile(
    request: Request,
    profile_data: ProfileSaveSchema,
    caller: CallerContext = Depends(get_authenticated_caller),
    service: ProfileService = Depends(get_profile_service),
):
    """Create the caller's profile on first use, or update its name."""
    profile = await service.save_caller_profile(caller, profile_data.name, profile_data.role)
    return ProfileResponseSchema.model_validate(profile)


@router.get("/me/role", response_model=RoleResponseSchema)
async def read_my_role(
    caller: CallerContext = Depends(get_caller),
    service: ProfileService = Depends(get_profile_service),
):
    """Resolve the caller's current role."""
    return RoleResponseSchema(role=await service.resolve_caller_role(caller))


@router.get("/me/is-admin", response_model=IsAdminResponseSchema)
async def read_is_admin(
    caller: CallerContext = Depends(get_caller),
    service: ProfileService = Depends(get_profile_service),
):
    return IsAdminResponseSchema(is_admin=await service.is_caller_admin(caller))


@router.get("/users/{principal}", response_model=ProfileResponseSchema)
async def read_user_profile(
    principal: str,
    caller: CallerContext = Depends(get_authenticated_caller),
    service: ProfileService = Depends(get_profile_service),
):
    """Get a profile by principal. Callers may read their own; admins any."""
    profile = await service.get_profile(caller, principal)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return ProfileResponseSchema.model_validate(profile)


@router.put("/users/{principal}/role", response_model=ProfileResponseSchema)
async def assign_user_role(
    principal: str,
    role_data: RoleAssignSchema,
    caller: CallerContext = Depends(get_caller),
    service: ProfileService = Depends(get_profile_service),
):
    """Assign the owner or admin role to a principal. Admin only."""
    profile = await service.assign_role(caller, principal, role_data.role)
    return ProfileResponseSchema.model_validate(profile)
