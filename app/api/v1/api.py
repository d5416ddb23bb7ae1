from fastapi import APIRouter

from app.api.v1.endpoints import users, listings, moderation, admin_audit

api_router = APIRouter()

# Include caller profile and role endpoints
api_router.include_router(
    users.router, prefix="/profile", tags=["profile"])

# Include listing lifecycle endpoints
api_router.include_router(
    listings.router, prefix="/listings", tags=["listings"])

# Include edit/delete request endpoints
api_router.include_router(
    moderation.router, prefix="/moderation", tags=["moderation"])

# Include admin audit endpoints
api_router.include_router(
    admin_audit.router, prefix="/admin/audit", tags=["admin-audit"])
