from sqlmodel import SQLModel

# Import all models here to ensure they are registered with SQLModel
from app.models.user import UserProfile  # noqa
from app.models.listing import Listing  # noqa
from app.models.moderation import ModerationRequest  # noqa
from app.models.audit_log import AuditLog  # noqa

__all__ = ["SQLModel"]
