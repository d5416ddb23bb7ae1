"""
Moderation error taxonomy.

Every refused transition raises one of these before anything is committed.
"""


class ModerationError(Exception):
    """Base exception for listing lifecycle and moderation operations."""
    code = "moderation_error"
    status_code = 400


class NotFoundError(ModerationError):
    """Raised when a listing or request does not exist."""
    code = "not_found"
    status_code = 404


class ForbiddenError(ModerationError):
    """Raised when a role or ownership check fails."""
    code = "forbidden"
    status_code = 403


class ConflictError(ModerationError):
    """Raised when a pending request of the same kind already exists."""
    code = "conflict"
    status_code = 409


class InvalidStateError(ModerationError):
    """Raised when a transition is attempted from a state that forbids it."""
    code = "invalid_state"
    status_code = 409


class ValidationError(ModerationError):
    """Raised when a listing or profile payload is malformed."""
    code = "validation_error"
    status_code = 422
