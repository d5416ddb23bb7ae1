from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Shared by every router so app.state.limiter and the decorators agree
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled and not settings.testing,
)
