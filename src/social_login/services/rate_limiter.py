"""Rate limiting for the login endpoints."""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.social_login.auth.models import Session

logger = logging.getLogger(__name__)


def get_principal_or_ip(request: Request) -> str:
    """
    Extract the session principal or fall back to the client IP address.

    Used as the key_func for rate limiting:
    - Requests with a session: limited per provider/principal
    - Anonymous requests (the normal case for login): limited per IP

    Keys are prefixed with the application's ``rate_limit_namespace`` so
    applications built in the same process keep separate counters.

    Args:
        request: FastAPI request object

    Returns:
        Principal key or IP address
    """
    namespace = getattr(request.app.state, "rate_limit_namespace", "default")
    session: Session | None = getattr(request.state, "session", None)

    if session is not None:
        return f"{namespace}:user:{session.principal.provider}:{session.principal.id}"

    return f"{namespace}:ip:{get_remote_address(request)}"


def is_rate_limit_disabled(request: Request) -> bool:
    """True when the serving application was built with rate limiting turned off."""
    settings = getattr(request.app.state, "settings", None)
    return settings is not None and not settings.rate_limit_enabled


# In-memory storage for single-instance deployment
limiter = Limiter(
    key_func=get_principal_or_ip,
    default_limits=[],
    storage_uri="memory://",
)


class RateLimitTiers:
    """Rate limit tiers for endpoint categories."""

    # Login initiation and provider callbacks
    LOGIN = ["20 per minute", "100 per hour"]


# Note: decorated endpoints need a 'request: Request' parameter (slowapi requirement)
login_rate_limit = limiter.limit(";".join(RateLimitTiers.LOGIN), exempt_when=is_rate_limit_disabled)
