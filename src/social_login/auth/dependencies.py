"""FastAPI dependencies for session-based authentication."""

import logging

from fastapi import Depends, HTTPException, Request, status

from src.social_login.auth.flow import OAuth2LoginFlow
from src.social_login.auth.flow_state import LoginFailureStore
from src.social_login.auth.models import Principal, Session
from src.social_login.auth.session_store import InMemorySessionStore
from src.social_login.config import Settings
from src.social_login.services.analytics.posthog import PostHogService

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


def get_login_flow(request: Request) -> OAuth2LoginFlow:
    return request.app.state.login_flow


def get_session_store(request: Request) -> InMemorySessionStore:
    return request.app.state.session_store


def get_failure_store(request: Request) -> LoginFailureStore:
    return request.app.state.failure_store


def get_analytics(request: Request) -> PostHogService:
    return request.app.state.analytics


def get_optional_session(request: Request) -> Session | None:
    """
    Session resolved for this request by the session middleware.

    Returns:
        The live session, or None for anonymous requests
    """
    return getattr(request.state, "session", None)


async def get_current_principal(
    session: Session | None = Depends(get_optional_session),
) -> Principal:
    """
    Principal of the current session.

    The access control middleware already rejects anonymous requests to
    protected paths; this dependency keeps handlers safe if mounted on a
    public path.

    Raises:
        HTTPException: 401 if there is no session

    Example:
        @router.get("/me")
        async def me(principal: Principal = Depends(get_current_principal)):
            return {"id": principal.id}
    """
    if session is None:
        logger.warning("Principal requested without a session", extra={"error_type": "no_session"})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Session"},
        )
    return session.principal
