"""API handlers for the current user, logout and the login error surface."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.social_login.auth.cookies import clear_flow_cookie, clear_session_cookie, set_csrf_cookie
from src.social_login.auth.dependencies import (
    get_analytics,
    get_app_settings,
    get_current_principal,
    get_failure_store,
    get_optional_session,
    get_session_store,
)
from src.social_login.auth.flow_state import LoginFailureStore
from src.social_login.auth.models import Principal, Session
from src.social_login.auth.session_store import InMemorySessionStore, generate_token
from src.social_login.config import Settings
from src.social_login.features.session.models import (
    LoginErrorResponse,
    LogoutResponse,
    UserResponse,
)
from src.social_login.services.analytics.posthog import PostHogService

logger = logging.getLogger(__name__)

user_router = APIRouter(tags=["session"])
logout_router = APIRouter(tags=["session"])
error_router = APIRouter(tags=["session"])


@user_router.get("/user", response_model=UserResponse)
async def get_user(principal: Principal = Depends(get_current_principal)) -> UserResponse:
    """
    Return the logged-in user's display name.

    Example Response:
        {"name": "Alice"}
    """
    return UserResponse(name=principal.display_name)


@logout_router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    session: Session | None = Depends(get_optional_session),
    session_store: InMemorySessionStore = Depends(get_session_store),
    analytics: PostHogService = Depends(get_analytics),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """
    Destroy the current session.

    Clears the session cookie and replaces the session's CSRF token with a
    fresh anonymous one. Calling it without a session is a successful no-op.
    """
    if session is not None:
        await session_store.invalidate(session.session_id)
        analytics.capture(
            distinct_id=f"{session.principal.provider}:{session.principal.id}",
            event="logout",
            properties={"provider": session.principal.provider},
        )
    else:
        logger.debug("Logout without a session, nothing to invalidate")

    response = JSONResponse(content=LogoutResponse().model_dump())
    clear_session_cookie(response, settings)
    if request.app.state.features.csrf:
        set_csrf_cookie(response, settings, generate_token())
    return response


@error_router.get("/error", response_model=LoginErrorResponse)
async def get_login_error(
    request: Request,
    failures: LoginFailureStore = Depends(get_failure_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """
    Report, once, the last login failure recorded for this browser.

    Example Response:
        {"message": "Not in spring-projects team"}
    """
    message = await failures.pop(request.cookies.get(settings.failure_cookie_name))

    response = JSONResponse(content=LoginErrorResponse(message=message).model_dump())
    if message is not None:
        clear_flow_cookie(response, settings, settings.failure_cookie_name)
    return response
