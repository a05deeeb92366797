"""API handlers for the OAuth2 login endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from src.social_login.auth.cookies import (
    clear_flow_cookie,
    set_csrf_cookie,
    set_flow_cookie,
    set_session_cookie,
)
from src.social_login.auth.dependencies import (
    get_analytics,
    get_app_settings,
    get_failure_store,
    get_login_flow,
    get_session_store,
)
from src.social_login.auth.exceptions import AuthenticationError, RegistrationNotFoundError
from src.social_login.auth.flow import CALLBACK_PATH, OAuth2LoginFlow
from src.social_login.auth.flow_state import LoginFailureStore
from src.social_login.auth.session_store import InMemorySessionStore
from src.social_login.config import Settings
from src.social_login.services.analytics.posthog import PostHogService
from src.social_login.services.rate_limiter import login_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["login"])


def _base_url(request: Request, settings: Settings) -> str:
    if settings.base_url:
        return settings.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


@router.get("/oauth2/authorization/{registration_id}")
@login_rate_limit
async def start_login(
    request: Request,
    registration_id: str,
    flow: OAuth2LoginFlow = Depends(get_login_flow),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """
    Start an OAuth2 login with the selected provider.

    Redirects the browser to the provider's authorization endpoint and binds
    the generated ``state`` to the browser with a short-lived cookie.

    Args:
        registration_id: Registration to log in with (e.g. "github")

    Raises:
        HTTPException: 404 if the registration is not configured
    """
    redirect_uri = _base_url(request, settings) + CALLBACK_PATH.format(
        registration_id=registration_id
    )

    try:
        authorization_url, authorization_request = await flow.start(registration_id, redirect_uri)
    except RegistrationNotFoundError as e:
        logger.warning(str(e), extra={"registration_id": registration_id})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    response = RedirectResponse(url=authorization_url, status_code=status.HTTP_302_FOUND)
    set_flow_cookie(
        response,
        settings,
        settings.authorization_request_cookie_name,
        authorization_request.state,
    )
    return response


@router.get("/login/oauth2/code/{registration_id}")
@login_rate_limit
async def complete_login(
    request: Request,
    registration_id: str,
    flow: OAuth2LoginFlow = Depends(get_login_flow),
    session_store: InMemorySessionStore = Depends(get_session_store),
    failures: LoginFailureStore = Depends(get_failure_store),
    analytics: PostHogService = Depends(get_analytics),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """
    Handle the provider callback.

    On success a new session replaces any previous one for this browser and
    the browser is sent to the success URL. On failure no session is created,
    the failure message is kept for the error endpoint and the browser is sent
    to the failure URL.
    """
    features = request.app.state.features
    bound_state = request.cookies.get(settings.authorization_request_cookie_name)

    try:
        session = await flow.complete(registration_id, dict(request.query_params), bound_state)

    except AuthenticationError as e:
        logger.warning(
            f"Login with {registration_id} failed: [{e.code}] {e.description}",
            extra={"registration_id": registration_id, "error_code": e.code},
        )
        analytics.capture(
            distinct_id="anonymous",
            event="login_failed",
            properties={"provider": registration_id, "error": e.code},
        )

        failure_id = await failures.record(
            e.description, request.cookies.get(settings.failure_cookie_name)
        )
        response = RedirectResponse(
            url=settings.failure_url or features.failure_url,
            status_code=status.HTTP_302_FOUND,
        )
        set_flow_cookie(response, settings, settings.failure_cookie_name, failure_id)
        clear_flow_cookie(response, settings, settings.authorization_request_cookie_name)
        return response

    await failures.pop(request.cookies.get(settings.failure_cookie_name))
    previous = getattr(request.state, "session", None)
    if previous is not None:
        await session_store.invalidate(previous.session_id)

    principal = session.principal
    logger.info(
        f"User authenticated: {principal.provider}:{principal.id} ({principal.display_name})",
        extra={"provider": principal.provider, "principal_id": principal.id},
    )
    analytics.capture(
        distinct_id=f"{principal.provider}:{principal.id}",
        event="login_succeeded",
        properties={"provider": principal.provider},
    )
    analytics.identify(
        distinct_id=f"{principal.provider}:{principal.id}",
        properties={"name": principal.display_name, "provider": principal.provider},
    )

    response = RedirectResponse(url=settings.default_success_url, status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, settings, session.session_id)
    if features.csrf:
        set_csrf_cookie(response, settings, session.csrf_token)
    clear_flow_cookie(response, settings, settings.authorization_request_cookie_name)
    clear_flow_cookie(response, settings, settings.failure_cookie_name)
    return response
