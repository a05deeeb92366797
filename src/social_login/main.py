"""FastAPI application entry point.

Run with the factory so configuration errors surface at startup:

    uvicorn src.social_login.main:create_app --factory
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.social_login.auth.exceptions import ConfigurationError
from src.social_login.auth.flow import AUTHORIZATION_PATH, OAuth2LoginFlow
from src.social_login.auth.flow_state import AuthorizationRequestStore, LoginFailureStore
from src.social_login.auth.registrations import ClientRegistrationRepository
from src.social_login.auth.session_store import InMemorySessionStore, generate_token
from src.social_login.auth.validators import GitHubOrganizationValidator
from src.social_login.config import Settings, settings as default_settings
from src.social_login.features.home import router as home_router
from src.social_login.features.login import router as login_router
from src.social_login.features.session import error_router, logout_router, user_router
from src.social_login.middleware.pipeline import VARIANT_FEATURES, SecurityPipeline
from src.social_login.services.analytics.posthog import PostHogService
from src.social_login.services.rate_limiter import limiter

logger = logging.getLogger(__name__)


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    logger.info(
        "Social login service started",
        extra={
            "variant": app.state.settings.variant.value,
            "registrations": app.state.registrations.ids,
        },
    )

    yield

    # Shutdown
    try:
        await app.state.http_client.aclose()
        logger.info("Outbound HTTP client closed")
    except Exception as e:
        logger.error(f"Error during HTTP client cleanup: {e}", exc_info=True)


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Build the application for the configured variant.

    Args:
        settings: Settings to build from (default: loaded from the environment)
        transport: Optional transport for outbound provider calls (tests)

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: If registrations or variant requirements are invalid
    """
    settings = settings or default_settings
    features = VARIANT_FEATURES[settings.variant]
    registrations = ClientRegistrationRepository.from_settings(settings.registrations)

    if features.organization_check and not settings.required_organization:
        raise ConfigurationError(
            f"Variant '{settings.variant.value}' requires SOCIAL_LOGIN_REQUIRED_ORGANIZATION"
        )

    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds, connect=settings.http_timeout_seconds),
        transport=transport,
    )

    session_store = InMemorySessionStore(idle_timeout_seconds=settings.session_idle_timeout_seconds)
    validator = None
    if features.organization_check:
        validator = GitHubOrganizationValidator(
            http_client,
            organization=settings.required_organization,
            orgs_uri=settings.github_orgs_uri,
        )

    login_flow = OAuth2LoginFlow(
        registrations=registrations,
        session_store=session_store,
        authorization_requests=AuthorizationRequestStore(settings.authorization_request_ttl_seconds),
        http_client=http_client,
        validator=validator,
        jwks_cache_ttl=settings.jwks_cache_ttl_seconds,
        id_token_leeway=settings.id_token_leeway_seconds,
    )

    app = FastAPI(
        title="Social Login",
        description="OAuth2 social login with server-side sessions",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.features = features
    app.state.registrations = registrations
    app.state.http_client = http_client
    app.state.session_store = session_store
    app.state.failure_store = LoginFailureStore(settings.authorization_request_ttl_seconds)
    app.state.login_flow = login_flow
    app.state.analytics = PostHogService(settings.posthog_api_key, settings.posthog_host)

    # Counters are keyed per app. The on/off toggle is read from app.state.settings
    app.state.rate_limit_namespace = generate_token()[:12]
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    login_url = AUTHORIZATION_PATH.format(registration_id=registrations.default.registration_id)
    SecurityPipeline(features, settings, session_store, login_url).install(app)

    origins = settings.cors_origins.split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", settings.csrf_header_name],
    )

    app.include_router(home_router)
    app.include_router(login_router)
    if features.user_endpoint:
        app.include_router(user_router)
    if features.logout:
        app.include_router(logout_router)
    if features.error_endpoint:
        app.include_router(error_router)

    app.mount("/webjars", StaticFiles(directory=settings.static_dir / "webjars"), name="webjars")

    @app.get("/health", response_model=HealthCheckResponse)
    async def health_check() -> HealthCheckResponse:
        """Health check endpoint."""
        return HealthCheckResponse(status="healthy")

    return app
