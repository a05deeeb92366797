"""Builds the security middleware chain from capability toggles."""

import logging
from dataclasses import dataclass

from fastapi import FastAPI

from src.social_login.auth.session_store import InMemorySessionStore
from src.social_login.config import Settings, Variant
from src.social_login.middleware.access_control import AccessControlMiddleware, EntryPoint
from src.social_login.middleware.csrf import CsrfMiddleware
from src.social_login.middleware.session import SessionMiddleware

logger = logging.getLogger(__name__)

LOGIN_PREFIXES = ("/oauth2/authorization/", "/login/oauth2/code/")
STATIC_PREFIX = "/webjars/"


@dataclass(frozen=True)
class SecurityFeatures:
    """
    Capability toggles for one application variant.

    Attributes:
        user_endpoint: Mount GET /user
        csrf: Install the CSRF guard
        logout: Mount POST /logout
        error_endpoint: Mount GET /error with the last login failure
        organization_check: Reject GitHub users outside the required organization
        public_home: Serve "/" and static assets without a session
        entry_point: Answer to unauthenticated protected requests
        failure_url: Where a failed login lands
    """

    user_endpoint: bool = True
    csrf: bool = True
    logout: bool = True
    error_endpoint: bool = False
    organization_check: bool = False
    public_home: bool = True
    entry_point: EntryPoint = EntryPoint.UNAUTHORIZED
    failure_url: str = "/?error"


VARIANT_FEATURES: dict[Variant, SecurityFeatures] = {
    Variant.SIMPLE: SecurityFeatures(
        user_endpoint=False,
        csrf=False,
        logout=False,
        error_endpoint=True,
        public_home=False,
        entry_point=EntryPoint.REDIRECT,
        # "/" is protected here, so failures need a public landing page
        failure_url="/error",
    ),
    Variant.CLICK: SecurityFeatures(csrf=False, logout=False),
    Variant.LOGOUT: SecurityFeatures(),
    Variant.TWO_PROVIDERS: SecurityFeatures(),
    Variant.CUSTOM_ERROR: SecurityFeatures(
        error_endpoint=True,
        organization_check=True,
        failure_url="/",
    ),
}


class SecurityPipeline:
    """
    Composes the request filters in front of the application.

    Order, outermost first: session resolution, CSRF guard (when enabled),
    access control. Each filter may answer the request itself or pass it on.

    Example:
        >>> features = VARIANT_FEATURES[Variant.LOGOUT]
        >>> pipeline = SecurityPipeline(features, settings, store, "/oauth2/authorization/github")
        >>> pipeline.install(app)
    """

    def __init__(
        self,
        features: SecurityFeatures,
        settings: Settings,
        session_store: InMemorySessionStore,
        login_url: str,
    ):
        self.features = features
        self.settings = settings
        self.session_store = session_store
        self.login_url = login_url

    @property
    def public_paths(self) -> frozenset[str]:
        paths = {"/health", "/error"}
        if self.features.public_home:
            paths.update({"/", "/index.html", "/favicon.ico"})
        if self.features.logout:
            # Reachable without a session so a repeated logout is a no-op
            paths.add("/logout")
        return frozenset(paths)

    @property
    def public_prefixes(self) -> tuple[str, ...]:
        if self.features.public_home:
            return LOGIN_PREFIXES + (STATIC_PREFIX,)
        return LOGIN_PREFIXES

    def install(self, app: FastAPI) -> None:
        """Add the filters to ``app``; Starlette runs the last added one first."""
        app.add_middleware(
            AccessControlMiddleware,
            public_paths=self.public_paths,
            public_prefixes=self.public_prefixes,
            entry_point=self.features.entry_point,
            login_url=self.login_url,
        )
        if self.features.csrf:
            app.add_middleware(CsrfMiddleware, settings=self.settings)
        app.add_middleware(
            SessionMiddleware,
            session_store=self.session_store,
            cookie_name=self.settings.session_cookie_name,
        )

        logger.info(
            "Security pipeline installed",
            extra={
                "csrf": self.features.csrf,
                "entry_point": self.features.entry_point.value,
                "public_paths": sorted(self.public_paths),
            },
        )
