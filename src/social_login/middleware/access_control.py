"""Request-level gate between public paths and authenticated ones."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, RedirectResponse

if TYPE_CHECKING:
    from starlette.requests import Request

logger = logging.getLogger(__name__)


class EntryPoint(str, Enum):
    """How an unauthenticated request to a protected path is answered."""

    UNAUTHORIZED = "unauthorized"
    REDIRECT = "redirect"


class AccessControlMiddleware(BaseHTTPMiddleware):
    """
    Lets public paths through and requires a session everywhere else.

    Per request the path is PUBLIC_PATH, AUTHENTICATED (session present) or
    UNAUTHENTICATED_PROTECTED. The last one is answered by the entry point:
    a 401 JSON response, or a redirect into the login flow.

    Attributes:
        public_paths: Exact paths that never need a session
        public_prefixes: Path prefixes that never need a session
        entry_point: How unauthenticated protected requests are answered
        login_url: Redirect target for the redirect entry point
    """

    def __init__(  # type: ignore[no-untyped-def]
        self,
        app,
        public_paths: frozenset[str],
        public_prefixes: tuple[str, ...],
        entry_point: EntryPoint,
        login_url: str,
    ) -> None:
        super().__init__(app)
        self.public_paths = public_paths
        self.public_prefixes = public_prefixes
        self.entry_point = entry_point
        self.login_url = login_url

    def is_public(self, path: str) -> bool:
        return path in self.public_paths or path.startswith(self.public_prefixes)

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        path = request.url.path

        if self.is_public(path) or getattr(request.state, "session", None) is not None:
            return await call_next(request)

        logger.warning(
            f"Unauthenticated request: path={path}, "
            f"client={request.client.host if request.client else 'unknown'}",
            extra={"error_type": "unauthenticated", "path": path},
        )

        if self.entry_point == EntryPoint.REDIRECT:
            return RedirectResponse(url=self.login_url, status_code=302)

        return JSONResponse(
            status_code=401,
            content={"detail": "Unauthorized"},
            headers={"WWW-Authenticate": "Session"},
        )
