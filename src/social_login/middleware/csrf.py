"""Double-submit cookie CSRF protection."""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.social_login.auth.cookies import set_csrf_cookie, sets_cookie
from src.social_login.auth.session_store import generate_token

if TYPE_CHECKING:
    from starlette.requests import Request

    from src.social_login.config import Settings

logger = logging.getLogger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


class CsrfMiddleware(BaseHTTPMiddleware):
    """
    Requires state-changing requests to echo the CSRF cookie in a header.

    The token is readable by client script (cookie is not HTTP-only). With a
    session, the expected token is the session's own; without one, it is
    whatever the browser's cookie holds. Safe requests get a token cookie
    when they lack the right one.

    Flow:
    1. Unsafe method: compare header with expected token, 403 on absence/mismatch
    2. Run the rest of the chain
    3. Issue or re-sync the token cookie unless the handler already set it

    Attributes:
        settings: Cookie and header names, cookie security flags
    """

    def __init__(self, app, settings: Settings) -> None:  # type: ignore[no-untyped-def]
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        session = getattr(request.state, "session", None)
        cookie_token = request.cookies.get(self.settings.csrf_cookie_name)

        if request.method not in SAFE_METHODS:
            expected = session.csrf_token if session is not None else cookie_token
            provided = request.headers.get(self.settings.csrf_header_name)

            if not expected or not provided or not secrets.compare_digest(
                provided.encode(), expected.encode()
            ):
                logger.warning(
                    f"CSRF check failed: method={request.method}, path={request.url.path}",
                    extra={
                        "error_type": "csrf_token_invalid",
                        "header_present": provided is not None,
                        "authenticated": session is not None,
                    },
                )
                return JSONResponse(status_code=403, content={"detail": "Invalid CSRF token"})

        response = await call_next(request)

        if session is not None:
            wanted = session.csrf_token if cookie_token != session.csrf_token else None
        else:
            wanted = generate_token() if not cookie_token else None

        if wanted and not sets_cookie(response, self.settings.csrf_cookie_name):
            set_csrf_cookie(response, self.settings, wanted)

        return response
