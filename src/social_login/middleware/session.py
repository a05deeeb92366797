"""Resolves the server-side session for each request."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from starlette.requests import Request

    from src.social_login.auth.session_store import InMemorySessionStore


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Loads the session named by the session cookie into ``request.state.session``.

    Unknown or expired session ids resolve to None, so downstream filters see
    the request as anonymous.
    """

    def __init__(  # type: ignore[no-untyped-def]
        self, app, session_store: InMemorySessionStore, cookie_name: str
    ) -> None:
        super().__init__(app)
        self.session_store = session_store
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        request.state.session = await self.session_store.get(request.cookies.get(self.cookie_name))
        return await call_next(request)
