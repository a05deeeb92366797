"""Short-lived state held for browsers that are not logged in yet."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from src.social_login.auth.models import AuthorizationRequest
from src.social_login.auth.session_store import generate_token

logger = logging.getLogger(__name__)


class AuthorizationRequestStore:
    """
    Pending authorization requests keyed by their ``state`` value.

    Each request is consumed at most once; requests older than the TTL are
    treated as missing.
    """

    def __init__(self, ttl_seconds: int = 600) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._requests: dict[str, AuthorizationRequest] = {}
        self._lock = asyncio.Lock()

    async def save(self, request: AuthorizationRequest) -> None:
        async with self._lock:
            self._purge_expired(datetime.now(UTC))
            self._requests[request.state] = request

    async def consume(self, state: str) -> AuthorizationRequest | None:
        """Remove and return the request for ``state``, or None if unknown or expired."""
        async with self._lock:
            request = self._requests.pop(state, None)

        if request is None:
            return None

        if datetime.now(UTC) - request.created_at >= self.ttl:
            logger.warning(
                "Authorization request expired before callback",
                extra={"registration_id": request.registration_id},
            )
            return None

        return request

    def _purge_expired(self, now: datetime) -> None:
        expired = [s for s, r in self._requests.items() if now - r.created_at >= self.ttl]
        for state in expired:
            del self._requests[state]

    def __len__(self) -> int:
        return len(self._requests)


class LoginFailureStore:
    """
    Last login failure message per browser, read once by the error endpoint.

    The failure id handed back by ``record`` is what the browser carries in
    its failure cookie.
    """

    def __init__(self, ttl_seconds: int = 600) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._failures: dict[str, tuple[str, datetime]] = {}
        self._lock = asyncio.Lock()

    async def record(self, message: str, failure_id: str | None = None) -> str:
        """Store ``message``, replacing any earlier failure under the same id."""
        failure_id = failure_id or generate_token()
        now = datetime.now(UTC)
        async with self._lock:
            expired = [f for f, (_, at) in self._failures.items() if now - at >= self.ttl]
            for key in expired:
                del self._failures[key]
            self._failures[failure_id] = (message, now)
        return failure_id

    async def pop(self, failure_id: str | None) -> str | None:
        """Return and forget the failure message for ``failure_id``."""
        if not failure_id:
            return None

        async with self._lock:
            entry = self._failures.pop(failure_id, None)

        if entry is None:
            return None

        message, recorded_at = entry
        if datetime.now(UTC) - recorded_at >= self.ttl:
            return None
        return message
