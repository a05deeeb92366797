"""In-memory server-side session store."""

import asyncio
import logging
import secrets
from datetime import UTC, datetime, timedelta

from src.social_login.auth.models import Principal, Session

logger = logging.getLogger(__name__)


def generate_token() -> str:
    """Random, URL-safe, unguessable token for session ids and CSRF values."""
    return secrets.token_urlsafe(32)


class InMemorySessionStore:
    """
    Maps session ids to authenticated sessions for the life of the process.

    Sessions expire after ``idle_timeout_seconds`` without access. Expired
    sessions are evicted when they are looked up, and every ``create`` sweeps
    the ones nobody came back for.

    Attributes:
        idle_timeout: Maximum idle time before a session is discarded
        _sessions: Session id -> Session
        _lock: Serializes mutations of the session map

    Example:
        >>> store = InMemorySessionStore(idle_timeout_seconds=1800)
        >>> session = await store.create(principal)
        >>> await store.get(session.session_id)
    """

    def __init__(self, idle_timeout_seconds: int = 1800) -> None:
        self.idle_timeout = timedelta(seconds=idle_timeout_seconds)
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def create(self, principal: Principal) -> Session:
        """Create a session for a freshly authenticated principal with a new CSRF token."""
        session = Session(
            session_id=generate_token(),
            principal=principal,
            csrf_token=generate_token(),
        )
        async with self._lock:
            self._purge_expired(session.created_at)
            self._sessions[session.session_id] = session

        logger.info(
            f"Session created for {principal.provider} user {principal.id}",
            extra={"provider": principal.provider, "principal_id": principal.id},
        )
        return session

    async def get(self, session_id: str | None) -> Session | None:
        """
        Look up a live session and refresh its last-access time.

        Returns:
            The session, or None when unknown or idle for too long
        """
        if not session_id:
            return None

        now = datetime.now(UTC)
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None

            if now - session.last_accessed_at >= self.idle_timeout:
                del self._sessions[session_id]
                logger.info(
                    "Session expired after idle timeout",
                    extra={"principal_id": session.principal.id},
                )
                return None

            session.last_accessed_at = now
            return session

    async def invalidate(self, session_id: str | None) -> bool:
        """Destroy a session. Returns False when there was nothing to destroy."""
        if not session_id:
            return False

        async with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False

        logger.info(
            f"Session invalidated for {session.principal.provider} user {session.principal.id}",
            extra={"provider": session.principal.provider, "principal_id": session.principal.id},
        )
        return True

    def _purge_expired(self, now: datetime) -> None:
        expired = [
            sid for sid, s in self._sessions.items() if now - s.last_accessed_at >= self.idle_timeout
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info(f"Purged {len(expired)} idle sessions", extra={"purged": len(expired)})

    def __len__(self) -> int:
        return len(self._sessions)
