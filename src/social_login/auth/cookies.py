"""Cookie helpers shared by the login handlers and the security middleware."""

from starlette.responses import Response

from src.social_login.config import Settings


def set_session_cookie(response: Response, settings: Settings, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def set_csrf_cookie(response: Response, settings: Settings, token: str) -> None:
    """CSRF cookie is readable by client script so it can be echoed in a header."""
    response.set_cookie(
        key=settings.csrf_cookie_name,
        value=token,
        httponly=False,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def set_flow_cookie(response: Response, settings: Settings, name: str, value: str) -> None:
    """Short-lived HTTP-only cookie binding pre-login state to this browser."""
    response.set_cookie(
        key=name,
        value=value,
        max_age=settings.authorization_request_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_flow_cookie(response: Response, settings: Settings, name: str) -> None:
    response.delete_cookie(
        key=name, httponly=True, secure=settings.cookie_secure, samesite="lax", path="/"
    )


def sets_cookie(response: Response, name: str) -> bool:
    """True when the response already carries a Set-Cookie for ``name``."""
    return any(
        header.startswith(f"{name}=") for header in response.headers.getlist("set-cookie")
    )
