"""Current user, logout and login error endpoints."""

from src.social_login.features.session.handlers import error_router, logout_router, user_router

__all__ = ["error_router", "logout_router", "user_router"]
