"""OAuth2 login endpoints."""

from src.social_login.features.login.handlers import router

__all__ = ["router"]
