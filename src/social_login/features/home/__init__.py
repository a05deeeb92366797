"""Static home page."""

from src.social_login.features.home.handlers import router

__all__ = ["router"]
