"""Security middleware chain: session resolution, CSRF guard, access control."""

from src.social_login.middleware.access_control import AccessControlMiddleware, EntryPoint
from src.social_login.middleware.csrf import CsrfMiddleware
from src.social_login.middleware.pipeline import (
    VARIANT_FEATURES,
    SecurityFeatures,
    SecurityPipeline,
)
from src.social_login.middleware.session import SessionMiddleware

__all__ = [
    "AccessControlMiddleware",
    "CsrfMiddleware",
    "SessionMiddleware",
    "VARIANT_FEATURES",
    "EntryPoint",
    "SecurityFeatures",
    "SecurityPipeline",
]
