"""Shared services module for external integrations."""

from src.social_login.services.analytics.posthog import PostHogService

__all__ = [
    "PostHogService",
]
