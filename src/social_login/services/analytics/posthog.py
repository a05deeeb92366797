"""PostHog analytics service for login event tracking."""

import posthog


class PostHogService:
    """Service for tracking analytics events via PostHog. A no-op without an API key."""

    def __init__(self, api_key: str | None = None, host: str = "https://app.posthog.com") -> None:
        """
        Initialize PostHog service.

        Args:
            api_key: Project API key; events are dropped when empty
            host: PostHog instance URL
        """
        self.api_key = api_key
        if api_key:
            posthog.api_key = api_key
            posthog.host = host

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Track an event.

        Args:
            distinct_id: Unique identifier for the user ("anonymous" before login)
            event: Event name (e.g., "login_succeeded", "logout")
            properties: Optional event properties

        Example:
            >>> service = PostHogService("phc_123")
            >>> service.capture("github:42", "login_succeeded", {"provider": "github"})
        """
        if not self.api_key:
            return

        posthog.capture(distinct_id=distinct_id, event=event, properties=properties or {})

    def identify(self, distinct_id: str, properties: dict | None = None) -> None:
        """
        Attach person properties (display name, provider) to a principal.

        Example:
            >>> service.identify("github:42", {"name": "Alice", "provider": "github"})
        """
        if not self.api_key:
            return

        posthog.identify(distinct_id=distinct_id, properties=properties or {})
