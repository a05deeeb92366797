"""Tests for PostHog analytics service."""

from unittest.mock import patch

from src.social_login.services.analytics.posthog import PostHogService


class TestPostHogService:
    """Tests for PostHogService."""

    def test_capture_without_api_key_is_noop(self):
        service = PostHogService(api_key=None)

        with patch("src.social_login.services.analytics.posthog.posthog") as mock_posthog:
            service.capture("github:42", "login_succeeded", {"provider": "github"})
            service.identify("github:42", {"name": "Alice"})

        mock_posthog.capture.assert_not_called()
        mock_posthog.identify.assert_not_called()

    def test_capture_with_api_key(self):
        with patch("src.social_login.services.analytics.posthog.posthog") as mock_posthog:
            service = PostHogService(api_key="phc_test", host="https://eu.posthog.com")
            service.capture("github:42", "login_succeeded", {"provider": "github"})

        assert mock_posthog.api_key == "phc_test"
        assert mock_posthog.host == "https://eu.posthog.com"
        mock_posthog.capture.assert_called_once_with(
            distinct_id="github:42", event="login_succeeded", properties={"provider": "github"}
        )

    def test_capture_defaults_properties(self):
        with patch("src.social_login.services.analytics.posthog.posthog") as mock_posthog:
            PostHogService(api_key="phc_test").capture("anonymous", "login_failed")

        mock_posthog.capture.assert_called_once_with(
            distinct_id="anonymous", event="login_failed", properties={}
        )
