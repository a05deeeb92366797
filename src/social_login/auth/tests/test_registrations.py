"""Tests for client registration loading."""

import pytest

from src.social_login.auth.exceptions import ConfigurationError, RegistrationNotFoundError
from src.social_login.auth.models import ClientAuthenticationMethod
from src.social_login.auth.registrations import ClientRegistrationRepository
from src.social_login.config import RegistrationSettings


class TestClientRegistrationRepository:
    """Tests for ClientRegistrationRepository."""

    def test_github_defaults_from_template(self, registrations):
        github = registrations.get("github")

        assert github.client_id == "github-client-id"
        assert github.token_uri == "https://github.com/login/oauth/access_token"
        assert github.user_name_attribute == "id"
        assert github.scopes == ("read:user",)
        assert github.is_oidc is False

    def test_google_is_oidc(self, registrations):
        google = registrations.get("google")

        assert google.is_oidc is True
        assert google.issuer == "https://accounts.google.com"
        assert google.jwk_set_uri == "https://www.googleapis.com/oauth2/v3/certs"
        assert google.user_name_attribute == "sub"

    def test_configuration_order_is_kept(self, registrations):
        assert registrations.ids == ["github", "google"]
        assert registrations.default.registration_id == "github"
        assert len(registrations) == 2

    def test_unknown_registration(self, registrations):
        with pytest.raises(RegistrationNotFoundError) as exc_info:
            registrations.get("facebook")

        assert exc_info.value.registration_id == "facebook"
        assert registrations.find("facebook") is None

    def test_explicit_values_override_template(self):
        repository = ClientRegistrationRepository.from_settings(
            {
                "github": RegistrationSettings(
                    client_id="id",
                    client_secret="secret",
                    scopes=["read:user", "read:org"],
                    client_authentication_method=ClientAuthenticationMethod.CLIENT_SECRET_POST,
                )
            }
        )

        github = repository.get("github")
        assert github.scopes == ("read:user", "read:org")
        assert github.client_authentication_method == ClientAuthenticationMethod.CLIENT_SECRET_POST

    def test_custom_registration_using_provider_template(self):
        """Test a second GitHub registration under another id."""
        repository = ClientRegistrationRepository.from_settings(
            {"github-enterprise": RegistrationSettings(client_id="id", client_secret="s", provider="github")}
        )

        registration = repository.get("github-enterprise")
        assert registration.registration_id == "github-enterprise"
        assert registration.authorization_uri == "https://github.com/login/oauth/authorize"

    def test_no_registrations_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError, match="No OAuth2 client registrations"):
            ClientRegistrationRepository.from_settings({})

    def test_missing_client_id(self):
        with pytest.raises(ConfigurationError, match="client_id"):
            ClientRegistrationRepository.from_settings(
                {"github": RegistrationSettings(client_secret="secret")}
            )

    def test_unknown_provider_needs_endpoints(self):
        with pytest.raises(ConfigurationError, match="authorization_uri"):
            ClientRegistrationRepository.from_settings(
                {"acme": RegistrationSettings(client_id="id", client_secret="secret")}
            )

    def test_oidc_registration_needs_jwks_and_issuer(self):
        with pytest.raises(ConfigurationError, match="openid"):
            ClientRegistrationRepository.from_settings(
                {
                    "acme": RegistrationSettings(
                        client_id="id",
                        client_secret="secret",
                        authorization_uri="https://acme.example/authorize",
                        token_uri="https://acme.example/token",
                        user_info_uri="https://acme.example/userinfo",
                        scopes=["openid"],
                    )
                }
            )
