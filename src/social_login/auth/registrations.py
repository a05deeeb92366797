"""OAuth2 client registrations built once from settings."""

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from src.social_login.auth.exceptions import ConfigurationError, RegistrationNotFoundError
from src.social_login.auth.models import ProviderRegistration
from src.social_login.config import RegistrationSettings

logger = logging.getLogger(__name__)

# Well-known provider defaults; a registration only needs client_id/client_secret
PROVIDER_TEMPLATES: dict[str, dict[str, Any]] = {
    "github": {
        "client_name": "GitHub",
        "authorization_uri": "https://github.com/login/oauth/authorize",
        "token_uri": "https://github.com/login/oauth/access_token",
        "user_info_uri": "https://api.github.com/user",
        "scopes": ["read:user"],
        "user_name_attribute": "id",
    },
    "google": {
        "client_name": "Google",
        "authorization_uri": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_uri": "https://www.googleapis.com/oauth2/v4/token",
        "user_info_uri": "https://www.googleapis.com/oauth2/v3/userinfo",
        "jwk_set_uri": "https://www.googleapis.com/oauth2/v3/certs",
        "issuer": "https://accounts.google.com",
        "scopes": ["openid", "profile", "email"],
        "user_name_attribute": "sub",
    },
}


class ClientRegistrationRepository:
    """
    Read-only lookup of provider registrations by registration id.

    Registrations keep their configuration order; the first one is the
    default target when an unauthenticated request is redirected into login.

    Example:
        >>> repository = ClientRegistrationRepository.from_settings(settings.registrations)
        >>> github = repository.get("github")
    """

    def __init__(self, registrations: list[ProviderRegistration]):
        if not registrations:
            raise ConfigurationError("No OAuth2 client registrations configured")
        self._registrations = {r.registration_id: r for r in registrations}

    @classmethod
    def from_settings(
        cls, registrations: Mapping[str, RegistrationSettings]
    ) -> "ClientRegistrationRepository":
        """
        Build registrations from raw settings, filling gaps from provider templates.

        Args:
            registrations: Raw registration settings keyed by registration id

        Returns:
            Repository of validated registrations

        Raises:
            ConfigurationError: If no registration is configured or one is incomplete
        """
        built = [_build_registration(rid, raw) for rid, raw in registrations.items()]
        repository = cls(built)
        logger.info(
            "Loaded OAuth2 client registrations",
            extra={"registration_ids": repository.ids},
        )
        return repository

    def get(self, registration_id: str) -> ProviderRegistration:
        """Return the registration or raise RegistrationNotFoundError."""
        registration = self._registrations.get(registration_id)
        if registration is None:
            raise RegistrationNotFoundError(registration_id)
        return registration

    def find(self, registration_id: str) -> ProviderRegistration | None:
        return self._registrations.get(registration_id)

    @property
    def ids(self) -> list[str]:
        return list(self._registrations)

    @property
    def default(self) -> ProviderRegistration:
        return next(iter(self._registrations.values()))

    def __iter__(self) -> Iterator[ProviderRegistration]:
        return iter(self._registrations.values())

    def __len__(self) -> int:
        return len(self._registrations)


def _build_registration(registration_id: str, raw: RegistrationSettings) -> ProviderRegistration:
    template_name = raw.provider or registration_id
    values: dict[str, Any] = dict(PROVIDER_TEMPLATES.get(template_name, {}))
    values.update(raw.model_dump(exclude={"provider"}, exclude_none=True))
    values["registration_id"] = registration_id

    missing = [
        name
        for name in ("client_id", "client_secret", "authorization_uri", "token_uri", "user_info_uri")
        if not values.get(name)
    ]
    if missing:
        raise ConfigurationError(
            f"Client registration '{registration_id}' is missing: {', '.join(missing)}"
        )

    try:
        registration = ProviderRegistration(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid client registration '{registration_id}': {e}") from e

    if registration.is_oidc and not (registration.jwk_set_uri and registration.issuer):
        raise ConfigurationError(
            f"Client registration '{registration_id}' requests 'openid' "
            "but has no jwk_set_uri/issuer"
        )
    return registration
