"""Data models for authentication."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ClientAuthenticationMethod(str, Enum):
    """How the client authenticates to the provider's token endpoint."""

    CLIENT_SECRET_BASIC = "client_secret_basic"
    CLIENT_SECRET_POST = "client_secret_post"


class ProviderRegistration(BaseModel):
    """
    Immutable description of how to talk to one OAuth2 provider.

    Attributes:
        registration_id: Path segment selecting this registration (e.g. "github")
        client_id: OAuth2 client id issued by the provider
        client_secret: OAuth2 client secret issued by the provider
        authorization_uri: Provider authorization endpoint
        token_uri: Provider token endpoint
        user_info_uri: Provider user-info endpoint
        jwk_set_uri: JWKS endpoint, required for OIDC registrations
        issuer: Expected ID token issuer, required for OIDC registrations
        scopes: Requested scopes
        user_name_attribute: User-info attribute holding the stable user id
        display_name_attribute: User-info attribute holding the display name

    Example:
        >>> registration = ProviderRegistration(
        ...     registration_id="github",
        ...     client_id="abc",
        ...     client_secret="xyz",
        ...     authorization_uri="https://github.com/login/oauth/authorize",
        ...     token_uri="https://github.com/login/oauth/access_token",
        ...     user_info_uri="https://api.github.com/user",
        ...     scopes=("read:user",),
        ...     user_name_attribute="id",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    registration_id: str
    client_id: str
    client_secret: str
    client_name: str | None = None
    authorization_uri: str
    token_uri: str
    user_info_uri: str
    jwk_set_uri: str | None = None
    issuer: str | None = None
    scopes: tuple[str, ...] = ()
    user_name_attribute: str = "id"
    display_name_attribute: str = "name"
    client_authentication_method: ClientAuthenticationMethod = (
        ClientAuthenticationMethod.CLIENT_SECRET_BASIC
    )

    @property
    def is_oidc(self) -> bool:
        """True when the registration requests the ``openid`` scope."""
        return "openid" in self.scopes


class Principal(BaseModel):
    """
    Authenticated end user, as produced by a successful login.

    Attributes:
        id: Provider-scoped stable identifier
        display_name: Provider-supplied display name (may be absent)
        provider: Registration id that produced this principal
        attributes: Raw user-info attributes (merged with ID token claims for OIDC)
    """

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str | None = None
    provider: str
    attributes: dict[str, Any] = {}


@dataclass
class Session:
    """Server-side session binding a browser to exactly one principal."""

    session_id: str
    principal: Principal
    csrf_token: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_accessed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class AuthorizationRequest:
    """Pending authorization request, kept between the redirect and the callback."""

    state: str
    registration_id: str
    redirect_uri: str
    nonce: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
