"""Application configuration using Pydantic Settings."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Variant(str, Enum):
    """Security pipeline presets, from the bare login-only app to the validating one."""

    SIMPLE = "simple"
    CLICK = "click"
    LOGOUT = "logout"
    TWO_PROVIDERS = "two-providers"
    CUSTOM_ERROR = "custom-error"


class RegistrationSettings(BaseModel):
    """
    Raw OAuth2 client registration as supplied through the environment.

    Only ``client_id`` and ``client_secret`` are needed for providers that have
    a built-in template (``github``, ``google``). Any endpoint given here
    overrides the template value.

    Example:
        SOCIAL_LOGIN_REGISTRATIONS__GITHUB__CLIENT_ID=abc
        SOCIAL_LOGIN_REGISTRATIONS__GITHUB__CLIENT_SECRET=xyz
    """

    client_id: str = ""
    client_secret: str = ""
    provider: str | None = Field(None, description="Template name, defaults to the registration id")
    client_name: str | None = None
    authorization_uri: str | None = None
    token_uri: str | None = None
    user_info_uri: str | None = None
    jwk_set_uri: str | None = None
    issuer: str | None = None
    scopes: list[str] | None = None
    user_name_attribute: str | None = None
    display_name_attribute: str | None = None
    client_authentication_method: str | None = None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SOCIAL_LOGIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # System Configuration
    variant: Variant = Variant.CUSTOM_ERROR
    debug: bool = False
    cors_origins: str = "http://localhost:8080"
    rate_limit_enabled: bool = True
    base_url: str | None = None  # Overrides request base URL when building redirect URIs
    static_dir: Path = Path(__file__).parent / "static"

    # OAuth2 Client Registrations (keyed by registration id)
    registrations: dict[str, RegistrationSettings] = {}

    # Login Flow
    default_success_url: str = "/"
    failure_url: str | None = None  # None picks the variant default
    authorization_request_ttl_seconds: int = 600  # 10 minutes
    http_timeout_seconds: float = 10.0
    jwks_cache_ttl_seconds: int = 3600  # 1 hour
    id_token_leeway_seconds: int = 60  # Clock skew tolerance

    # Session & Cookies
    session_cookie_name: str = "SESSION"
    session_idle_timeout_seconds: int = 1800  # 30 minutes
    cookie_secure: bool = False
    csrf_cookie_name: str = "XSRF-TOKEN"
    csrf_header_name: str = "X-XSRF-TOKEN"
    authorization_request_cookie_name: str = "OAUTH2_AUTH_REQUEST"
    failure_cookie_name: str = "AUTH_ERROR"

    # Organization Membership Check (custom-error variant)
    required_organization: str | None = None
    github_orgs_uri: str = "https://api.github.com/user/orgs"

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"


settings = Settings()
