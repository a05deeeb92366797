"""Authentication module for OAuth2 social login with server-side sessions."""

from src.social_login.auth.dependencies import (
    get_current_principal,
    get_login_flow,
    get_optional_session,
    get_session_store,
)
from src.social_login.auth.exceptions import (
    AuthenticationError,
    ConfigurationError,
    PrincipalRejectedError,
    RegistrationNotFoundError,
)
from src.social_login.auth.flow import OAuth2LoginFlow
from src.social_login.auth.flow_state import AuthorizationRequestStore, LoginFailureStore
from src.social_login.auth.models import Principal, ProviderRegistration, Session
from src.social_login.auth.registrations import ClientRegistrationRepository
from src.social_login.auth.session_store import InMemorySessionStore
from src.social_login.auth.validators import GitHubOrganizationValidator, PrincipalValidator

__all__ = [
    "get_current_principal",
    "get_login_flow",
    "get_optional_session",
    "get_session_store",
    "AuthenticationError",
    "ConfigurationError",
    "PrincipalRejectedError",
    "RegistrationNotFoundError",
    "OAuth2LoginFlow",
    "AuthorizationRequestStore",
    "LoginFailureStore",
    "Principal",
    "ProviderRegistration",
    "Session",
    "ClientRegistrationRepository",
    "InMemorySessionStore",
    "GitHubOrganizationValidator",
    "PrincipalValidator",
]
