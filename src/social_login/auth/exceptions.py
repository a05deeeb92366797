"""Custom exceptions for the login flow and its configuration."""


class SocialLoginError(Exception):
    """Base exception for all social-login errors."""

    pass


class ConfigurationError(SocialLoginError):
    """Raised at startup when client registrations or features are misconfigured."""

    pass


class RegistrationNotFoundError(SocialLoginError):
    """Raised when a login is started for a registration id that is not configured."""

    def __init__(self, registration_id: str):
        super().__init__(f"Client registration not found with id: {registration_id}")
        self.registration_id = registration_id


class AuthenticationError(SocialLoginError):
    """
    Raised when an OAuth2 login attempt fails.

    Carries an OAuth2-style error code and a human readable description. The
    description is what the user sees on the error surface.

    Attributes:
        code: Error code (e.g. "invalid_state_parameter")
        description: Message suitable for display
    """

    code = "authentication_failed"

    def __init__(self, description: str, code: str | None = None):
        super().__init__(description)
        self.description = description
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.description


class AuthorizationRequestNotFoundError(AuthenticationError):
    """Raised when the callback's state has no pending authorization request."""

    code = "authorization_request_not_found"


class InvalidStateError(AuthenticationError):
    """Raised when the callback's state is missing or not bound to this browser."""

    code = "invalid_state_parameter"


class ProviderError(AuthenticationError):
    """Raised when the provider redirects back with an error (e.g. access_denied)."""

    code = "provider_error"


class TokenExchangeError(AuthenticationError):
    """Raised when the authorization code cannot be exchanged for an access token."""

    code = "invalid_token_response"


class UserInfoError(AuthenticationError):
    """Raised when the user-info endpoint fails or returns unusable attributes."""

    code = "invalid_user_info_response"


class InvalidIdTokenError(AuthenticationError):
    """Raised when an OIDC ID token fails signature or claim validation."""

    code = "invalid_id_token"


class PrincipalRejectedError(AuthenticationError):
    """Raised by a principal validator to refuse an otherwise successful login."""

    code = "invalid_token"
