"""OAuth2 authorization-code login flow."""

import logging
import secrets
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

import httpx

from src.social_login.auth.exceptions import (
    AuthenticationError,
    AuthorizationRequestNotFoundError,
    InvalidIdTokenError,
    InvalidStateError,
    ProviderError,
    TokenExchangeError,
    UserInfoError,
)
from src.social_login.auth.flow_state import AuthorizationRequestStore
from src.social_login.auth.id_token import IdTokenValidator
from src.social_login.auth.jwks import JWKSCache
from src.social_login.auth.models import (
    AuthorizationRequest,
    ClientAuthenticationMethod,
    Principal,
    ProviderRegistration,
    Session,
)
from src.social_login.auth.registrations import ClientRegistrationRepository
from src.social_login.auth.session_store import InMemorySessionStore, generate_token
from src.social_login.auth.validators import PrincipalValidator

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/login/oauth2/code/{registration_id}"
AUTHORIZATION_PATH = "/oauth2/authorization/{registration_id}"


class OAuth2LoginFlow:
    """
    Drives the authorization-code exchange with a configured provider.

    ``start`` produces the redirect to the provider and remembers the
    request; ``complete`` handles the provider's callback and, on success,
    commits a new session. Nothing is committed when any step fails.

    Steps of ``complete``:
    1. Match ``state`` against the browser-bound value and the pending request
    2. Reject provider-reported errors
    3. Exchange the code for an access token
    4. Fetch user info with that token
    5. Verify the ID token (OIDC registrations only)
    6. Build the principal and run the principal validator, if any
    7. Create the session

    Example:
        >>> flow = OAuth2LoginFlow(registrations, sessions, requests, http_client)
        >>> url, request = await flow.start("github", "https://app/login/oauth2/code/github")
        >>> session = await flow.complete("github", {"code": "...", "state": "..."}, bound_state)
    """

    def __init__(
        self,
        registrations: ClientRegistrationRepository,
        session_store: InMemorySessionStore,
        authorization_requests: AuthorizationRequestStore,
        http_client: httpx.AsyncClient,
        validator: PrincipalValidator | None = None,
        jwks_cache_ttl: int = 3600,
        id_token_leeway: int = 60,
    ):
        self.registrations = registrations
        self.session_store = session_store
        self.authorization_requests = authorization_requests
        self.http_client = http_client
        self.validator = validator
        self.jwks_cache_ttl = jwks_cache_ttl
        self.id_token_leeway = id_token_leeway
        self._id_token_validators: dict[str, IdTokenValidator] = {}

    async def start(
        self, registration_id: str, redirect_uri: str
    ) -> tuple[str, AuthorizationRequest]:
        """
        Build the provider authorization URL for a new login.

        Args:
            registration_id: Registration selected by the login path
            redirect_uri: Absolute callback URI for this registration

        Returns:
            Tuple of (authorization URL, saved authorization request)

        Raises:
            RegistrationNotFoundError: If the registration is not configured
        """
        registration = self.registrations.get(registration_id)

        request = AuthorizationRequest(
            state=generate_token(),
            registration_id=registration_id,
            redirect_uri=redirect_uri,
            nonce=generate_token() if registration.is_oidc else None,
        )
        await self.authorization_requests.save(request)

        params = {
            "response_type": "code",
            "client_id": registration.client_id,
            "scope": " ".join(registration.scopes),
            "state": request.state,
            "redirect_uri": redirect_uri,
        }
        if request.nonce:
            params["nonce"] = request.nonce

        logger.info(
            f"Redirecting to {registration_id} authorization endpoint",
            extra={"registration_id": registration_id},
        )
        return f"{registration.authorization_uri}?{urlencode(params)}", request

    async def complete(
        self,
        registration_id: str,
        params: Mapping[str, str],
        bound_state: str | None,
    ) -> Session:
        """
        Handle the provider callback and create the session.

        Args:
            registration_id: Registration from the callback path
            params: Callback query parameters (code, state, or error)
            bound_state: State remembered by this browser when the login started

        Returns:
            Newly created session bound to the authenticated principal

        Raises:
            AuthenticationError: On any flow or validation failure
        """
        registration = self.registrations.find(registration_id)
        if registration is None:
            raise AuthenticationError(
                f"Client registration not found with id: {registration_id}",
                code="client_registration_not_found",
            )

        # Provider errors are only trusted once state ties them to this browser
        request = await self._consume_authorization_request(registration_id, params, bound_state)

        if "error" in params:
            error = params["error"]
            raise ProviderError(params.get("error_description") or error, code=error)

        code = params.get("code")
        if not code:
            raise AuthenticationError("Authorization code is missing", code="invalid_request")

        token_response = await self._exchange_code(registration, code, request.redirect_uri)
        access_token = token_response["access_token"]

        attributes = await self._fetch_user_info(registration, access_token)

        if registration.is_oidc:
            claims = await self._verify_id_token(
                registration, token_response.get("id_token"), request.nonce, access_token
            )
            if "sub" in attributes and attributes["sub"] != claims["sub"]:
                raise UserInfoError("User info subject does not match the ID Token subject")
            attributes = {**claims, **attributes}

        principal = self._build_principal(registration, attributes)

        if self.validator is not None:
            principal = await self.validator.validate(principal, access_token, registration)

        return await self.session_store.create(principal)

    async def _consume_authorization_request(
        self, registration_id: str, params: Mapping[str, str], bound_state: str | None
    ) -> AuthorizationRequest:
        state = params.get("state")
        if not state:
            raise InvalidStateError("The state parameter is missing")

        if not bound_state or not secrets.compare_digest(state.encode(), bound_state.encode()):
            logger.warning(
                "Callback state does not match the state bound to this browser",
                extra={"error_type": "state_mismatch", "registration_id": registration_id},
            )
            raise InvalidStateError("The state parameter does not match this browser")

        request = await self.authorization_requests.consume(state)
        if request is None:
            raise AuthorizationRequestNotFoundError("Authorization request not found or expired")

        if request.registration_id != registration_id:
            raise InvalidStateError("The state parameter belongs to a different registration")

        return request

    async def _exchange_code(
        self, registration: ProviderRegistration, code: str, redirect_uri: str
    ) -> dict[str, Any]:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        }
        auth = None
        if registration.client_authentication_method == ClientAuthenticationMethod.CLIENT_SECRET_POST:
            data["client_id"] = registration.client_id
            data["client_secret"] = registration.client_secret
        else:
            auth = (registration.client_id, registration.client_secret)

        prefix = "An error occurred while attempting to retrieve the OAuth 2.0 Access Token Response"
        try:
            response = await self.http_client.post(
                registration.token_uri,
                data=data,
                headers={"Accept": "application/json"},
                auth=auth,
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"Token exchange with {registration.registration_id} failed: {e}",
                extra={
                    "error_type": "token_exchange_failed",
                    "registration_id": registration.registration_id,
                },
            )
            raise TokenExchangeError(f"{prefix}: {e}") from e

        if not response.is_success:
            logger.warning(
                f"Token exchange returned HTTP {response.status_code}",
                extra={
                    "error_type": "token_exchange_failed",
                    "registration_id": registration.registration_id,
                    "status": response.status_code,
                },
            )
            raise TokenExchangeError(f"{prefix}: HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise TokenExchangeError(f"{prefix}: invalid JSON") from e

        if not isinstance(payload, dict):
            raise TokenExchangeError(f"{prefix}: unexpected response")

        # Some providers (GitHub) report errors with a 200 status
        if "error" in payload:
            description = payload.get("error_description") or payload["error"]
            raise TokenExchangeError(f"{prefix}: {description}", code=str(payload["error"]))

        if not payload.get("access_token"):
            raise TokenExchangeError(f"{prefix}: missing access_token")

        logger.info(
            f"Token exchange successful for {registration.registration_id}",
            extra={"registration_id": registration.registration_id},
        )
        return payload

    async def _fetch_user_info(
        self, registration: ProviderRegistration, access_token: str
    ) -> dict[str, Any]:
        prefix = "An error occurred while attempting to retrieve the UserInfo Resource"
        try:
            response = await self.http_client.get(
                registration.user_info_uri,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"User info fetch from {registration.registration_id} failed: {e}",
                extra={
                    "error_type": "user_info_failed",
                    "registration_id": registration.registration_id,
                },
            )
            raise UserInfoError(f"{prefix}: {e}") from e

        if not response.is_success:
            logger.warning(
                f"User info returned HTTP {response.status_code}",
                extra={
                    "error_type": "user_info_failed",
                    "registration_id": registration.registration_id,
                    "status": response.status_code,
                },
            )
            raise UserInfoError(f"{prefix}: HTTP {response.status_code}")

        try:
            attributes = response.json()
        except ValueError as e:
            raise UserInfoError(f"{prefix}: invalid JSON") from e

        if not isinstance(attributes, dict):
            raise UserInfoError(f"{prefix}: unexpected response")
        return attributes

    async def _verify_id_token(
        self,
        registration: ProviderRegistration,
        id_token: str | None,
        nonce: str | None,
        access_token: str,
    ) -> dict[str, Any]:
        if not id_token:
            raise InvalidIdTokenError("Missing (required) ID Token in Token Response")

        validator = self._id_token_validators.get(registration.registration_id)
        if validator is None:
            validator = IdTokenValidator(
                jwks_cache=JWKSCache(
                    registration.jwk_set_uri, self.http_client, cache_ttl=self.jwks_cache_ttl
                ),
                issuer=registration.issuer,
                client_id=registration.client_id,
                leeway=self.id_token_leeway,
            )
            self._id_token_validators[registration.registration_id] = validator

        return await validator.verify(id_token, nonce=nonce, access_token=access_token)

    def _build_principal(
        self, registration: ProviderRegistration, attributes: dict[str, Any]
    ) -> Principal:
        principal_id = attributes.get(registration.user_name_attribute)
        if principal_id is None:
            raise UserInfoError(
                f"Missing required \"{registration.user_name_attribute}\" attribute in user info"
            )

        display_name = attributes.get(registration.display_name_attribute)
        return Principal(
            id=str(principal_id),
            display_name=str(display_name) if display_name is not None else None,
            provider=registration.registration_id,
            attributes=attributes,
        )
