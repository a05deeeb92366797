"""Pytest configuration and shared fixtures."""

import time
from collections.abc import Callable, Iterator
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from jose import jwk, jwt

from src.social_login.config import RegistrationSettings, Settings, Variant
from src.social_login.main import create_app

GOOGLE_CLIENT_ID = "google-client-id"
SIGNING_KID = "test-key-1"


@pytest.fixture(scope="session")
def rsa_private_pem() -> bytes:
    """RSA private key (PEM) used to sign test ID tokens."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def jwks_document(rsa_private_pem: bytes) -> dict[str, Any]:
    """Public JWKS matching ``rsa_private_pem``."""
    public_jwk = jwk.construct(rsa_private_pem, algorithm="RS256").public_key().to_dict()
    public_jwk["kid"] = SIGNING_KID
    return {"keys": [public_jwk]}


@pytest.fixture(scope="session")
def sign_id_token(rsa_private_pem: bytes) -> Callable[[dict[str, Any]], str]:
    """Sign ID token claims with the test key."""

    def _sign(claims: dict[str, Any]) -> str:
        return jwt.encode(claims, rsa_private_pem, algorithm="RS256", headers={"kid": SIGNING_KID})

    return _sign


class FakeProvider:
    """
    Stub of the GitHub and Google endpoints the login flow talks to.

    Attributes are mutable per test to simulate provider behavior:
    token/user-info status codes, user attributes, organizations, and the
    nonce the ID token should echo.
    """

    def __init__(self, jwks: dict[str, Any], sign: Callable[[dict[str, Any]], str]):
        self.jwks = jwks
        self.sign = sign
        self.github_user: dict[str, Any] = {"id": 42, "login": "alice", "name": "Alice"}
        self.google_user: dict[str, Any] = {"sub": "1234", "name": "Bob", "email": "bob@example.com"}
        self.orgs: list[dict[str, Any]] = [{"login": "spring-projects"}]
        self.token_status = 200
        self.token_body: dict[str, Any] | None = None
        self.user_info_status = 200
        self.nonce: str | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"

        if url == "https://github.com/login/oauth/access_token":
            body = self.token_body or {"access_token": "gho_token", "token_type": "bearer"}
            return httpx.Response(self.token_status, json=body)
        if url == "https://api.github.com/user":
            return httpx.Response(self.user_info_status, json=self.github_user)
        if url == "https://api.github.com/user/orgs":
            return httpx.Response(200, json=self.orgs)

        if url == "https://www.googleapis.com/oauth2/v4/token":
            now = int(time.time())
            id_token = self.sign(
                {
                    "iss": "https://accounts.google.com",
                    "aud": GOOGLE_CLIENT_ID,
                    "sub": self.google_user["sub"],
                    "iat": now,
                    "exp": now + 300,
                    "nonce": self.nonce,
                }
            )
            body = self.token_body or {
                "access_token": "ya29_token",
                "token_type": "Bearer",
                "id_token": id_token,
            }
            return httpx.Response(self.token_status, json=body)
        if url == "https://www.googleapis.com/oauth2/v3/userinfo":
            return httpx.Response(self.user_info_status, json=self.google_user)
        if url == "https://www.googleapis.com/oauth2/v3/certs":
            return httpx.Response(200, json=self.jwks)

        return httpx.Response(404, json={"message": "Not Found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_provider(jwks_document, sign_id_token) -> FakeProvider:
    """Provide a fresh fake provider."""
    return FakeProvider(jwks_document, sign_id_token)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """
    Build test settings with GitHub and Google registrations.

    Example:
        >>> settings = make_settings(variant=Variant.LOGOUT)
    """

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "variant": Variant.CUSTOM_ERROR,
            "registrations": {
                "github": RegistrationSettings(client_id="github-client-id", client_secret="github-secret"),
                "google": RegistrationSettings(client_id=GOOGLE_CLIENT_ID, client_secret="google-secret"),
            },
            "required_organization": "spring-projects",
            "rate_limit_enabled": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    """Default test settings (custom-error variant)."""
    return make_settings()


@pytest.fixture
def client(settings: Settings, fake_provider: FakeProvider) -> Iterator[TestClient]:
    """
    Provide FastAPI test client wired to the fake provider.

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """
    with TestClient(create_app(settings, transport=fake_provider.transport)) as test_client:
        yield test_client


@pytest.fixture
def login(fake_provider: FakeProvider) -> Callable[..., httpx.Response]:
    """
    Run the browser side of the authorization-code flow.

    Returns the callback response (a redirect) without following it.
    """

    def _login(
        client: TestClient, registration_id: str = "github", code: str = "auth-code"
    ) -> httpx.Response:
        start = client.get(f"/oauth2/authorization/{registration_id}", follow_redirects=False)
        assert start.status_code == 302

        query = parse_qs(urlparse(start.headers["location"]).query)
        fake_provider.nonce = query.get("nonce", [None])[0]

        return client.get(
            f"/login/oauth2/code/{registration_id}",
            params={"code": code, "state": query["state"][0]},
            follow_redirects=False,
        )

    return _login


@pytest.fixture
def csrf_headers() -> Callable[[TestClient], dict[str, str]]:
    """Echo the client's CSRF cookie in the CSRF header."""

    def _headers(client: TestClient) -> dict[str, str]:
        return {"X-XSRF-TOKEN": client.cookies.get("XSRF-TOKEN") or ""}

    return _headers
