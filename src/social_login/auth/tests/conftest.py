"""Shared fixtures for authentication tests."""

import httpx
import pytest

from src.social_login.auth.flow import OAuth2LoginFlow
from src.social_login.auth.flow_state import AuthorizationRequestStore
from src.social_login.auth.models import Principal
from src.social_login.auth.registrations import ClientRegistrationRepository
from src.social_login.auth.session_store import InMemorySessionStore
from src.social_login.auth.validators import GitHubOrganizationValidator

REDIRECT_URI = "http://localhost:8080/login/oauth2/code/github"


@pytest.fixture
def principal() -> Principal:
    """Provide a GitHub principal."""
    return Principal(
        id="42",
        display_name="Alice",
        provider="github",
        attributes={"id": 42, "login": "alice", "name": "Alice"},
    )


@pytest.fixture
def registrations(settings) -> ClientRegistrationRepository:
    """GitHub and Google registrations from the test settings."""
    return ClientRegistrationRepository.from_settings(settings.registrations)


@pytest.fixture
def http_client(fake_provider) -> httpx.AsyncClient:
    """Outbound client that talks to the fake provider."""
    return httpx.AsyncClient(transport=fake_provider.transport)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore(idle_timeout_seconds=1800)


@pytest.fixture
def authorization_requests() -> AuthorizationRequestStore:
    return AuthorizationRequestStore(ttl_seconds=600)


@pytest.fixture
def flow(registrations, session_store, authorization_requests, http_client) -> OAuth2LoginFlow:
    """Login flow without a principal validator."""
    return OAuth2LoginFlow(
        registrations=registrations,
        session_store=session_store,
        authorization_requests=authorization_requests,
        http_client=http_client,
    )


@pytest.fixture
def org_flow(registrations, session_store, authorization_requests, http_client) -> OAuth2LoginFlow:
    """Login flow that requires membership of spring-projects."""
    return OAuth2LoginFlow(
        registrations=registrations,
        session_store=session_store,
        authorization_requests=authorization_requests,
        http_client=http_client,
        validator=GitHubOrganizationValidator(http_client, "spring-projects"),
    )
