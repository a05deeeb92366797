"""Business-rule checks run on a principal before its session is created."""

import logging
from typing import Protocol

import httpx

from src.social_login.auth.exceptions import PrincipalRejectedError, UserInfoError
from src.social_login.auth.models import Principal, ProviderRegistration

logger = logging.getLogger(__name__)


class PrincipalValidator(Protocol):
    """Accepts (possibly augmenting) or rejects a freshly fetched principal."""

    async def validate(
        self, principal: Principal, access_token: str, registration: ProviderRegistration
    ) -> Principal:
        """
        Args:
            principal: Principal built from the provider's user info
            access_token: Access token from the same login, for extra provider calls
            registration: Registration the principal came from

        Returns:
            The principal to store in the session

        Raises:
            PrincipalRejectedError: If the login must be refused
        """
        ...


class GitHubOrganizationValidator:
    """
    Only lets in GitHub users who belong to one organization.

    Membership comes from the authenticated ``/user/orgs`` API, called with the
    login's own access token. Principals from other registrations pass
    through untouched.

    Example:
        >>> validator = GitHubOrganizationValidator(http_client, "spring-projects")
        >>> principal = await validator.validate(principal, access_token, registration)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        organization: str,
        orgs_uri: str = "https://api.github.com/user/orgs",
        registration_id: str = "github",
    ):
        self.http_client = http_client
        self.organization = organization
        self.orgs_uri = orgs_uri
        self.registration_id = registration_id

    async def validate(
        self, principal: Principal, access_token: str, registration: ProviderRegistration
    ) -> Principal:
        if registration.registration_id != self.registration_id:
            return principal

        organizations = await self._fetch_organizations(access_token)
        if any(
            isinstance(org, dict) and org.get("login") == self.organization
            for org in organizations
        ):
            return principal

        logger.warning(
            f"Login rejected: user {principal.id} is not in organization {self.organization}",
            extra={
                "error_type": "organization_membership_missing",
                "principal_id": principal.id,
                "organization": self.organization,
            },
        )
        raise PrincipalRejectedError(f"Not in {self.organization} team")

    async def _fetch_organizations(self, access_token: str) -> list:
        try:
            response = await self.http_client.get(
                self.orgs_uri,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.github+json",
                },
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"Organization lookup failed: {e}",
                extra={"error_type": "organization_lookup_failed"},
            )
            raise UserInfoError(f"Failed to fetch organizations: {e}") from e

        if not response.is_success:
            logger.warning(
                f"Organization lookup returned HTTP {response.status_code}",
                extra={"error_type": "organization_lookup_failed", "status": response.status_code},
            )
            raise UserInfoError(f"Failed to fetch organizations: HTTP {response.status_code}")

        try:
            organizations = response.json()
        except ValueError as e:
            raise UserInfoError("Failed to fetch organizations: invalid JSON") from e

        if not isinstance(organizations, list):
            raise UserInfoError("Failed to fetch organizations: unexpected response")
        return organizations
