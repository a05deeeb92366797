"""OIDC ID token verification using the provider's JWKS."""

import logging
import secrets
from typing import Any

from jose import JWTError, jwt

from src.social_login.auth.exceptions import InvalidIdTokenError
from src.social_login.auth.jwks import JWKSCache

logger = logging.getLogger(__name__)


class IdTokenValidator:
    """
    Verifies ID tokens returned alongside the access token of an OIDC login.

    Validates signature, expiration, issuer, audience (the client id) and the
    nonce sent with the authorization request. When an access token is given
    and the ID token carries ``at_hash``, the hash is checked too.

    Supports both RS256 (RSA) and ES256 (Elliptic Curve) signing algorithms.

    Attributes:
        jwks_cache: JWKS cache for the provider's signing keys
        issuer: Expected issuer (iss claim)
        client_id: Expected audience (aud claim)
        leeway: Clock skew tolerance in seconds

    Example:
        >>> validator = IdTokenValidator(jwks_cache, "https://accounts.google.com", "client-id")
        >>> claims = await validator.verify(id_token, nonce="n-0S6_WzA2Mj")
    """

    def __init__(self, jwks_cache: JWKSCache, issuer: str, client_id: str, leeway: int = 60):
        self.jwks_cache = jwks_cache
        self.issuer = issuer
        self.client_id = client_id
        self.leeway = leeway

    async def verify(
        self, id_token: str, nonce: str | None, access_token: str | None = None
    ) -> dict[str, Any]:
        """
        Verify an ID token and return its claims.

        Args:
            id_token: Compact-serialized ID token from the token response
            nonce: Nonce sent with the authorization request
            access_token: Access token from the same response, for at_hash

        Returns:
            Verified claims (sub, iss, aud, exp, iat, nonce, ...)

        Raises:
            InvalidIdTokenError: If any check fails
        """
        try:
            unverified_header = jwt.get_unverified_header(id_token)
            kid = unverified_header.get("kid")

            if not kid:
                raise JWTError("ID token header missing 'kid' (key ID)")

            signing_key = await self.jwks_cache.get_signing_key(kid)

            claims = jwt.decode(
                id_token,
                signing_key,
                algorithms=["RS256", "ES256"],
                audience=self.client_id,
                issuer=self.issuer,
                access_token=access_token,
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_aud": True,
                    "verify_iss": True,
                    "require_exp": True,
                    "require_iat": True,
                    "require_sub": True,
                    "leeway": self.leeway,
                },
            )

        except JWTError as e:
            logger.warning(
                f"ID token verification failed: {e}",
                extra={"error_type": "id_token_verification_failed", "error": str(e)},
            )
            raise InvalidIdTokenError(f"An error occurred while validating the ID Token: {e}") from e

        except Exception as e:
            logger.error(
                f"Unexpected error during ID token verification: {e}",
                exc_info=True,
                extra={"error_type": "id_token_verification_error"},
            )
            raise InvalidIdTokenError(f"An error occurred while validating the ID Token: {e}") from e

        if nonce is not None:
            token_nonce = claims.get("nonce")
            if not isinstance(token_nonce, str) or not secrets.compare_digest(
                token_nonce.encode(), nonce.encode()
            ):
                logger.warning(
                    "ID token nonce mismatch",
                    extra={"error_type": "id_token_nonce_mismatch", "sub": claims.get("sub")},
                )
                raise InvalidIdTokenError("The nonce claim in the ID Token does not match")

        logger.debug(
            "ID token verified successfully",
            extra={"sub": claims.get("sub"), "kid": kid, "exp": claims.get("exp")},
        )
        return claims
