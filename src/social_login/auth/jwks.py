"""Provider signing keys for OIDC ID token verification."""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from jose import jwk
from jose.backends.base import Key

logger = logging.getLogger(__name__)

# Algorithm assumed for each key type when the JWK carries no "alg"
KTY_ALGORITHMS = {"RSA": "RS256", "EC": "ES256"}


class JWKSCache:
    """
    One provider's published signing keys, fetched lazily and kept for ``cache_ttl``.

    A lookup for a key id that is not cached triggers a single refetch before
    failing, so keys rotated by the provider are picked up without waiting
    for the TTL.

    Attributes:
        jwks_url: Registration ``jwk_set_uri``
        cache_ttl: Seconds before the key set is fetched again
        _keys: kid -> public key
        _last_refresh: When the key set was last replaced
        _http_client: Shared outbound client (owned by the application)

    Example:
        >>> cache = JWKSCache("https://www.googleapis.com/oauth2/v3/certs", http_client)
        >>> key = await cache.get_signing_key(header["kid"])
    """

    def __init__(self, jwks_url: str, http_client: httpx.AsyncClient, cache_ttl: int = 3600):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self._keys: dict[str, Key] = {}
        self._last_refresh: datetime | None = None
        self._http_client = http_client

    async def get_signing_key(self, kid: str) -> Key:
        """
        Return the provider key named by an ID token's ``kid`` header.

        Raises:
            ValueError: If the provider does not publish ``kid``, even after a refetch
            httpx.HTTPError: If the key set cannot be fetched
        """
        if self._needs_refresh():
            await self.refresh_keys()

        if kid not in self._keys:
            logger.warning(
                f"Unknown signing key '{kid}' for {self.jwks_url}, refetching",
                extra={"kid": kid, "cached_kids": list(self._keys)},
            )
            await self.refresh_keys()

        try:
            return self._keys[kid]
        except KeyError:
            raise ValueError(
                f"Key ID '{kid}' not found in JWKS. Available keys: {list(self._keys)}"
            ) from None

    async def refresh_keys(self) -> None:
        """
        Replace the cached keys with the provider's current key set.

        Raises:
            httpx.HTTPError: If the request fails
            ValueError: If the document is not a JWKS
        """
        try:
            response = await self._http_client.get(self.jwks_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to fetch JWKS from {self.jwks_url}: {e}",
                exc_info=True,
                extra={"error_type": "jwks_fetch_failed"},
            )
            raise

        try:
            keys = self._parse(response.json())
        except Exception as e:
            logger.error(
                f"Failed to parse JWKS: {e}",
                exc_info=True,
                extra={"error_type": "jwks_parse_failed", "jwks_url": self.jwks_url},
            )
            raise ValueError(f"Invalid JWKS from {self.jwks_url}: {e}") from e

        if not keys:
            logger.warning(
                "JWKS contains no usable keys, ID token verification will fail",
                extra={"jwks_url": self.jwks_url},
            )

        self._keys = keys
        self._last_refresh = datetime.now(UTC)
        logger.info(
            f"Loaded {len(keys)} signing keys from {self.jwks_url}",
            extra={"jwks_url": self.jwks_url, "key_ids": list(keys)},
        )

    @staticmethod
    def _parse(document: dict[str, Any]) -> dict[str, Key]:
        keys: dict[str, Key] = {}
        for key_data in document.get("keys", []):
            kid = key_data.get("kid")
            if not kid:
                logger.warning("Skipping JWKS key without 'kid'")
                continue

            algorithm = KTY_ALGORITHMS.get(key_data.get("kty"), key_data.get("alg", "RS256"))
            keys[kid] = jwk.construct(key_data, algorithm=algorithm)
        return keys

    def _needs_refresh(self) -> bool:
        if self._last_refresh is None:
            return True
        return (datetime.now(UTC) - self._last_refresh).total_seconds() >= self.cache_ttl
