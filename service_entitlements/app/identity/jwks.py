"""
JWKS client for ID token verification.
"""

import time
import httpx
from typing import Dict, Any, Optional
from jose import jwt, jwk
from jose.exceptions import JWTError

from shared.logging import get_logger


class JWKSClient:
    """Fetches and caches the signing keys of an ID token issuer."""

    def __init__(self, jwks_url: str, cache_ttl: int = 3600, timeout: float = 10.0):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self.logger = get_logger("entitlements.jwks")

        self._jwks_cache: Optional[Dict[str, Any]] = None
        self._cache_timestamp: float = 0

    async def get_jwks(self) -> Dict[str, Any]:
        """Get JWKS from cache or fetch from the issuer."""
        current_time = time.time()

        if (self._jwks_cache is not None and
                current_time - self._cache_timestamp < self.cache_ttl):
            return self._jwks_cache

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.jwks_url)
                response.raise_for_status()
                jwks_data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error("Failed to fetch JWKS", error=str(e))
            # Stale keys beat no keys
            if self._jwks_cache is not None:
                self.logger.warning("Using stale JWKS cache due to fetch failure")
                return self._jwks_cache
            raise

        self._jwks_cache = jwks_data
        self._cache_timestamp = current_time

        self.logger.info(
            "JWKS refreshed successfully",
            keys_count=len(jwks_data.get("keys", []))
        )
        return jwks_data

    async def get_key(self, kid: str) -> Optional[Dict[str, Any]]:
        """Get a specific key by key ID."""
        jwks = await self.get_jwks()

        for key in jwks.get("keys", []):
            if key.get("kid") == kid:
                return key

        self.logger.warning("Key not found", kid=kid)
        return None

    async def verify_token(self, token: str, audience: str, issuer: str) -> Dict[str, Any]:
        """Verify an RS256 token and return its claims."""
        unverified_header = jwt.get_unverified_header(token)
        kid = unverified_header.get("kid")

        if not kid:
            raise JWTError("Token missing key ID")

        key_data = await self.get_key(kid)
        if not key_data:
            raise JWTError(f"Key not found: {kid}")

        rsa_key = jwk.construct(key_data, algorithm="RS256")

        return jwt.decode(
            token,
            rsa_key,
            algorithms=["RS256"],
            audience=audience,
            issuer=issuer,
            options={"verify_exp": True}
        )

    def clear_cache(self):
        """Clear the key cache."""
        self._jwks_cache = None
        self._cache_timestamp = 0
        self.logger.info("JWKS cache cleared")
