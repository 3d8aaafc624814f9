"""
ID token identity provider.

Entitlement attributes arrive as custom claims on a Firebase ID token. The
token is the only view of the user this provider has, so it cannot write.
"""

from typing import Dict, Any

from jose.exceptions import JWTError
import httpx

from shared.logging import get_logger
from shared.errors import CredentialInvalidError, DownstreamError, PersistenceError

from ..entitlements.models import (
    AuthenticatedUser, TRIAL_EXPIRE_DATE, HAS_PREMIUM, LAST_SUBSCRIPTION_CHECK,
)
from .jwks import JWKSClient

ENTITLEMENT_CLAIMS = (TRIAL_EXPIRE_DATE, HAS_PREMIUM, LAST_SUBSCRIPTION_CHECK)


class ClaimsIdentityProvider:
    """Identity provider backed by signed ID token claims."""

    def __init__(self, project_id: str, jwks_client: JWKSClient):
        self.project_id = project_id
        self.issuer = f"https://securetoken.google.com/{project_id}"
        self.jwks_client = jwks_client
        self.logger = get_logger("entitlements.claims")

    async def authenticate(self, credential: str) -> AuthenticatedUser:
        if credential.startswith("Bearer "):
            credential = credential[7:]

        try:
            claims = await self.jwks_client.verify_token(
                credential, audience=self.project_id, issuer=self.issuer
            )
        except JWTError as e:
            self.logger.warning("ID token verification failed", error=str(e))
            raise CredentialInvalidError("Invalid token", details={"token_error": str(e)})
        except httpx.HTTPError as e:
            raise DownstreamError("jwks", "Identity provider unavailable", details={"http_error": str(e)})

        user_id = claims.get("user_id") or claims.get("sub")
        if not user_id:
            raise CredentialInvalidError("Token missing subject")

        return AuthenticatedUser(
            user_id=user_id,
            email=claims.get("email"),
            attributes={name: claims[name] for name in ENTITLEMENT_CLAIMS if name in claims},
        )

    async def update_attributes(self, user_id: str, attributes: Dict[str, Any]) -> None:
        self.logger.error("Attribute write attempted on read-only provider", user_id=user_id)
        raise PersistenceError(
            "Identity provider is read-only",
            details={"provider": "claims"}
        )
