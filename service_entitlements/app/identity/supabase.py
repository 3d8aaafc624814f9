"""
Supabase auth identity provider.

Entitlement attributes live in the user's ``app_metadata``, which only the
service-role key can write.
"""

import httpx
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from shared.logging import get_logger
from shared.errors import CredentialInvalidError, DownstreamError, PersistenceError

from ..entitlements.models import AuthenticatedUser


def _parse_created_at(value: Any) -> Optional[int]:
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


class SupabaseIdentityProvider:
    """Identity provider backed by the Supabase auth REST API."""

    def __init__(self, supabase_url: str, service_role_key: str, timeout: float = 10.0):
        self.supabase_url = supabase_url.rstrip("/")
        self.service_role_key = service_role_key
        self.timeout = timeout
        self.logger = get_logger("entitlements.supabase")

    async def authenticate(self, credential: str) -> AuthenticatedUser:
        """Resolve an access token to the user it was issued for."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.supabase_url}/auth/v1/user",
                    headers={
                        "apikey": self.service_role_key,
                        "Authorization": f"Bearer {credential}",
                    }
                )
        except httpx.HTTPError as e:
            self.logger.error("Supabase auth HTTP error", error=str(e))
            raise DownstreamError("supabase", "Identity provider unavailable", details={"http_error": str(e)})

        if response.status_code >= 500:
            self.logger.error("Supabase auth error", status_code=response.status_code)
            raise DownstreamError("supabase", "Identity provider unavailable",
                                  details={"status_code": response.status_code})

        if response.status_code != 200:
            self.logger.warning("Auth error", status_code=response.status_code)
            raise CredentialInvalidError("Invalid token", details={"status_code": response.status_code})

        try:
            user = response.json()
        except ValueError:
            user = None
        if not isinstance(user, dict) or not user.get("id"):
            raise CredentialInvalidError("Invalid token")

        return AuthenticatedUser(
            user_id=user["id"],
            created_at=_parse_created_at(user.get("created_at")),
            email=user.get("email"),
            attributes=dict(user.get("app_metadata") or {}),
        )

    async def update_attributes(self, user_id: str, attributes: Dict[str, Any]) -> None:
        """Write the merged ``app_metadata`` bag through the admin API."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.put(
                    f"{self.supabase_url}/auth/v1/admin/users/{user_id}",
                    headers={
                        "apikey": self.service_role_key,
                        "Authorization": f"Bearer {self.service_role_key}",
                    },
                    json={"app_metadata": attributes}
                )
        except httpx.HTTPError as e:
            self.logger.error("Supabase update HTTP error", user_id=user_id, error=str(e))
            raise PersistenceError(details={"http_error": str(e)})

        if not response.is_success:
            self.logger.error(
                "Supabase update error",
                user_id=user_id,
                status_code=response.status_code,
                body=response.text[:500]
            )
            raise PersistenceError(details={"status_code": response.status_code})
