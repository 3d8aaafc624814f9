"""
Adapty server-side API client.
"""

import httpx
from typing import Dict, Any, List

from shared.logging import get_logger
from shared.errors import VerificationUnavailableError


class AdaptyClient:
    """Fetches a customer's access levels from Adapty."""

    PROFILE_PATH = "/api/v2/server-side-api/profile/"

    def __init__(self, api_key: str, base_url: str = "https://api.adapty.io", timeout: float = 10.0):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = get_logger("entitlements.adapty_client")

    async def get_access_levels(self, user_id: str) -> List[Dict[str, Any]]:
        """Return the raw access-level windows for ``user_id``.

        A profile without an ``access_levels`` list yields no windows.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}{self.PROFILE_PATH}",
                    headers={
                        "Authorization": f"Api-Key {self.api_key}",
                        "Content-Type": "application/json",
                        "adapty-customer-user-id": user_id,
                    }
                )
        except httpx.HTTPError as e:
            self.logger.error("Adapty HTTP error", user_id=user_id, error=str(e))
            raise VerificationUnavailableError(
                "Failed to fetch subscription from Adapty",
                details={"http_error": str(e)}
            )

        if not response.is_success:
            self.logger.error(
                "Adapty error",
                user_id=user_id,
                status_code=response.status_code,
                body=response.text[:500]
            )
            raise VerificationUnavailableError(
                "Failed to fetch subscription from Adapty",
                details={"status_code": response.status_code}
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise VerificationUnavailableError(
                "Adapty returned an unreadable profile",
                details={"error": str(e)}
            )

        data = payload.get("data") if isinstance(payload, dict) else None
        access_levels = data.get("access_levels") if isinstance(data, dict) else None
        if not isinstance(access_levels, list):
            return []
        return [level for level in access_levels if isinstance(level, dict)]
