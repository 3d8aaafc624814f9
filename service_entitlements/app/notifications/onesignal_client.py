"""
OneSignal push notification client.
"""

import httpx
from typing import Dict, Any, List, Optional, Tuple

from shared.logging import get_logger
from shared.errors import DownstreamError


class OneSignalClient:
    """Dispatches checklist update pushes to a list of external user ids."""

    def __init__(self, app_id: str, api_key: str, base_url: str = "https://api.onesignal.com",
                 android_channel_id: Optional[str] = None, android_package_name: str = "",
                 timeout: float = 10.0):
        self.app_id = app_id
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.android_channel_id = android_channel_id
        self.android_package_name = android_package_name
        self.timeout = timeout
        self.logger = get_logger("entitlements.onesignal")

    def build_payload(self, user_ids: List[str], titles: Dict[str, str], messages: Dict[str, str],
                      checklist_id: Optional[Any] = None) -> Dict[str, Any]:
        group = f"{self.android_package_name}.checklist_updates"
        payload: Dict[str, Any] = {
            "app_id": self.app_id,
            "include_external_user_ids": list(user_ids),
            "headings": titles,
            "contents": messages,
            "android_channel_id": self.android_channel_id,
            "thread_id": group,
            "android_group": group,
        }

        if checklist_id is not None:
            payload["data"] = {
                "checklistId": checklist_id,
                "collapse_id": checklist_id,
            }
        return payload

    async def send(self, user_ids: List[str], titles: Dict[str, str], messages: Dict[str, str],
                   checklist_id: Optional[Any] = None) -> Tuple[int, Any]:
        """Send the push and return the provider's status code and body."""
        payload = self.build_payload(user_ids, titles, messages, checklist_id)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/notifications",
                    params={"c": "push"},
                    headers={
                        "Authorization": f"Basic {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload
                )
        except httpx.HTTPError as e:
            self.logger.error("OneSignal HTTP error", error=str(e))
            raise DownstreamError("onesignal", "Failed to send notification", details={"http_error": str(e)})

        try:
            body = response.json()
        except ValueError:
            raise DownstreamError(
                "onesignal",
                "Notification provider returned an unreadable response",
                details={"status_code": response.status_code}
            )

        if not response.is_success:
            self.logger.warning("OneSignal rejected notification", status_code=response.status_code, body=body)

        return response.status_code, body
