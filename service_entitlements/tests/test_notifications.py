"""
Unit tests for the OneSignal notification client.
"""

import json
import pytest
import httpx
from unittest.mock import AsyncMock, patch

from shared.errors import DownstreamError
from service_entitlements.app.notifications.onesignal_client import OneSignalClient


class TestOneSignalClient:
    """Test cases for OneSignalClient."""

    @pytest.fixture
    def notifier(self):
        return OneSignalClient(
            app_id="os-app",
            api_key="os-key",
            base_url="https://api.onesignal.com",
            android_channel_id="channel-1",
            android_package_name="com.example.checklist"
        )

    def test_build_payload_without_checklist(self, notifier):
        payload = notifier.build_payload(["u1", "u2"], {"en": "Updated"}, {"en": "Milk added"})

        assert payload == {
            "app_id": "os-app",
            "include_external_user_ids": ["u1", "u2"],
            "headings": {"en": "Updated"},
            "contents": {"en": "Milk added"},
            "android_channel_id": "channel-1",
            "thread_id": "com.example.checklist.checklist_updates",
            "android_group": "com.example.checklist.checklist_updates",
        }

    def test_build_payload_with_checklist(self, notifier):
        payload = notifier.build_payload(["u1"], {"en": "t"}, {"en": "m"}, checklist_id="list-9")

        assert payload["data"] == {"checklistId": "list-9", "collapse_id": "list-9"}

    @pytest.mark.asyncio
    async def test_send_passes_through_provider_response(self, notifier):
        with patch('httpx.AsyncClient') as mock_client:
            mock_post = AsyncMock(return_value=httpx.Response(
                status_code=400,
                content=json.dumps({"errors": ["All included players are not subscribed"]}),
                request=httpx.Request("POST", "https://api.onesignal.com/notifications")
            ))
            mock_client.return_value.__aenter__.return_value.post = mock_post

            status_code, body = await notifier.send(["u1"], {"en": "t"}, {"en": "m"})

            assert status_code == 400
            assert body == {"errors": ["All included players are not subscribed"]}
            assert mock_post.call_args.kwargs["params"] == {"c": "push"}
            assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Basic os-key"

    @pytest.mark.asyncio
    async def test_send_transport_error(self, notifier):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )

            with pytest.raises(DownstreamError):
                await notifier.send(["u1"], {"en": "t"}, {"en": "m"})
