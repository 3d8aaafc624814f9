"""
Test doubles and factories for the entitlements service.
"""

import copy
import json
from typing import Dict, Any, List, Optional, Tuple

from shared.config import get_config
from shared.errors import CredentialInvalidError, PersistenceError, VerificationUnavailableError
from service_entitlements.app.entitlements.models import AuthenticatedUser

DAY_MS = 24 * 60 * 60 * 1000
T0 = 1_700_000_000_000


def create_mock_user(user_id: str = "user-123", created_at: Optional[int] = T0,
                     email: Optional[str] = "test@example.com",
                     attributes: Optional[Dict[str, Any]] = None) -> AuthenticatedUser:
    """Create an authenticated user."""
    return AuthenticatedUser(
        user_id=user_id,
        created_at=created_at,
        email=email,
        attributes=dict(attributes or {}),
    )


def create_test_config(**overrides):
    """Service config that never reads provider keys from the environment."""
    values = {
        "supabase_service_role_key": "service-role",
        "adapty_api_key": "adapty-key",
        "skip_adapty_emails": "",
        "openrouter_api_key": "or-key",
        "or_model_name": "test/model",
        "os_app_id": "os-app",
        "os_api_key": "os-key",
        "android_package_name": "com.example.checklist",
        "firebase_project_id": "checklist-test",
    }
    values.update(overrides)
    return get_config("entitlements", 3000, **values)


class InMemoryIdentityProvider:
    """Identity provider keeping user records in a dict, keyed by credential."""

    def __init__(self):
        self.users: Dict[str, AuthenticatedUser] = {}
        self.tokens: Dict[str, str] = {}
        self.writes: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_writes = False

    def add_user(self, token: str, user: AuthenticatedUser) -> AuthenticatedUser:
        self.users[user.user_id] = user
        self.tokens[token] = user.user_id
        return user

    async def authenticate(self, credential: str) -> AuthenticatedUser:
        user_id = self.tokens.get(credential)
        if user_id is None:
            raise CredentialInvalidError("Invalid token")
        # Each request sees its own snapshot, like a fresh provider read
        return copy.deepcopy(self.users[user_id])

    async def update_attributes(self, user_id: str, attributes: Dict[str, Any]) -> None:
        if self.fail_writes:
            raise PersistenceError()
        self.writes.append((user_id, copy.deepcopy(attributes)))
        self.users[user_id].attributes = copy.deepcopy(attributes)

    def attributes_of(self, user_id: str) -> Dict[str, Any]:
        return self.users[user_id].attributes


class StubSubscriptionAuthority:
    """Subscription authority returning canned access levels."""

    def __init__(self, access_levels: Optional[List[Dict[str, Any]]] = None, fail: bool = False):
        self.access_levels = access_levels or []
        self.fail = fail
        self.calls: List[str] = []

    async def get_access_levels(self, user_id: str) -> List[Dict[str, Any]]:
        self.calls.append(user_id)
        if self.fail:
            raise VerificationUnavailableError("Failed to fetch subscription from Adapty")
        return self.access_levels


class FakeAIClient:
    """AI client returning fixed JSON."""

    def __init__(self, suggestions: Optional[List[str]] = None):
        self.suggestions = suggestions or ["Passport", "Charger"]
        self.calls: List[Tuple[str, Any]] = []

    async def suggest_items(self, user_id: str, title: str, items: List[Any]) -> str:
        self.calls.append(("suggestions", title))
        return json.dumps(self.suggestions)

    async def parse_checklist(self, user_id: str, text: str) -> str:
        self.calls.append(("parse", text))
        return json.dumps({"title": "Groceries", "items": self.suggestions})


class FakeNotifier:
    """Notifier recording dispatched pushes."""

    def __init__(self, status_code: int = 200, body: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.body = body or {"id": "notification-1", "recipients": 1}
        self.sent: List[Dict[str, Any]] = []

    async def send(self, user_ids, titles, messages, checklist_id=None):
        self.sent.append({
            "user_ids": list(user_ids),
            "titles": titles,
            "messages": messages,
            "checklist_id": checklist_id,
        })
        return self.status_code, self.body


class FakeClock:
    """Settable millisecond clock."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int):
        self.now += millis
