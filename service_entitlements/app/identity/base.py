"""
Identity provider interface.
"""

from typing import Dict, Any, Protocol

from ..entitlements.models import AuthenticatedUser


class IdentityProvider(Protocol):
    """Resolves credentials to users and persists their attribute bag."""

    async def authenticate(self, credential: str) -> AuthenticatedUser:
        """Return the user behind ``credential`` or raise CredentialInvalidError."""
        ...

    async def update_attributes(self, user_id: str, attributes: Dict[str, Any]) -> None:
        """Replace the user's attribute bag with ``attributes`` in one write.

        Raises PersistenceError when the write fails; the stored bag is then
        unchanged.
        """
        ...
