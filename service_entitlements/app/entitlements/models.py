"""
Entitlement data models.

The entitlement record lives inside the identity provider's per-user
attribute bag under three keys. Everything else in the bag belongs to
someone else and is carried through writes untouched.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass, field

TRIAL_EXPIRE_DATE = "trialExpireDate"
HAS_PREMIUM = "hasPremium"
LAST_SUBSCRIPTION_CHECK = "lastSubscriptionCheck"

TRIAL_LENGTH_MS = 7 * 24 * 60 * 60 * 1000
REFRESH_INTERVAL_MS = 24 * 60 * 60 * 1000


def _as_millis(value: Any) -> Optional[int]:
    """Coerce a stored timestamp to epoch milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


@dataclass(frozen=True)
class EntitlementRecord:
    """Trial window, premium flag and last re-verification time."""
    trial_expire_date: Optional[int] = None
    has_premium: bool = False
    last_subscription_check: Optional[int] = None

    @classmethod
    def from_attributes(cls, attributes: Optional[Dict[str, Any]]) -> "EntitlementRecord":
        attributes = attributes or {}
        return cls(
            trial_expire_date=_as_millis(attributes.get(TRIAL_EXPIRE_DATE)),
            has_premium=attributes.get(HAS_PREMIUM) is True,
            last_subscription_check=_as_millis(attributes.get(LAST_SUBSCRIPTION_CHECK)),
        )


@dataclass
class AuthenticatedUser:
    """User resolved from a credential by an identity provider."""
    user_id: str
    created_at: Optional[int] = None
    email: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    def has_attribute(self, key: str) -> bool:
        """True when ``key`` holds a stored value, coercible or not."""
        return self.attributes.get(key) is not None

    @property
    def entitlement(self) -> EntitlementRecord:
        return EntitlementRecord.from_attributes(self.attributes)

    def merged_attributes(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Return the full attribute bag with ``changes`` applied on top."""
        return {**self.attributes, **changes}


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of a periodic premium re-check."""
    updated: bool
    has_premium: Optional[bool] = None
    reason: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        if self.updated:
            return {"updated": True, "hasPremium": self.has_premium}
        return {"skipped": True, "reason": self.reason}
