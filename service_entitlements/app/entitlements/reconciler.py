"""
Entitlement reconciler.

Owns the three write paths of the entitlement record: trial activation,
first premium grant, and the periodic premium re-check.
"""

from typing import Any, Dict, Optional

from shared.errors import AlreadySetError, InputInvalidError, VerificationUnavailableError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..identity.base import IdentityProvider
from ..subscriptions.verifier import SubscriptionVerifier
from .models import (
    AuthenticatedUser, RefreshOutcome,
    TRIAL_EXPIRE_DATE, HAS_PREMIUM, LAST_SUBSCRIPTION_CHECK,
    TRIAL_LENGTH_MS, REFRESH_INTERVAL_MS,
)

SKIP_NO_PREMIUM = "No hasPremium metadata"
SKIP_CHECKED_RECENTLY = "Checked less than 24h ago"


def _unset_trial(user: AuthenticatedUser) -> Dict[str, Any]:
    """Write an explicit null trial only when none is stored; a stored value is never rewritten."""
    if TRIAL_EXPIRE_DATE in user.attributes:
        return {}
    return {TRIAL_EXPIRE_DATE: None}


class EntitlementReconciler:
    """Decides, verifies and persists entitlement changes for one user."""

    def __init__(self, identity_provider: IdentityProvider, verifier: SubscriptionVerifier,
                 metrics: Optional[MetricsCollector] = None):
        self.identity_provider = identity_provider
        self.verifier = verifier
        self.metrics = metrics
        self.logger = get_logger("entitlements.reconciler")

    async def activate_trial(self, user: AuthenticatedUser, now: int) -> int:
        """Set the trial expiry once, derived from the account creation time."""
        if user.has_attribute(TRIAL_EXPIRE_DATE):
            self._record("activate_trial", "already_set")
            raise AlreadySetError("Trial already set")

        if user.created_at is None:
            raise InputInvalidError("User has no creation timestamp")

        trial_expire_date = user.created_at + TRIAL_LENGTH_MS
        stored_premium = user.attributes.get(HAS_PREMIUM)
        await self.identity_provider.update_attributes(
            user.user_id,
            user.merged_attributes({
                TRIAL_EXPIRE_DATE: trial_expire_date,
                HAS_PREMIUM: stored_premium if stored_premium is not None else False,
            })
        )

        self._record("activate_trial", "activated")
        self.logger.info(
            "Trial activated",
            user_id=user.user_id,
            trial_expire_date=trial_expire_date,
            now=now
        )
        return trial_expire_date

    async def set_premium_if_eligible(self, user: AuthenticatedUser, now: int) -> bool:
        """First premium grant. Authority failures propagate; nothing is written."""
        record = user.entitlement
        if record.has_premium:
            self._record("set_premium", "already_set")
            raise AlreadySetError("Premium already set")

        try:
            has_premium = await self.verifier.verify(user.user_id, user.email, now)
        except VerificationUnavailableError:
            self._record("set_premium", "unavailable")
            raise

        if not has_premium:
            self._record("set_premium", "not_entitled")
            return False

        await self.identity_provider.update_attributes(
            user.user_id,
            user.merged_attributes({
                HAS_PREMIUM: True,
                **_unset_trial(user),
            })
        )

        self._record("set_premium", "granted")
        self.logger.info("Premium granted", user_id=user.user_id)
        return True

    async def refresh_premium(self, user: AuthenticatedUser, now: int) -> RefreshOutcome:
        """Periodic re-check, throttled to once per 24h.

        An unreachable authority counts as "not entitled" here and the check
        timestamp still advances.
        """
        record = user.entitlement
        if not record.has_premium:
            self._record("refresh_premium", "skipped_no_premium")
            return RefreshOutcome(updated=False, reason=SKIP_NO_PREMIUM)

        if (record.last_subscription_check is not None
                and now - record.last_subscription_check < REFRESH_INTERVAL_MS):
            self._record("refresh_premium", "skipped_recent")
            return RefreshOutcome(updated=False, reason=SKIP_CHECKED_RECENTLY)

        try:
            has_premium = await self.verifier.verify(user.user_id, user.email, now)
        except VerificationUnavailableError as e:
            self.logger.warning(
                "Subscription authority unavailable during refresh, revoking premium",
                user_id=user.user_id,
                error=e.message
            )
            has_premium = False

        await self.identity_provider.update_attributes(
            user.user_id,
            user.merged_attributes({
                **_unset_trial(user),
                HAS_PREMIUM: has_premium,
                LAST_SUBSCRIPTION_CHECK: now,
            })
        )

        self._record("refresh_premium", "active" if has_premium else "revoked")
        self.logger.info(
            "Premium refreshed",
            user_id=user.user_id,
            has_premium=has_premium
        )
        return RefreshOutcome(updated=True, has_premium=has_premium)

    def _record(self, operation: str, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("reconciliations_total", operation=operation, outcome=outcome)
