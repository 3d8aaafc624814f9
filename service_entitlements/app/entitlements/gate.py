"""
Access gate for metered features.

Every feature that consumes trial/premium access must call
``require_entitlement``; no feature implements its own check.
"""

from shared.errors import NotEntitledError
from shared.logging import get_logger

from .models import EntitlementRecord

logger = get_logger("entitlements.gate")


def is_entitled(record: EntitlementRecord, now: int) -> bool:
    """True while premium, or until the trial expiry instant inclusive."""
    if record.has_premium is True:
        return True
    return record.trial_expire_date is not None and now <= record.trial_expire_date


def require_entitlement(record: EntitlementRecord, now: int, feature: str,
                        message: str = "User has no permissions.") -> None:
    """Raise NotEntitledError unless the record grants access at ``now``."""
    if is_entitled(record, now):
        return

    logger.info(
        "Access denied",
        feature=feature,
        has_premium=record.has_premium,
        trial_expire_date=record.trial_expire_date,
        now=now
    )
    raise NotEntitledError(message, details={"feature": feature})
