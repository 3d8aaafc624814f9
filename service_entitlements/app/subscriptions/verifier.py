"""
Subscription verification against the subscription authority.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Iterable, List, Optional, Protocol
from contextlib import nullcontext
from dataclasses import dataclass

from shared.logging import get_logger
from shared.errors import VerificationUnavailableError
from shared.metrics import MetricsCollector


class SubscriptionAuthority(Protocol):
    """Source of a user's access-level windows."""

    async def get_access_levels(self, user_id: str) -> List[Dict[str, Any]]:
        ...


@dataclass(frozen=True)
class AccessWindow:
    """Access-level window; absent bounds are unbounded."""
    starts_at: Optional[int] = None
    expires_at: Optional[int] = None

    def is_active(self, now: int) -> bool:
        has_started = self.starts_at is None or now >= self.starts_at
        not_expired = self.expires_at is None or now <= self.expires_at
        return has_started and not_expired

    @classmethod
    def from_access_level(cls, level: Dict[str, Any]) -> "AccessWindow":
        return cls(
            starts_at=parse_timestamp(level.get("starts_at")),
            expires_at=parse_timestamp(level.get("expires_at")),
        )


def parse_timestamp(value: Any) -> Optional[int]:
    """Parse an ISO-8601 string or epoch-millisecond number; naive means UTC.

    Empty values are unbounded. Anything else that is not a timestamp raises
    ValueError.
    """
    if not value:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if not isinstance(value, str):
        raise ValueError(f"Not a timestamp: {value!r}")
    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def has_active_access(windows: Iterable[AccessWindow], now: int) -> bool:
    """True if at least one window covers ``now``."""
    return any(window.is_active(now) for window in windows)


class SubscriptionVerifier:
    """Reduces the authority's response to a single entitled/not-entitled decision."""

    def __init__(self, authority: SubscriptionAuthority, skip_emails: Iterable[str] = (),
                 metrics: Optional[MetricsCollector] = None):
        self.authority = authority
        self.skip_emails = {email.strip().lower() for email in skip_emails if email and email.strip()}
        self.metrics = metrics
        self.logger = get_logger("entitlements.verifier")

    async def verify(self, user_id: str, email: Optional[str], now: int) -> bool:
        """Return whether ``user_id`` is currently entitled.

        Raises VerificationUnavailableError when the authority cannot be
        consulted; the caller owns the fallback policy.
        """
        if email and email.lower() in self.skip_emails:
            self.logger.info("Subscription check bypassed for allow-listed email", user_id=user_id)
            self._record("allow_listed")
            return True

        timer = (
            self.metrics.time_operation("downstream_request_duration_seconds", provider="adapty")
            if self.metrics else nullcontext()
        )
        try:
            with timer:
                levels = await self.authority.get_access_levels(user_id)
        except VerificationUnavailableError:
            self._record("unavailable")
            raise

        try:
            windows = [AccessWindow.from_access_level(level) for level in levels]
        except ValueError as e:
            self._record("unavailable")
            raise VerificationUnavailableError(
                "Subscription authority returned malformed access levels",
                details={"error": str(e)}
            )

        entitled = has_active_access(windows, now)
        self._record("entitled" if entitled else "not_entitled")
        self.logger.debug(
            "Subscription verified",
            user_id=user_id,
            windows=len(windows),
            entitled=entitled
        )
        return entitled

    def _record(self, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("subscription_verifications_total", outcome=outcome)
