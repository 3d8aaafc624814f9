"""
Unit tests for the access gate.
"""

import pytest

from shared.errors import NotEntitledError
from service_entitlements.app.entitlements.gate import is_entitled, require_entitlement
from service_entitlements.app.entitlements.models import EntitlementRecord

from .helpers import T0, DAY_MS


class TestAccessGate:
    """Test cases for is_entitled / require_entitlement."""

    def test_trial_boundary_is_inclusive(self):
        record = EntitlementRecord(trial_expire_date=T0)

        assert is_entitled(record, T0) is True
        assert is_entitled(record, T0 - 1) is True
        assert is_entitled(record, T0 + 1) is False

    def test_premium_always_entitled(self):
        expired = EntitlementRecord(trial_expire_date=T0, has_premium=True)
        no_trial = EntitlementRecord(has_premium=True)

        assert is_entitled(expired, T0 + 365 * DAY_MS) is True
        assert is_entitled(no_trial, 0) is True

    def test_no_trial_no_premium_denied(self):
        assert is_entitled(EntitlementRecord(), T0) is False

    def test_record_from_attributes_requires_literal_true(self):
        record = EntitlementRecord.from_attributes({"hasPremium": "true", "trialExpireDate": None})

        assert record.has_premium is False
        assert is_entitled(record, T0) is False

    def test_record_from_attributes_accepts_float_timestamps(self):
        record = EntitlementRecord.from_attributes({"trialExpireDate": float(T0)})

        assert record.trial_expire_date == T0

    def test_require_entitlement_raises_not_entitled(self):
        with pytest.raises(NotEntitledError) as exc_info:
            require_entitlement(EntitlementRecord(trial_expire_date=T0), T0 + 1, "ai_suggestions")

        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"feature": "ai_suggestions"}

    def test_require_entitlement_passes_within_trial(self):
        require_entitlement(EntitlementRecord(trial_expire_date=T0), T0, "notifications")
