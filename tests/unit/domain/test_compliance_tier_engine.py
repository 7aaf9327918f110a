"""Unit tests for compliance tier classification and the tier ratchet."""

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from celebration_engine.domain.models.compliance import (
    ComplianceTier,
    ContributorProfile,
    EmploymentStatus,
)
from celebration_engine.domain.services.compliance_tier_engine import (
    achievable_tier,
    effective_tier,
    snapshot_supports_tier,
    tier_high_water_mark,
)
from tests.helpers.builders import COMPLIANT_PROFILE, GUEST_PROFILE, make_celebration

CREATED = datetime(2026, 2, 1, tzinfo=timezone.utc)


class TestAchievableTier:
    def test_complete_profile_is_compliant(self) -> None:
        assert achievable_tier(COMPLIANT_PROFILE) == ComplianceTier.COMPLIANT

    def test_empty_profile_is_guest(self) -> None:
        assert achievable_tier(ContributorProfile()) == ComplianceTier.GUEST

    @pytest.mark.parametrize("missing", ["last_name", "address", "zip", "occupation"])
    def test_missing_required_field_is_guest(self, missing: str) -> None:
        profile = replace(COMPLIANT_PROFILE, **{missing: ""})
        assert achievable_tier(profile) == ComplianceTier.GUEST

    def test_employed_without_employer_is_guest(self) -> None:
        profile = replace(COMPLIANT_PROFILE, employer="  ")
        assert achievable_tier(profile) == ComplianceTier.GUEST

    @pytest.mark.parametrize(
        "status",
        [
            EmploymentStatus.SELF_EMPLOYED,
            EmploymentStatus.NOT_EMPLOYED,
            EmploymentStatus.RETIRED,
        ],
    )
    def test_exempt_status_needs_no_employer(self, status: EmploymentStatus) -> None:
        profile = replace(COMPLIANT_PROFILE, employer="", employment_status=status)
        assert achievable_tier(profile) == ComplianceTier.COMPLIANT


class TestRatchet:
    def test_tiers_are_ordered(self) -> None:
        assert ComplianceTier.GUEST < ComplianceTier.COMPLIANT
        assert max(ComplianceTier.COMPLIANT, ComplianceTier.GUEST) == ComplianceTier.COMPLIANT

    def test_no_record_uses_achievable(self) -> None:
        assert effective_tier(None, ComplianceTier.GUEST) == ComplianceTier.GUEST

    def test_recorded_compliant_never_drops_to_guest(self) -> None:
        assert (
            effective_tier(ComplianceTier.COMPLIANT, ComplianceTier.GUEST)
            == ComplianceTier.COMPLIANT
        )

    def test_guest_upgrades_when_profile_completes(self) -> None:
        assert (
            effective_tier(ComplianceTier.GUEST, ComplianceTier.COMPLIANT)
            == ComplianceTier.COMPLIANT
        )

    def test_high_water_mark_reads_history(self) -> None:
        history = [
            make_celebration(created_at=CREATED, tier=ComplianceTier.GUEST),
            make_celebration(created_at=CREATED, tier=ComplianceTier.COMPLIANT),
        ]
        assert tier_high_water_mark(history) == ComplianceTier.COMPLIANT

    def test_high_water_mark_empty_history(self) -> None:
        assert tier_high_water_mark([]) is None
        assert tier_high_water_mark([], denormalized=ComplianceTier.GUEST) == (
            ComplianceTier.GUEST
        )


class TestSnapshotSupportsTier:
    def test_guest_profile_supports_guest_only(self) -> None:
        assert snapshot_supports_tier(GUEST_PROFILE, ComplianceTier.GUEST) is True
        assert snapshot_supports_tier(GUEST_PROFILE, ComplianceTier.COMPLIANT) is False
