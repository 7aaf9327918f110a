"""Compliance tier classification and ratchet (domain service).

Tier Rules:
- COMPLIANT requires first and last name, a complete mailing address
  (street, city, state, zip), an occupation, and either an employer or a
  recognized self-employed / not-employed / retired classification.
- Anything less is GUEST.

Ratchet:
    The effective tier is ``max(recorded, achievable)``. Once a contributor
    has reached COMPLIANT, deleting profile fields never projects them back
    down to GUEST; otherwise a user could dodge stricter validation
    mid-cycle.

All functions are pure. No network calls.
"""

from __future__ import annotations

from collections.abc import Iterable

from celebration_engine.domain.models.celebration import Celebration
from celebration_engine.domain.models.compliance import (
    ComplianceTier,
    ContributorProfile,
)


def achievable_tier(profile: ContributorProfile) -> ComplianceTier:
    """Classify the tier a profile qualifies for on its own.

    Args:
        profile: Current contributor profile.

    Returns:
        COMPLIANT when every required field is present, else GUEST.
    """
    if profile.has_name and profile.has_mailing_address and profile.has_employment:
        return ComplianceTier.COMPLIANT
    return ComplianceTier.GUEST


def effective_tier(
    recorded_tier: ComplianceTier | None,
    achievable: ComplianceTier,
) -> ComplianceTier:
    """Apply the ratchet.

    Args:
        recorded_tier: Highest tier previously recorded, None if none.
        achievable: Tier the current profile qualifies for.

    Returns:
        The greater of the two under GUEST < COMPLIANT.
    """
    if recorded_tier is None:
        return achievable
    return max(recorded_tier, achievable)


def tier_high_water_mark(
    history: Iterable[Celebration],
    denormalized: ComplianceTier | None = None,
) -> ComplianceTier | None:
    """Highest tier ever recorded for a contributor.

    Looks at the tier captured in each donor snapshot and in every ledger
    entry's ``compliance_tier_at_time``.

    Args:
        history: The contributor's celebrations.
        denormalized: A stored high-water mark, if the caller keeps one.

    Returns:
        The highest tier seen, or None when nothing was recorded.
    """
    highest = denormalized
    for celebration in history:
        tiers = [celebration.donor_snapshot.compliance_tier]
        tiers.extend(e.compliance_tier_at_time for e in celebration.status_ledger)
        for tier in tiers:
            if highest is None or tier > highest:
                highest = tier
    return highest


def snapshot_supports_tier(profile: ContributorProfile, tier: ComplianceTier) -> bool:
    """Whether a donor snapshot on its own justifies ``tier``.

    Used for the ledger's ``fec_compliant`` audit flag. A ratcheted
    COMPLIANT contributor whose snapshot lacks fields is flagged False.
    """
    return achievable_tier(profile) >= tier
