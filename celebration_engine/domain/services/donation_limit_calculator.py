"""Donation limit calculator (domain service).

Pure arithmetic over a contributor's celebration history. The calculator
is advisory: it reports how much may still be contributed and raises a
typed LimitExceededError from ``check_contribution`` when asked to gate an
amount. Persistence and the decision to reject belong to the caller.

Counting rules:
- Records count from the moment they are committed (``created_at``).
- ACTIVE, PAUSED and RESOLVED records count; only DEFUNCT records, which
  were never charged, are excluded.
- Guest: every recipient, inside the annual window.
- Compliant: the same recipient only, inside the current election window.
- Tips count toward the annual PAC limit, separately from donations.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from celebration_engine.config.engine_config import (
    DEFAULT_LIMITS_CONFIG,
    ComplianceLimitsConfig,
)
from celebration_engine.domain.errors.limits import (
    LimitExceededError,
    LimitUndeterminedError,
)
from celebration_engine.domain.models.celebration import Celebration
from celebration_engine.domain.models.celebration_status import CelebrationStatus
from celebration_engine.domain.models.compliance import (
    RESET_TYPE_BY_TIER,
    ComplianceTier,
)
from celebration_engine.domain.models.election import ResetBoundary, ResetWindow
from celebration_engine.domain.models.limits import (
    LimitAssessment,
    LimitViolationReason,
    PacAssessment,
)
from celebration_engine.domain.services.reset_windows import (
    annual_window,
    election_window,
)

_ZERO = Decimal("0")


def counts_toward_limit(celebration: Celebration) -> bool:
    """Whether a record's amounts still count toward caps."""
    return celebration.current_status != CelebrationStatus.DEFUNCT


class DonationLimitCalculator:
    """Computes remaining contribution capacity.

    Attributes:
        _limits: Cap amounts and reference offset.
    """

    def __init__(self, limits: ComplianceLimitsConfig | None = None) -> None:
        self._limits = limits or DEFAULT_LIMITS_CONFIG

    @property
    def limits(self) -> ComplianceLimitsConfig:
        return self._limits

    def per_contribution_cap(self, tier: ComplianceTier) -> Decimal:
        if tier == ComplianceTier.COMPLIANT:
            return self._limits.compliant_per_donation
        return self._limits.guest_per_donation

    def cumulative_cap(self, tier: ComplianceTier) -> Decimal:
        if tier == ComplianceTier.COMPLIANT:
            return self._limits.compliant_per_election
        return self._limits.guest_annual_cap

    def window_for(
        self,
        tier: ComplianceTier,
        as_of: datetime,
        boundary: ResetBoundary | None,
        jurisdiction: str | None = None,
    ) -> ResetWindow:
        """Reset window that applies to ``tier`` at ``as_of``.

        Raises:
            LimitUndeterminedError: If the compliant tier has no boundary.
        """
        offset = self._limits.reset_utc_offset_hours
        if tier == ComplianceTier.GUEST:
            return annual_window(as_of, offset)
        if boundary is None:
            raise LimitUndeterminedError(jurisdiction or "unknown")
        return election_window(boundary, as_of, offset)

    def remaining_limit(
        self,
        tier: ComplianceTier,
        history: Iterable[Celebration],
        boundary: ResetBoundary | None,
        new_amount: Decimal | None = None,
        *,
        as_of: datetime,
        recipient_id: str,
        jurisdiction: str | None = None,
        exclude_record_id: str | None = None,
    ) -> LimitAssessment:
        """Compute how much more may be contributed.

        Args:
            tier: Effective compliance tier.
            history: The contributor's celebrations.
            boundary: Election boundary; required for the compliant tier.
            new_amount: Proposed amount, echoed on the assessment.
            as_of: Moment of the proposed contribution.
            recipient_id: Proposed recipient.
            jurisdiction: Recipient jurisdiction, for error reporting.
            exclude_record_id: A record to leave out of the sum, used when
                re-validating an existing record.

        Returns:
            LimitAssessment whose ``remaining`` is never negative.

        Raises:
            LimitUndeterminedError: If the compliant tier has no boundary.
        """
        window = self.window_for(tier, as_of, boundary, jurisdiction)
        committed = _ZERO
        for celebration in history:
            if celebration.id == exclude_record_id:
                continue
            if not counts_toward_limit(celebration):
                continue
            if not window.contains(celebration.created_at):
                continue
            if (
                tier == ComplianceTier.COMPLIANT
                and celebration.recipient_id != recipient_id
            ):
                continue
            committed += celebration.donation

        per_cap = self.per_contribution_cap(tier)
        cumulative = self.cumulative_cap(tier)
        remaining = max(_ZERO, min(per_cap, cumulative - committed))
        return LimitAssessment(
            tier=tier,
            reset_type=RESET_TYPE_BY_TIER[tier],
            per_contribution_cap=per_cap,
            cumulative_cap=cumulative,
            committed=committed,
            remaining=remaining,
            window=window,
            boundary_source=(
                boundary.source
                if tier == ComplianceTier.COMPLIANT and boundary is not None
                else None
            ),
            proposed_amount=new_amount,
        )

    def pac_assessment(
        self,
        history: Iterable[Celebration],
        *,
        as_of: datetime,
        exclude_record_id: str | None = None,
    ) -> PacAssessment:
        """Annual tip total against the PAC limit."""
        window = annual_window(as_of, self._limits.reset_utc_offset_hours)
        committed = sum(
            (
                c.tip
                for c in history
                if c.id != exclude_record_id
                and counts_toward_limit(c)
                and window.contains(c.created_at)
            ),
            _ZERO,
        )
        return PacAssessment(
            pac_limit=self._limits.pac_annual_limit,
            committed=committed,
            window=window,
        )

    def check_contribution(self, amount: Decimal, assessment: LimitAssessment) -> None:
        """Gate a proposed donation amount.

        Raises:
            LimitExceededError: With BELOW_MINIMUM, EXCEEDS_PER_CONTRIBUTION_CAP
                or EXCEEDS_CUMULATIVE_CAP.
        """
        if amount < self._limits.min_donation:
            raise LimitExceededError(
                reason=LimitViolationReason.BELOW_MINIMUM,
                attempted=amount,
                allowed=self._limits.min_donation,
            )
        if amount > assessment.per_contribution_cap:
            raise LimitExceededError(
                reason=LimitViolationReason.EXCEEDS_PER_CONTRIBUTION_CAP,
                attempted=amount,
                allowed=assessment.remaining,
            )
        if amount > assessment.cumulative_remaining:
            raise LimitExceededError(
                reason=LimitViolationReason.EXCEEDS_CUMULATIVE_CAP,
                attempted=amount,
                allowed=assessment.remaining,
            )

    def check_tip(self, tip: Decimal, assessment: PacAssessment) -> None:
        """Gate a proposed tip against the annual PAC limit.

        Raises:
            LimitExceededError: With EXCEEDS_PAC_ANNUAL_LIMIT.
        """
        if tip > assessment.remaining:
            raise LimitExceededError(
                reason=LimitViolationReason.EXCEEDS_PAC_ANNUAL_LIMIT,
                attempted=tip,
                allowed=assessment.remaining,
            )
