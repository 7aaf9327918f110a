"""Contribution limit models."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from celebration_engine.domain.models.compliance import ComplianceTier, ResetType
from celebration_engine.domain.models.election import BoundarySource, ResetWindow


class LimitViolationReason(str, Enum):
    """Machine-readable reason a contribution was rejected.

    Callers render tier-specific guidance from this value.
    """

    BELOW_MINIMUM = "below_minimum"
    EXCEEDS_PER_CONTRIBUTION_CAP = "exceeds_per_contribution_cap"
    EXCEEDS_CUMULATIVE_CAP = "exceeds_cumulative_cap"
    EXCEEDS_PAC_ANNUAL_LIMIT = "exceeds_pac_annual_limit"


@dataclass(frozen=True)
class LimitAssessment:
    """Result of a remaining-limit calculation.

    Attributes:
        tier: Tier the limits were computed for.
        reset_type: Annual or election-cycle window.
        per_contribution_cap: Largest single contribution allowed.
        cumulative_cap: Annual cap (guest) or per-recipient-per-election cap.
        committed: Amount already committed inside the window.
        remaining: ``min(per_contribution_cap, cumulative_cap - committed)``,
            floored at zero.
        window: The active reset window.
        boundary_source: Fallback tier used for election dates, None for
            the annual window.
    """

    tier: ComplianceTier
    reset_type: ResetType
    per_contribution_cap: Decimal
    cumulative_cap: Decimal
    committed: Decimal
    remaining: Decimal
    window: ResetWindow
    boundary_source: BoundarySource | None = field(default=None)
    proposed_amount: Decimal | None = field(default=None)

    @property
    def cumulative_remaining(self) -> Decimal:
        return max(Decimal("0"), self.cumulative_cap - self.committed)

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    @property
    def allows_proposed(self) -> bool | None:
        """Whether ``proposed_amount`` fits, None when none was proposed."""
        if self.proposed_amount is None:
            return None
        return self.proposed_amount <= self.remaining


@dataclass(frozen=True)
class PacAssessment:
    """Annual PAC (tip) limit state for a contributor."""

    pac_limit: Decimal
    committed: Decimal
    window: ResetWindow

    @property
    def remaining(self) -> Decimal:
        return max(Decimal("0"), self.pac_limit - self.committed)

    @property
    def limit_reached(self) -> bool:
        return self.committed >= self.pac_limit
