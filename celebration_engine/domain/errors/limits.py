"""Contribution limit errors."""

from __future__ import annotations

from decimal import Decimal

from celebration_engine.domain.exceptions import CelebrationEngineError
from celebration_engine.domain.models.limits import LimitViolationReason


class LimitUndeterminedError(CelebrationEngineError):
    """Raised when no election dates exist at any fallback tier.

    The calculation fails closed: an uncapped contribution is never allowed.

    Attributes:
        jurisdiction: Jurisdiction that could not be resolved.
        year: Election year looked up.
    """

    def __init__(self, jurisdiction: str, year: int | None = None) -> None:
        self.jurisdiction = jurisdiction
        self.year = year
        year_str = f" for {year}" if year is not None else ""
        super().__init__(
            f"Contribution limit undetermined: no live, cached or default "
            f"election dates for '{jurisdiction}'{year_str}"
        )


class LimitExceededError(CelebrationEngineError):
    """Raised when a proposed contribution would exceed a limit.

    Attributes:
        reason: Machine-readable violation reason.
        attempted: Proposed amount.
        allowed: Largest amount that would have been accepted.
    """

    def __init__(
        self,
        reason: LimitViolationReason,
        attempted: Decimal,
        allowed: Decimal,
    ) -> None:
        self.reason = reason
        self.attempted = attempted
        self.allowed = allowed
        super().__init__(
            f"Contribution of {attempted} rejected ({reason.value}); "
            f"allowed: {allowed}"
        )
