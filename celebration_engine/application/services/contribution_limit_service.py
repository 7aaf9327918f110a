"""Contribution limit service.

Outbound query and creation gate for contribution limits. Loads the
contributor's history, applies the tier ratchet, resolves the election
boundary for compliant contributors and delegates the arithmetic to
DonationLimitCalculator.

The query (``remaining_limit``) is advisory. ``check_new_contribution`` is
the enforcement gate used before a celebration is opened.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from celebration_engine.application.ports.celebration_repository import (
    CelebrationRepositoryProtocol,
)
from celebration_engine.application.ports.time_authority import TimeAuthorityProtocol
from celebration_engine.application.services.base import LoggingMixin
from celebration_engine.application.services.election_cycle_resolver import (
    ElectionCycleResolver,
)
from celebration_engine.domain.errors.limits import LimitExceededError
from celebration_engine.domain.models.celebration import Celebration, Recipient
from celebration_engine.domain.models.compliance import (
    ComplianceTier,
    ContributorProfile,
)
from celebration_engine.domain.models.election import ResetBoundary
from celebration_engine.domain.models.limits import LimitAssessment, PacAssessment
from celebration_engine.domain.services.compliance_tier_engine import (
    achievable_tier,
    effective_tier,
    tier_high_water_mark,
)
from celebration_engine.domain.services.donation_limit_calculator import (
    DonationLimitCalculator,
)


class ContributionLimitService(LoggingMixin):
    """Computes and enforces contribution limits for contributors."""

    def __init__(
        self,
        repository: CelebrationRepositoryProtocol,
        resolver: ElectionCycleResolver,
        time_authority: TimeAuthorityProtocol,
        calculator: DonationLimitCalculator | None = None,
    ) -> None:
        self._repository = repository
        self._resolver = resolver
        self._time = time_authority
        self._calculator = calculator or DonationLimitCalculator()
        self._init_logger(component="limits")

    @property
    def calculator(self) -> DonationLimitCalculator:
        return self._calculator

    async def recorded_tier(self, contributor_id: str) -> ComplianceTier | None:
        """Highest tier recorded on any of the contributor's celebrations."""
        history = await self._repository.list_by_contributor(contributor_id)
        return tier_high_water_mark(history)

    async def effective_tier(
        self,
        contributor_id: str,
        profile: ContributorProfile,
        recorded: ComplianceTier | None = None,
    ) -> ComplianceTier:
        """Ratcheted tier: the greater of recorded and achievable.

        Args:
            contributor_id: Contributor.
            profile: Current profile submission.
            recorded: A denormalized high-water mark kept by the caller.
        """
        history = await self._repository.list_by_contributor(contributor_id)
        high_water = tier_high_water_mark(history, denormalized=recorded)
        achievable = achievable_tier(profile)
        tier = effective_tier(high_water, achievable)
        if tier > achievable:
            self._log_operation(
                "effective_tier", contributor_id=contributor_id
            ).info(
                "tier_ratchet_held",
                recorded_tier=tier.value,
                achievable_tier=achievable.value,
            )
        return tier

    async def remaining_limit(
        self,
        contributor_id: str,
        tier: ComplianceTier,
        proposed_recipient: Recipient,
        proposed_amount: Decimal | None = None,
        *,
        as_of: datetime | None = None,
        exclude_record_id: str | None = None,
    ) -> LimitAssessment:
        """Remaining amount the contributor may give to a recipient.

        Raises:
            LimitUndeterminedError: If a compliant boundary cannot be resolved.
        """
        moment = as_of or self._time.now()
        history = await self._repository.list_by_contributor(contributor_id)
        boundary = await self._boundary_for(tier, proposed_recipient, moment)
        assessment = self._calculator.remaining_limit(
            tier,
            history,
            boundary,
            proposed_amount,
            as_of=moment,
            recipient_id=proposed_recipient.id,
            jurisdiction=proposed_recipient.jurisdiction,
            exclude_record_id=exclude_record_id,
        )
        self._log_operation(
            "remaining_limit",
            contributor_id=contributor_id,
            recipient_id=proposed_recipient.id,
        ).debug(
            "remaining_limit_computed",
            tier=tier.value,
            committed=str(assessment.committed),
            remaining=str(assessment.remaining),
            boundary_source=(
                assessment.boundary_source.value if assessment.boundary_source else None
            ),
        )
        return assessment

    async def pac_assessment(
        self,
        contributor_id: str,
        *,
        as_of: datetime | None = None,
        exclude_record_id: str | None = None,
    ) -> PacAssessment:
        history = await self._repository.list_by_contributor(contributor_id)
        return self._calculator.pac_assessment(
            history,
            as_of=as_of or self._time.now(),
            exclude_record_id=exclude_record_id,
        )

    async def pac_limit_reached(self, contributor_id: str) -> bool:
        """Whether the contributor's annual tips have hit the PAC limit."""
        return (await self.pac_assessment(contributor_id)).limit_reached

    async def cap_exhausted(self, contributor_id: str) -> bool:
        """Whether non-essential lifecycle work may be skipped for a contributor."""
        return await self.pac_limit_reached(contributor_id)

    async def check_new_contribution(
        self,
        contributor_id: str,
        tier: ComplianceTier,
        recipient: Recipient,
        amount: Decimal,
        tip: Decimal = Decimal("0"),
        *,
        as_of: datetime | None = None,
        exclude_record_id: str | None = None,
    ) -> LimitAssessment:
        """Gate a contribution before any ledger entry exists.

        Returns:
            The assessment the contribution was checked against.

        Raises:
            LimitExceededError: With a machine-readable reason.
            LimitUndeterminedError: If a compliant boundary cannot be resolved.
        """
        moment = as_of or self._time.now()
        log = self._log_operation(
            "check_new_contribution",
            contributor_id=contributor_id,
            recipient_id=recipient.id,
            amount=str(amount),
        )
        assessment = await self.remaining_limit(
            contributor_id,
            tier,
            recipient,
            amount,
            as_of=moment,
            exclude_record_id=exclude_record_id,
        )
        try:
            self._calculator.check_contribution(amount, assessment)
            if tip > 0:
                pac = await self.pac_assessment(
                    contributor_id, as_of=moment, exclude_record_id=exclude_record_id
                )
                self._calculator.check_tip(tip, pac)
        except LimitExceededError as e:
            log.info(
                "contribution_rejected",
                reason=e.reason.value,
                allowed=str(e.allowed),
            )
            raise
        return assessment

    async def revalidate(self, celebration: Celebration, as_of: datetime) -> LimitAssessment:
        """Re-check an existing celebration against current capacity.

        The celebration itself is left out of the sum.

        Raises:
            LimitExceededError: If capacity was consumed in the meantime.
        """
        return await self.check_new_contribution(
            celebration.contributor_id,
            celebration.compliance_tier,
            Recipient(
                id=celebration.recipient_id,
                jurisdiction=celebration.recipient_jurisdiction,
            ),
            celebration.donation,
            celebration.tip,
            as_of=as_of,
            exclude_record_id=celebration.id,
        )

    async def _boundary_for(
        self, tier: ComplianceTier, recipient: Recipient, as_of: datetime
    ) -> ResetBoundary | None:
        if tier != ComplianceTier.COMPLIANT:
            return None
        return await self._resolver.resolve_reset_boundary(recipient.jurisdiction, as_of)
