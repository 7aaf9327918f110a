"""Celebration lifecycle service.

Inbound trigger API and read-only queries over celebrations:

- ``open_celebration``: limit gate, donor snapshot and initial ledger entry.
- ``request_transition``: read, validate and CAS-append, retried a bounded
  number of times on ConcurrentModificationError, then RetryableError.
- ``activate`` / ``pause`` / ``resolve`` / ``make_defunct``: convenience
  wrappers with default triggers and metadata.
- ``get_current_status``, ``get_status_history``, ``list_needing_updates``.

Developer Rules:
1. The ledger append and the current_status projection are one CAS write.
2. InvalidTransitionError reaches the caller unchanged. Deciding whether a
   rejected edge is a benign race is the SettlementCoordinator's job.
3. Notification side effects (emails, announcements) are the caller's.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from uuid import uuid4

from celebration_engine.application.ports.celebration_repository import (
    CelebrationRepositoryProtocol,
)
from celebration_engine.application.ports.time_authority import TimeAuthorityProtocol
from celebration_engine.application.services.base import LoggingMixin
from celebration_engine.application.services.contribution_limit_service import (
    ContributionLimitService,
)
from celebration_engine.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
    RetryableError,
)
from celebration_engine.domain.errors.record import (
    DuplicateRecordError,
    UnknownRecordError,
)
from celebration_engine.domain.models.celebration import (
    AuditTrail,
    Celebration,
    Recipient,
    StatusHistory,
    TransitionTrigger,
)
from celebration_engine.domain.models.celebration_status import (
    CelebrationStatus,
    TriggerSource,
)
from celebration_engine.domain.models.compliance import (
    ComplianceTier,
    ContributorProfile,
    DonorSnapshot,
)
from celebration_engine.domain.models.status_metadata import (
    PauseDetails,
    ReactivationDetails,
    ResolutionDetails,
    SessionEndDetails,
    StatusMetadata,
)
from celebration_engine.domain.services.compliance_tier_engine import effective_tier
from celebration_engine.domain.services.status_ledger import (
    DEFAULT_HISTORY_LIMIT,
    StatusLedger,
    get_status_history,
)

DEFAULT_MAX_TRANSITION_ATTEMPTS = 3
_PAGE_SIZE = 100

ACTIVATION_TRIGGER = TransitionTrigger(TriggerSource.SYSTEM, actor_name="System - Activation")
PAUSE_TRIGGER = TransitionTrigger(TriggerSource.SYSTEM, actor_name="System - Pause")
RESOLUTION_TRIGGER = TransitionTrigger(TriggerSource.SYSTEM, actor_name="System - Resolution")
SESSION_END_TRIGGER = TransitionTrigger(
    TriggerSource.SCHEDULED_CONDITION, actor_name="Congressional Session End"
)


def _new_celebration_id() -> str:
    return uuid4().hex


class CelebrationLifecycleService(LoggingMixin):
    """Creates celebrations and moves them through their lifecycle."""

    def __init__(
        self,
        repository: CelebrationRepositoryProtocol,
        limit_service: ContributionLimitService,
        time_authority: TimeAuthorityProtocol,
        ledger: StatusLedger | None = None,
        *,
        max_attempts: int = DEFAULT_MAX_TRANSITION_ATTEMPTS,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._repository = repository
        self._limits = limit_service
        self._time = time_authority
        self._ledger = ledger or StatusLedger()
        self._max_attempts = max_attempts
        self._id_factory = id_factory or _new_celebration_id
        self._init_logger()

    async def open_celebration(
        self,
        *,
        contributor_id: str,
        recipient: Recipient,
        bill_id: str,
        donation: Decimal,
        idempotency_key: str,
        profile: ContributorProfile,
        username: str = "",
        tip: Decimal = Decimal("0"),
        fee: Decimal = Decimal("0"),
        payment_intent: str | None = None,
        recorded_tier: ComplianceTier | None = None,
    ) -> Celebration:
        """Open a celebration after the limit gate passes.

        Replaying an idempotency key returns the celebration it created.

        Raises:
            LimitExceededError: If the donation or tip exceeds a limit.
            LimitUndeterminedError: If the compliant cap cannot be resolved.
        """
        log = self._log_operation(
            "open_celebration",
            contributor_id=contributor_id,
            idempotency_key=idempotency_key,
        )
        existing = await self._repository.get_by_idempotency_key(idempotency_key)
        if existing is not None:
            log.info("celebration_creation_replayed", celebration_id=existing.id)
            return existing

        tier = await self._limits.effective_tier(contributor_id, profile, recorded_tier)
        now = self._time.now()
        await self._limits.check_new_contribution(
            contributor_id, tier, recipient, donation, tip, as_of=now
        )

        celebration = self._ledger.open_record(
            celebration_id=self._id_factory(),
            contributor_id=contributor_id,
            recipient_id=recipient.id,
            recipient_jurisdiction=recipient.jurisdiction,
            bill_id=bill_id,
            donation=donation,
            tip=tip,
            fee=fee,
            idempotency_key=idempotency_key,
            payment_intent=payment_intent,
            donor_snapshot=DonorSnapshot(
                profile=profile, compliance_tier=tier, username=username
            ),
            now=now,
        )
        try:
            await self._repository.save(celebration)
        except DuplicateRecordError:
            raced = await self._repository.get_by_idempotency_key(idempotency_key)
            if raced is None:
                raise
            log.info("celebration_creation_raced", celebration_id=raced.id)
            return raced

        log.info(
            "celebration_opened",
            celebration_id=celebration.id,
            tier=tier.value,
            donation=str(donation),
        )
        return celebration

    async def request_transition(
        self,
        record_id: str,
        target_status: CelebrationStatus,
        reason: str,
        trigger: TransitionTrigger,
        metadata: StatusMetadata | None = None,
        *,
        audit_trail: AuditTrail | None = None,
        charge_id: str | None = None,
        revalidate_limit: bool = True,
    ) -> Celebration:
        """Move a celebration to ``target_status``.

        Each attempt re-reads the record, validates the edge against the
        current status and commits with a CAS on the ledger version.

        Args:
            record_id: Celebration id.
            target_status: Requested status.
            reason: Human-readable reason for the ledger.
            trigger: Who or what requested it.
            metadata: Variant payload for the target status.
            audit_trail: Optional request context.
            charge_id: Provider reference to store with the change.
            revalidate_limit: Re-check the limit on paused -> active.

        Returns:
            The stored celebration.

        Raises:
            UnknownRecordError: If the celebration does not exist.
            InvalidTransitionError: If the edge is not allowed.
            InvalidStatusMetadataError: If metadata does not fit the status.
            LimitExceededError: If reactivation no longer fits the limit.
            RetryableError: If every attempt lost a concurrent race.
        """
        log = self._log_operation(
            "request_transition",
            celebration_id=record_id,
            target_status=target_status.value,
            triggered_by=trigger.source.value,
        )

        for attempt in range(1, self._max_attempts + 1):
            celebration = await self._repository.get(record_id)
            if celebration is None:
                raise UnknownRecordError(record_id)

            now = self._time.now()
            if (
                revalidate_limit
                and celebration.current_status == CelebrationStatus.PAUSED
                and target_status == CelebrationStatus.ACTIVE
            ):
                await self._limits.revalidate(celebration, now)

            updated = self._ledger.change_status(
                celebration,
                target_status,
                reason,
                trigger,
                metadata,
                now=now,
                compliance_tier=await self._current_tier(celebration),
                audit_trail=audit_trail,
                charge_id=charge_id,
            )
            try:
                stored = await self._repository.append_entry_cas(
                    celebration.id, celebration.version, updated
                )
            except ConcurrentModificationError as e:
                log.warning(
                    "transition_conflict",
                    attempt=attempt,
                    expected_version=e.expected_version,
                    actual_version=e.actual_version,
                )
                continue

            log.info(
                "transition_applied",
                previous_status=celebration.current_status.value,
                new_status=stored.current_status.value,
                status_change_id=stored.status_ledger[-1].status_change_id,
                attempt=attempt,
            )
            return stored

        log.error("transition_retries_exhausted", attempts=self._max_attempts)
        raise RetryableError(
            f"Status change of celebration {record_id} to {target_status.value} "
            f"lost {self._max_attempts} concurrent races",
            operation="request_transition",
            attempts=self._max_attempts,
        )

    async def activate(
        self,
        record_id: str,
        reason: str = "Celebration reactivated",
        trigger: TransitionTrigger = ACTIVATION_TRIGGER,
        metadata: StatusMetadata | None = None,
        *,
        revalidate_limit: bool = True,
    ) -> Celebration:
        return await self.request_transition(
            record_id,
            CelebrationStatus.ACTIVE,
            reason,
            trigger,
            metadata or ReactivationDetails(resumed_reason=reason),
            revalidate_limit=revalidate_limit,
        )

    async def pause(
        self,
        record_id: str,
        reason: str = "Celebration paused",
        trigger: TransitionTrigger = PAUSE_TRIGGER,
        metadata: StatusMetadata | None = None,
    ) -> Celebration:
        return await self.request_transition(
            record_id,
            CelebrationStatus.PAUSED,
            reason,
            trigger,
            metadata or PauseDetails(pause_reason=reason),
        )

    async def resolve(
        self,
        record_id: str,
        reason: str = "Bill condition met",
        trigger: TransitionTrigger = RESOLUTION_TRIGGER,
        metadata: StatusMetadata | None = None,
    ) -> Celebration:
        return await self.request_transition(
            record_id,
            CelebrationStatus.RESOLVED,
            reason,
            trigger,
            metadata or ResolutionDetails(),
        )

    async def make_defunct(
        self,
        record_id: str,
        reason: str = "Congressional session ended",
        trigger: TransitionTrigger = SESSION_END_TRIGGER,
        metadata: StatusMetadata | None = None,
    ) -> Celebration:
        return await self.request_transition(
            record_id,
            CelebrationStatus.DEFUNCT,
            reason,
            trigger,
            metadata or SessionEndDetails(),
        )

    async def get_celebration(self, record_id: str) -> Celebration:
        """Raises UnknownRecordError when absent."""
        celebration = await self._repository.get(record_id)
        if celebration is None:
            raise UnknownRecordError(record_id)
        return celebration

    async def get_current_status(self, record_id: str) -> CelebrationStatus:
        return (await self.get_celebration(record_id)).current_status

    async def get_status_history(
        self, record_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> StatusHistory:
        celebration = await self.get_celebration(record_id)
        return get_status_history(celebration, self._time.now(), limit)

    async def list_needing_updates(self) -> dict[CelebrationStatus, list[Celebration]]:
        """Non-terminal celebrations grouped by status, seed data excluded."""
        grouped: dict[CelebrationStatus, list[Celebration]] = {}
        for status in (CelebrationStatus.ACTIVE, CelebrationStatus.PAUSED):
            collected: list[Celebration] = []
            offset = 0
            while True:
                page, total = await self._repository.list_by_status(
                    status, limit=_PAGE_SIZE, offset=offset
                )
                collected.extend(c for c in page if not c.is_seed)
                offset += len(page)
                if not page or offset >= total:
                    break
            grouped[status] = collected
        self._log_operation("list_needing_updates").debug(
            "pending_celebrations_listed",
            active=len(grouped[CelebrationStatus.ACTIVE]),
            paused=len(grouped[CelebrationStatus.PAUSED]),
        )
        return grouped

    async def _current_tier(self, celebration: Celebration) -> ComplianceTier:
        recorded = await self._limits.recorded_tier(celebration.contributor_id)
        return effective_tier(recorded, celebration.compliance_tier)
