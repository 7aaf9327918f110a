"""Settlement coordinator.

Turns payment-provider settlement events and lifecycle trigger events into
ledger transitions, exactly once per (idempotency key, outcome).

Flow for one event:
1. Look up the (key, outcome) slot. COMPLETED returns the recorded result
   as DUPLICATE; PENDING means another delivery is applying it right now
   and RetryableError is raised, unless that reservation has outlived its
   lease.
2. Locate the celebration. A missing one is logged and dropped
   (DROPPED_UNKNOWN_RECORD) without touching the store.
3. Reserve the slot with ``put_if_absent``. Losing that race is handled
   like step 1, except that a PENDING reservation older than the lease is
   taken over.
4. Apply through CelebrationLifecycleService. InvalidTransitionError is a
   benign race: logged and recorded as DROPPED_INVALID_TRANSITION.
5. Complete the slot with the result. Any other failure, including a
   failed completion write, releases the reservation and propagates so a
   redelivery can succeed later.

A settlement whose transition is already in the ledger (same provider
reference and outcome) is recorded as APPLIED from that entry instead of
being applied again. This is how a redelivery recovers after the ledger
write committed but the slot was never completed.

Non-essential lifecycle events are skipped outright when the
contributor's cap is already exhausted.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from uuid import uuid4

from celebration_engine.application.ports.celebration_repository import (
    CelebrationRepositoryProtocol,
)
from celebration_engine.application.ports.idempotency_store import (
    IdempotencyStoreProtocol,
)
from celebration_engine.application.ports.time_authority import TimeAuthorityProtocol
from celebration_engine.application.services.base import LoggingMixin
from celebration_engine.application.services.celebration_lifecycle_service import (
    CelebrationLifecycleService,
)
from celebration_engine.application.services.contribution_limit_service import (
    ContributionLimitService,
)
from celebration_engine.domain.errors.concurrent_modification import RetryableError
from celebration_engine.domain.errors.state_transition import InvalidTransitionError
from celebration_engine.domain.models.celebration import (
    AuditTrail,
    Celebration,
    TransitionTrigger,
)
from celebration_engine.domain.models.celebration_status import (
    CelebrationStatus,
    TriggerSource,
)
from celebration_engine.domain.models.settlement import (
    IdempotencyEntry,
    IdempotencyState,
    LifecycleTriggerEvent,
    SettlementDisposition,
    SettlementEvent,
    SettlementOutcome,
    SettlementResult,
)
from celebration_engine.domain.models.status_metadata import (
    SettlementDetails,
    StatusMetadata,
)

PAYMENT_PROVIDER_NAME = "Payment Provider"
DEFAULT_PENDING_LEASE_SECONDS = 300.0

_SETTLEMENT_REASONS: dict[SettlementOutcome, str] = {
    SettlementOutcome.CAPTURED: "Payment captured",
    SettlementOutcome.FAILED: "Payment failed",
}


def _new_owner_token() -> str:
    return uuid4().hex


class SettlementCoordinator(LoggingMixin):
    """Applies settlement and lifecycle events idempotently."""

    def __init__(
        self,
        repository: CelebrationRepositoryProtocol,
        lifecycle: CelebrationLifecycleService,
        idempotency_store: IdempotencyStoreProtocol,
        limit_service: ContributionLimitService,
        time_authority: TimeAuthorityProtocol,
        *,
        owner_token_factory: Callable[[], str] | None = None,
        pending_lease_seconds: float = DEFAULT_PENDING_LEASE_SECONDS,
    ) -> None:
        if pending_lease_seconds <= 0:
            raise ValueError(
                f"pending_lease_seconds must be positive, got {pending_lease_seconds}"
            )
        self._repository = repository
        self._lifecycle = lifecycle
        self._store = idempotency_store
        self._limits = limit_service
        self._time = time_authority
        self._owner_token_factory = owner_token_factory or _new_owner_token
        self._lease = timedelta(seconds=pending_lease_seconds)
        self._init_logger(component="settlement")

    async def apply(self, event: SettlementEvent | LifecycleTriggerEvent) -> SettlementResult:
        """Apply one event.

        Returns:
            What happened, see SettlementDisposition.

        Raises:
            RetryableError: If the same event is in flight elsewhere, or the
                transition lost every optimistic-lock attempt.
            InvalidStatusMetadataError: If a trigger carries the wrong
                metadata variant for its target status.
        """
        if isinstance(event, SettlementEvent):
            return await self._apply_settlement(event)
        return await self._apply_trigger(event)

    async def _apply_settlement(self, event: SettlementEvent) -> SettlementResult:
        key = event.idempotency_key
        outcome = event.outcome.value
        log = self._log_operation(
            "apply_settlement",
            idempotency_key=key,
            outcome=outcome,
            provider_ref=event.provider_ref,
        )
        log.info("settlement_received")

        duplicate = await self._check_recorded(key, outcome)
        if duplicate is not None:
            log.info("settlement_duplicate_ignored", disposition=duplicate.disposition.value)
            return duplicate

        celebration = await self._locate_for_settlement(event)
        if celebration is None:
            log.warning("settlement_dropped_unknown_record", record_id=event.record_id)
            return SettlementResult(
                disposition=SettlementDisposition.DROPPED_UNKNOWN_RECORD,
                record_id=event.record_id,
                status=None,
                idempotency_key=key,
                outcome=outcome,
            )

        return await self._apply_once(
            key=key,
            outcome=outcome,
            celebration=celebration,
            target_status=event.target_status,
            reason=_SETTLEMENT_REASONS[event.outcome],
            trigger=TransitionTrigger(
                TriggerSource.API,
                actor_id=event.provider_ref,
                actor_name=PAYMENT_PROVIDER_NAME,
            ),
            metadata=SettlementDetails(
                provider_ref=event.provider_ref,
                outcome=outcome,
                occurred_at=event.occurred_at,
            ),
            charge_id=(
                event.provider_ref if event.outcome == SettlementOutcome.CAPTURED else None
            ),
            provider_ref=event.provider_ref,
        )

    async def _apply_trigger(self, event: LifecycleTriggerEvent) -> SettlementResult:
        outcome = event.target_status.value
        log = self._log_operation(
            "apply_trigger",
            celebration_id=event.record_id,
            target_status=outcome,
            event_key=event.event_key,
            essential=event.essential,
        )
        log.info("lifecycle_trigger_received")

        if event.event_key is not None:
            duplicate = await self._check_recorded(event.event_key, outcome)
            if duplicate is not None:
                log.info("trigger_duplicate_ignored", disposition=duplicate.disposition.value)
                return duplicate

        celebration = await self._repository.get(event.record_id)
        if celebration is None:
            log.warning("trigger_dropped_unknown_record")
            return SettlementResult(
                disposition=SettlementDisposition.DROPPED_UNKNOWN_RECORD,
                record_id=event.record_id,
                status=None,
                idempotency_key=event.event_key,
                outcome=outcome,
            )

        if not event.essential and await self._limits.cap_exhausted(
            celebration.contributor_id
        ):
            log.info("trigger_skipped_cap_exhausted", contributor_id=celebration.contributor_id)
            return SettlementResult(
                disposition=SettlementDisposition.SKIPPED_CAP_EXHAUSTED,
                record_id=celebration.id,
                status=celebration.current_status,
                idempotency_key=event.event_key,
                outcome=outcome,
            )

        if event.event_key is None:
            return await self._transition(
                celebration=celebration,
                target_status=event.target_status,
                reason=event.reason,
                trigger=event.trigger,
                metadata=event.metadata,
                idempotency_key=None,
                outcome=outcome,
                audit_trail=event.audit_trail,
                revalidate_limit=True,
            )

        return await self._apply_once(
            key=event.event_key,
            outcome=outcome,
            celebration=celebration,
            target_status=event.target_status,
            reason=event.reason,
            trigger=event.trigger,
            metadata=event.metadata,
            audit_trail=event.audit_trail,
            revalidate_limit=True,
        )

    async def _check_recorded(self, key: str, outcome: str) -> SettlementResult | None:
        """Result of an already-applied slot, None if the slot is free.

        Raises:
            RetryableError: If the slot is reserved by an in-flight delivery
                whose lease has not run out.
        """
        entry = await self._store.get(key, outcome)
        if entry is None or self._lease_expired(entry):
            return None
        return self._recorded_result(entry)

    def _recorded_result(self, entry: IdempotencyEntry) -> SettlementResult:
        if entry.state == IdempotencyState.PENDING or entry.result is None:
            raise RetryableError(
                f"Event {entry.key}/{entry.outcome} is being applied by another delivery",
                operation="apply",
            )
        return entry.result.as_duplicate()

    async def _locate_for_settlement(self, event: SettlementEvent) -> Celebration | None:
        if event.record_id is not None:
            celebration = await self._repository.get(event.record_id)
            if celebration is not None and celebration.idempotency_key != event.idempotency_key:
                self._log_operation(
                    "locate", record_id=event.record_id, idempotency_key=event.idempotency_key
                ).warning(
                    "settlement_reference_mismatch",
                    stored_idempotency_key=celebration.idempotency_key,
                )
                return None
            return celebration
        return await self._repository.get_by_idempotency_key(event.idempotency_key)

    async def _apply_once(
        self,
        *,
        key: str,
        outcome: str,
        celebration: Celebration,
        target_status: CelebrationStatus,
        reason: str,
        trigger: TransitionTrigger,
        metadata: StatusMetadata | None,
        charge_id: str | None = None,
        audit_trail: AuditTrail | None = None,
        revalidate_limit: bool = False,
        provider_ref: str | None = None,
    ) -> SettlementResult:
        log = self._log_operation("apply_once", idempotency_key=key, outcome=outcome)
        token = self._owner_token_factory()
        reservation = IdempotencyEntry(
            key=key,
            outcome=outcome,
            state=IdempotencyState.PENDING,
            owner_token=token,
            recorded_at=self._time.now(),
        )
        stored = await self._store.put_if_absent(reservation)
        if stored.owner_token != token and not await self._take_over(stored, reservation):
            log.info("idempotency_reservation_lost")
            return self._recorded_result(stored)

        try:
            result: SettlementResult | None = None
            if provider_ref is not None:
                result = await self._settlement_in_ledger(
                    celebration.id, target_status, provider_ref, key, outcome
                )
            if result is None:
                result = await self._transition(
                    celebration=celebration,
                    target_status=target_status,
                    reason=reason,
                    trigger=trigger,
                    metadata=metadata,
                    idempotency_key=key,
                    outcome=outcome,
                    charge_id=charge_id,
                    audit_trail=audit_trail,
                    revalidate_limit=revalidate_limit,
                )
            await self._store.put(
                replace(
                    reservation,
                    state=IdempotencyState.COMPLETED,
                    result=result,
                    recorded_at=self._time.now(),
                )
            )
        except Exception as e:
            log.warning("idempotency_reservation_released", error=type(e).__name__)
            await self._store.delete(key, outcome, token)
            raise
        return result

    def _lease_expired(self, entry: IdempotencyEntry) -> bool:
        return (
            entry.state == IdempotencyState.PENDING
            and entry.recorded_at <= self._lease_cutoff()
        )

    def _lease_cutoff(self) -> datetime:
        return self._time.now() - self._lease

    async def _take_over(self, stored: IdempotencyEntry, reservation: IdempotencyEntry) -> bool:
        """Claim ``stored`` for ``reservation`` if its lease has run out."""
        if not self._lease_expired(stored):
            return False
        # The cutoff is exclusive in the store, so step just past it.
        taken = await self._store.take_over(
            reservation,
            stored.owner_token,
            self._lease_cutoff() + timedelta(microseconds=1),
        )
        if taken:
            self._log_operation(
                "take_over", idempotency_key=stored.key, outcome=stored.outcome
            ).warning(
                "idempotency_lease_taken_over",
                previous_owner=stored.owner_token,
                reserved_at=stored.recorded_at.isoformat(),
            )
        return taken

    async def _settlement_in_ledger(
        self,
        record_id: str,
        target_status: CelebrationStatus,
        provider_ref: str,
        key: str,
        outcome: str,
    ) -> SettlementResult | None:
        """APPLIED result for a settlement the ledger already holds."""
        current = await self._repository.get(record_id)
        if current is None:
            return None
        for entry in reversed(current.status_ledger):
            details = entry.metadata
            if (
                entry.new_status == target_status
                and isinstance(details, SettlementDetails)
                and details.provider_ref == provider_ref
                and details.outcome == outcome
            ):
                self._log_operation(
                    "recover", celebration_id=record_id, idempotency_key=key
                ).info(
                    "settlement_found_in_ledger",
                    status_change_id=entry.status_change_id,
                )
                return SettlementResult(
                    disposition=SettlementDisposition.APPLIED,
                    record_id=current.id,
                    status=entry.new_status,
                    status_change_id=entry.status_change_id,
                    idempotency_key=key,
                    outcome=outcome,
                )
        return None

    async def _transition(
        self,
        *,
        celebration: Celebration,
        target_status: CelebrationStatus,
        reason: str,
        trigger: TransitionTrigger,
        metadata: StatusMetadata | None,
        idempotency_key: str | None,
        outcome: str,
        charge_id: str | None = None,
        audit_trail: AuditTrail | None = None,
        revalidate_limit: bool = False,
    ) -> SettlementResult:
        log = self._log_operation(
            "transition",
            celebration_id=celebration.id,
            target_status=target_status.value,
            idempotency_key=idempotency_key,
        )
        try:
            updated = await self._lifecycle.request_transition(
                celebration.id,
                target_status,
                reason,
                trigger,
                metadata,
                audit_trail=audit_trail,
                charge_id=charge_id,
                revalidate_limit=revalidate_limit,
            )
        except InvalidTransitionError as e:
            log.warning(
                "event_dropped_invalid_transition",
                from_status=e.from_status.value,
                to_status=e.to_status.value,
            )
            return SettlementResult(
                disposition=SettlementDisposition.DROPPED_INVALID_TRANSITION,
                record_id=celebration.id,
                status=e.from_status,
                idempotency_key=idempotency_key,
                outcome=outcome,
            )

        return SettlementResult(
            disposition=SettlementDisposition.APPLIED,
            record_id=updated.id,
            status=updated.current_status,
            status_change_id=updated.status_ledger[-1].status_change_id,
            idempotency_key=idempotency_key,
            outcome=outcome,
        )
