"""Settlement and lifecycle trigger event models.

Two event families reach the settlement coordinator:

1. SettlementEvent: payment captured or failed, normalized from the
   payment provider's webhook by an adapter.
2. LifecycleTriggerEvent: pause / resolve / session-end / admin override
   requests from watchers and administrators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from celebration_engine.domain.models.celebration import AuditTrail, TransitionTrigger
from celebration_engine.domain.models.celebration_status import CelebrationStatus
from celebration_engine.domain.models.status_metadata import StatusMetadata


class SettlementOutcome(str, Enum):
    """Outcome reported by the payment provider."""

    CAPTURED = "captured"
    FAILED = "failed"


# Capture releases escrowed funds; a failed payment means nothing was charged.
SETTLEMENT_TARGET_STATUS: dict[SettlementOutcome, CelebrationStatus] = {
    SettlementOutcome.CAPTURED: CelebrationStatus.RESOLVED,
    SettlementOutcome.FAILED: CelebrationStatus.DEFUNCT,
}


@dataclass(frozen=True)
class SettlementEvent:
    """Normalized payment-provider settlement event.

    Attributes:
        idempotency_key: The celebration's creation idempotency key.
        record_id: Celebration id, when the provider echoes it.
        outcome: Captured or failed.
        provider_ref: Provider-assigned reference (charge id).
        occurred_at: When the provider reports it happened.
    """

    idempotency_key: str
    outcome: SettlementOutcome
    provider_ref: str
    occurred_at: datetime
    record_id: str | None = None

    @property
    def target_status(self) -> CelebrationStatus:
        return SETTLEMENT_TARGET_STATUS[self.outcome]


@dataclass(frozen=True)
class LifecycleTriggerEvent:
    """Request from a watcher or administrator to move a celebration.

    Attributes:
        record_id: Target celebration.
        target_status: Requested status.
        reason: Human-readable reason recorded in the ledger.
        trigger: Who or what requested it.
        metadata: Variant payload for the target status.
        event_key: Optional caller-supplied deduplication key.
        essential: Non-essential events may be skipped when the
            contributor's cap is already exhausted.
        audit_trail: Optional request context.
    """

    record_id: str
    target_status: CelebrationStatus
    reason: str
    trigger: TransitionTrigger = field(default_factory=TransitionTrigger)
    metadata: StatusMetadata | None = None
    event_key: str | None = None
    essential: bool = True
    audit_trail: AuditTrail | None = None


class SettlementDisposition(str, Enum):
    """What the coordinator did with an event."""

    APPLIED = "applied"
    DUPLICATE = "duplicate"
    DROPPED_INVALID_TRANSITION = "dropped_invalid_transition"
    DROPPED_UNKNOWN_RECORD = "dropped_unknown_record"
    SKIPPED_CAP_EXHAUSTED = "skipped_cap_exhausted"


@dataclass(frozen=True)
class SettlementResult:
    """Result returned by the coordinator for one event.

    A DUPLICATE result carries the fields of the first application so
    that every redelivery observes the same outcome.
    """

    disposition: SettlementDisposition
    record_id: str | None
    status: CelebrationStatus | None
    status_change_id: str | None = None
    idempotency_key: str | None = None
    outcome: str | None = None

    def as_duplicate(self) -> SettlementResult:
        return SettlementResult(
            disposition=SettlementDisposition.DUPLICATE,
            record_id=self.record_id,
            status=self.status,
            status_change_id=self.status_change_id,
            idempotency_key=self.idempotency_key,
            outcome=self.outcome,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "disposition": self.disposition.value,
            "record_id": self.record_id,
            "status": self.status.value if self.status else None,
            "status_change_id": self.status_change_id,
            "idempotency_key": self.idempotency_key,
            "outcome": self.outcome,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> SettlementResult:
        status = payload.get("status")
        return cls(
            disposition=SettlementDisposition(payload["disposition"]),
            record_id=payload.get("record_id"),
            status=CelebrationStatus(status) if status else None,
            status_change_id=payload.get("status_change_id"),
            idempotency_key=payload.get("idempotency_key"),
            outcome=payload.get("outcome"),
        )


class IdempotencyState(str, Enum):
    """Lifecycle of an idempotency reservation."""

    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class IdempotencyEntry:
    """One (idempotency key, outcome) slot in the idempotency store.

    Attributes:
        key: Idempotency key of the event.
        outcome: Settlement outcome or target status.
        state: PENDING while the owner applies the event, COMPLETED after.
        owner_token: Identifies the delivery that reserved the slot.
        result: Recorded result once COMPLETED.
        recorded_at: When the slot was written.
    """

    key: str
    outcome: str
    state: IdempotencyState
    owner_token: str
    recorded_at: datetime
    result: SettlementResult | None = None
