"""Celebration (escrowed conditional contribution) domain model.

A celebration is one donor's conditional contribution to a recipient,
held in escrow until a bill condition occurs. Its status history lives in
an append-only ledger; ``current_status`` is a projection of the last
ledger entry and is never stored independently of it.

Invariants:
- The ledger always holds at least the creation entry.
- ``current_status`` equals ``new_status`` of the last ledger entry.
- No entry follows a RESOLVED or DEFUNCT entry.
- ``donor_snapshot`` is fixed at creation.
- ``version`` is the ledger length and is the optimistic-lock token.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from celebration_engine.domain.models.celebration_status import (
    INITIAL_PREVIOUS_STATUS,
    CelebrationStatus,
    TriggerSource,
)
from celebration_engine.domain.models.compliance import ComplianceTier, DonorSnapshot
from celebration_engine.domain.models.status_metadata import (
    StatusMetadata,
    metadata_from_dict,
    metadata_to_dict,
)

# Idempotency keys with this prefix belong to seed data, not real donors.
SEED_IDEMPOTENCY_PREFIX = "seed:"


@dataclass(frozen=True)
class AuditTrail:
    """Request context captured with a status change, when one exists."""

    ip_address: str | None = None
    user_agent: str | None = None
    session_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "session_id": self.session_id,
        }


@dataclass(frozen=True)
class TransitionTrigger:
    """Descriptor of who or what requested a transition."""

    source: TriggerSource = TriggerSource.SYSTEM
    actor_id: str | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class Recipient:
    """Candidate receiving a contribution.

    Attributes:
        id: Recipient id.
        jurisdiction: State code whose election calendar applies.
    """

    id: str
    jurisdiction: str


@dataclass(frozen=True)
class StatusChangeEntry:
    """One immutable ledger record.

    Attributes:
        status_change_id: Generated unique id of this entry.
        previous_status: Status before the change, or "none" for creation.
        new_status: Status after the change.
        change_datetime: When the change was committed (UTC).
        reason: Human-readable reason.
        triggered_by: Trigger source.
        triggered_by_id: Optional id of the trigger (user, admin, job).
        triggered_by_name: Optional human-readable trigger name.
        metadata: Status-specific variant payload.
        compliance_tier_at_time: Contributor tier when the change happened.
        fec_compliant: Audit flag, False whenever compliance could not be
            affirmed.
        audit_trail: Optional request context.
    """

    status_change_id: str
    previous_status: CelebrationStatus | None
    new_status: CelebrationStatus
    change_datetime: datetime
    reason: str
    triggered_by: TriggerSource
    compliance_tier_at_time: ComplianceTier
    fec_compliant: bool
    triggered_by_id: str | None = None
    triggered_by_name: str | None = None
    metadata: StatusMetadata | None = None
    audit_trail: AuditTrail | None = None

    def to_document(self) -> dict[str, Any]:
        """Serialize to the persisted ledger entry schema."""
        document: dict[str, Any] = {
            "status_change_id": self.status_change_id,
            "previous_status": (
                self.previous_status.value
                if self.previous_status is not None
                else INITIAL_PREVIOUS_STATUS
            ),
            "new_status": self.new_status.value,
            "change_datetime": self.change_datetime.isoformat(),
            "reason": self.reason,
            "triggered_by": self.triggered_by.value,
            "triggered_by_id": self.triggered_by_id,
            "triggered_by_name": self.triggered_by_name,
            "metadata": metadata_to_dict(self.metadata),
            "compliance_tier_at_time": self.compliance_tier_at_time.value,
            "fec_compliant": self.fec_compliant,
        }
        if self.audit_trail is not None:
            document["audit_trail"] = self.audit_trail.to_dict()
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> StatusChangeEntry:
        """Rebuild an entry from the persisted ledger entry schema."""
        previous = document["previous_status"]
        new_status = CelebrationStatus(document["new_status"])
        audit = document.get("audit_trail")
        return cls(
            status_change_id=document["status_change_id"],
            previous_status=(
                None
                if previous == INITIAL_PREVIOUS_STATUS
                else CelebrationStatus(previous)
            ),
            new_status=new_status,
            change_datetime=datetime.fromisoformat(document["change_datetime"]),
            reason=document["reason"],
            triggered_by=TriggerSource(document["triggered_by"]),
            triggered_by_id=document.get("triggered_by_id"),
            triggered_by_name=document.get("triggered_by_name"),
            metadata=metadata_from_dict(new_status, document.get("metadata")),
            compliance_tier_at_time=ComplianceTier(
                document["compliance_tier_at_time"]
            ),
            fec_compliant=bool(document.get("fec_compliant", False)),
            audit_trail=AuditTrail(**audit) if audit else None,
        )


@dataclass(frozen=True)
class Celebration:
    """An escrowed conditional contribution (contribution record).

    Amounts are in US dollars.

    Attributes:
        id: Unique celebration id.
        contributor_id: Owning contributor.
        recipient_id: Candidate receiving the contribution.
        recipient_jurisdiction: Recipient's state code (election calendar).
        bill_id: Condition the escrow waits on.
        donation: Base contribution amount.
        tip: Optional tip to the platform PAC.
        fee: Processing fee.
        idempotency_key: One per creation attempt, immutable, unique.
        donor_snapshot: Contributor profile and tier at contribution time.
        status_ledger: Append-only status history.
        created_at: Commitment time; decides which limit window it counts in.
        payment_intent: Provider payment intent, when known.
        charge_id: Provider reference stored on capture.
    """

    id: str
    contributor_id: str
    recipient_id: str
    recipient_jurisdiction: str
    bill_id: str
    donation: Decimal
    idempotency_key: str
    donor_snapshot: DonorSnapshot
    status_ledger: tuple[StatusChangeEntry, ...]
    created_at: datetime
    tip: Decimal = field(default=Decimal("0"))
    fee: Decimal = field(default=Decimal("0"))
    payment_intent: str | None = field(default=None)
    charge_id: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate the ledger projection invariants."""
        if not self.status_ledger:
            raise ValueError("Celebration status ledger must hold at least one entry")
        for earlier in self.status_ledger[:-1]:
            if earlier.new_status.is_terminal():
                raise ValueError(
                    f"Ledger entry follows terminal status '{earlier.new_status.value}'"
                )
        if self.donation < 0 or self.tip < 0 or self.fee < 0:
            raise ValueError("Celebration amounts must be non-negative")

    @property
    def current_status(self) -> CelebrationStatus:
        """Projection of the last ledger entry."""
        return self.status_ledger[-1].new_status

    @property
    def version(self) -> int:
        """Optimistic concurrency token (ledger length)."""
        return len(self.status_ledger)

    @property
    def total_charged(self) -> Decimal:
        return self.donation + self.tip + self.fee

    @property
    def compliance_tier(self) -> ComplianceTier:
        return self.donor_snapshot.compliance_tier

    @property
    def is_terminal(self) -> bool:
        return self.current_status.is_terminal()

    @property
    def is_seed(self) -> bool:
        return self.idempotency_key.startswith(SEED_IDEMPOTENCY_PREFIX)

    # Legacy boolean read-model, derived from the ledger projection.

    @property
    def resolved(self) -> bool:
        return self.current_status == CelebrationStatus.RESOLVED

    @property
    def paused(self) -> bool:
        return self.current_status == CelebrationStatus.PAUSED

    @property
    def defunct(self) -> bool:
        return self.current_status == CelebrationStatus.DEFUNCT

    @property
    def defunct_date(self) -> datetime | None:
        if not self.defunct:
            return None
        return self.status_ledger[-1].change_datetime

    @property
    def defunct_reason(self) -> str | None:
        if not self.defunct:
            return None
        return self.status_ledger[-1].reason

    def replay_status(self) -> CelebrationStatus:
        """Recompute the status by replaying the ledger from the start.

        Raises:
            ValueError: If an entry's previous_status does not chain from
                the entry before it.
        """
        status: CelebrationStatus | None = None
        for entry in self.status_ledger:
            if entry.previous_status != status:
                raise ValueError(
                    f"Ledger entry {entry.status_change_id} does not chain: "
                    f"expected previous status {status}, got {entry.previous_status}"
                )
            status = entry.new_status
        assert status is not None
        return status

    def with_entry(
        self, entry: StatusChangeEntry, charge_id: str | None = None
    ) -> Celebration:
        """Return a copy with ``entry`` appended.

        Since Celebration is frozen, returns a new instance. Transition
        validation is StatusLedger's job; this only appends.
        """
        return replace(
            self,
            status_ledger=self.status_ledger + (entry,),
            charge_id=charge_id if charge_id is not None else self.charge_id,
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the persisted celebration document.

        ``current_status`` and the legacy flags are written in the same
        document as the ledger so they always move in lockstep.
        """
        return {
            "_id": self.id,
            "donatedBy": self.contributor_id,
            "pol_id": self.recipient_id,
            "pol_state": self.recipient_jurisdiction,
            "bill_id": self.bill_id,
            "donation": str(self.donation),
            "tip": str(self.tip),
            "fee": str(self.fee),
            "total_charged": str(self.total_charged),
            "idempotencyKey": self.idempotency_key,
            "payment_intent": self.payment_intent,
            "charge_id": self.charge_id,
            "donorInfo": self.donor_snapshot.to_document(),
            "current_status": self.current_status.value,
            "status_ledger": [e.to_document() for e in self.status_ledger],
            "resolved": self.resolved,
            "paused": self.paused,
            "defunct": self.defunct,
            "defunct_date": (
                self.defunct_date.isoformat() if self.defunct_date else None
            ),
            "defunct_reason": self.defunct_reason,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Celebration:
        """Rebuild a celebration from its persisted document.

        ``status_ledger`` is authoritative; a stored ``current_status`` that
        disagrees with it is rejected.

        Raises:
            ValueError: If current_status and the ledger disagree.
        """
        ledger = tuple(
            StatusChangeEntry.from_document(e) for e in document["status_ledger"]
        )
        celebration = cls(
            id=document["_id"],
            contributor_id=document["donatedBy"],
            recipient_id=document["pol_id"],
            recipient_jurisdiction=document["pol_state"],
            bill_id=document["bill_id"],
            donation=Decimal(document["donation"]),
            tip=Decimal(document.get("tip", "0")),
            fee=Decimal(document.get("fee", "0")),
            idempotency_key=document["idempotencyKey"],
            payment_intent=document.get("payment_intent"),
            charge_id=document.get("charge_id"),
            donor_snapshot=DonorSnapshot.from_document(document["donorInfo"]),
            status_ledger=ledger,
            created_at=datetime.fromisoformat(document["createdAt"]),
        )
        stored_status = document.get("current_status")
        if stored_status is not None and stored_status != celebration.current_status.value:
            raise ValueError(
                f"Stored current_status '{stored_status}' disagrees with ledger "
                f"projection '{celebration.current_status.value}'"
            )
        return celebration


@dataclass(frozen=True)
class StatusDuration:
    """How long a celebration has been in its current status."""

    current_status_duration_days: int
    total_lifetime_days: int
    last_change_date: datetime


@dataclass(frozen=True)
class StatusHistory:
    """Summary of a celebration's ledger for query callers.

    Attributes:
        total_changes: Ledger length.
        recent_changes: Most recent entries, newest first.
        current_status: Current projected status.
        duration: Time spent in the current status and overall.
    """

    total_changes: int
    recent_changes: tuple[StatusChangeEntry, ...]
    current_status: CelebrationStatus
    duration: StatusDuration
