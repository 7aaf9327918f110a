"""Celebration status ledger (domain service).

The ledger is the authoritative, append-only history of a celebration's
status. This service validates transitions against the state machine and
builds new celebration values with one more entry. It performs no I/O:
callers persist the returned celebration through a compare-and-swap on
``version`` and notify downstream collaborators themselves.

Rules:
- Only edges in STATUS_TRANSITION_MATRIX are accepted; self-transitions
  and any edge out of RESOLVED or DEFUNCT are rejected.
- Metadata must be a variant allowed for the target status.
- Existing entries are never modified.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from celebration_engine.domain.errors.state_transition import (
    CelebrationTerminalError,
    InvalidStatusMetadataError,
    InvalidTransitionError,
)
from celebration_engine.domain.models.celebration import (
    AuditTrail,
    Celebration,
    StatusChangeEntry,
    StatusDuration,
    StatusHistory,
    TransitionTrigger,
)
from celebration_engine.domain.models.celebration_status import (
    CelebrationStatus,
    TriggerSource,
)
from celebration_engine.domain.models.compliance import ComplianceTier, DonorSnapshot
from celebration_engine.domain.models.status_metadata import (
    StatusMetadata,
    is_allowed_metadata,
)
from celebration_engine.domain.services.compliance_tier_engine import (
    snapshot_supports_tier,
)

CREATION_REASON = "Celebration created"
CREATION_TRIGGER_NAME = "System - Creation"
DEFAULT_HISTORY_LIMIT = 10

_SECONDS_PER_DAY = 60 * 60 * 24


def _default_entry_id() -> str:
    return uuid4().hex


def validate_transition(
    from_status: CelebrationStatus, to_status: CelebrationStatus
) -> None:
    """Validate a status edge.

    Raises:
        InvalidTransitionError: If the edge is not in the matrix.
    """
    allowed = from_status.valid_transitions()
    if to_status not in allowed:
        raise InvalidTransitionError(
            from_status=from_status,
            to_status=to_status,
            allowed_transitions=list(allowed),
        )


class StatusLedger:
    """Builds and validates ledger entries for celebrations.

    Attributes:
        _entry_id_factory: Generates status_change_id values.
    """

    def __init__(self, entry_id_factory: Callable[[], str] | None = None) -> None:
        self._entry_id_factory = entry_id_factory or _default_entry_id

    def open_record(
        self,
        *,
        celebration_id: str,
        contributor_id: str,
        recipient_id: str,
        recipient_jurisdiction: str,
        bill_id: str,
        donation: Decimal,
        idempotency_key: str,
        donor_snapshot: DonorSnapshot,
        now: datetime,
        tip: Decimal = Decimal("0"),
        fee: Decimal = Decimal("0"),
        payment_intent: str | None = None,
    ) -> Celebration:
        """Create a new celebration with its initial ACTIVE entry."""
        tier = donor_snapshot.compliance_tier
        entry = StatusChangeEntry(
            status_change_id=self._entry_id_factory(),
            previous_status=None,
            new_status=CelebrationStatus.ACTIVE,
            change_datetime=now,
            reason=CREATION_REASON,
            triggered_by=TriggerSource.SYSTEM,
            triggered_by_id=contributor_id,
            triggered_by_name=CREATION_TRIGGER_NAME,
            compliance_tier_at_time=tier,
            fec_compliant=snapshot_supports_tier(donor_snapshot.profile, tier),
        )
        return Celebration(
            id=celebration_id,
            contributor_id=contributor_id,
            recipient_id=recipient_id,
            recipient_jurisdiction=recipient_jurisdiction,
            bill_id=bill_id,
            donation=donation,
            tip=tip,
            fee=fee,
            idempotency_key=idempotency_key,
            payment_intent=payment_intent,
            donor_snapshot=donor_snapshot,
            status_ledger=(entry,),
            created_at=now,
        )

    def change_status(
        self,
        celebration: Celebration,
        new_status: CelebrationStatus,
        reason: str,
        trigger: TransitionTrigger,
        metadata: StatusMetadata | None = None,
        *,
        now: datetime,
        compliance_tier: ComplianceTier | None = None,
        audit_trail: AuditTrail | None = None,
        charge_id: str | None = None,
    ) -> Celebration:
        """Append a status change to a celebration.

        Args:
            celebration: Current celebration, with its ledger.
            new_status: Target status.
            reason: Human-readable reason.
            trigger: Who or what requested the change.
            metadata: Variant payload for ``new_status``.
            now: Commit timestamp.
            compliance_tier: Contributor's current tier; defaults to the
                tier in the donor snapshot.
            audit_trail: Optional request context.
            charge_id: Provider reference to store on the record.

        Returns:
            New Celebration with the entry appended.

        Raises:
            CelebrationTerminalError: If the celebration is RESOLVED or DEFUNCT.
            InvalidTransitionError: If the edge is not allowed.
            InvalidStatusMetadataError: If metadata does not fit new_status.
        """
        current = celebration.current_status
        if current.is_terminal():
            raise CelebrationTerminalError(
                celebration_id=celebration.id,
                terminal_status=current,
                to_status=new_status,
            )
        validate_transition(current, new_status)

        if not is_allowed_metadata(new_status, metadata):
            raise InvalidStatusMetadataError(
                to_status=new_status,
                metadata_kind=type(metadata).__name__,
            )

        tier = compliance_tier or celebration.donor_snapshot.compliance_tier
        entry = StatusChangeEntry(
            status_change_id=self._entry_id_factory(),
            previous_status=current,
            new_status=new_status,
            change_datetime=now,
            reason=reason,
            triggered_by=trigger.source,
            triggered_by_id=trigger.actor_id,
            triggered_by_name=trigger.actor_name,
            metadata=metadata,
            compliance_tier_at_time=tier,
            fec_compliant=snapshot_supports_tier(
                celebration.donor_snapshot.profile, tier
            ),
            audit_trail=audit_trail,
        )
        return celebration.with_entry(entry, charge_id=charge_id)


def get_status_history(
    celebration: Celebration,
    now: datetime,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> StatusHistory:
    """Summarize a celebration's ledger.

    Args:
        celebration: The celebration.
        now: Reference time for durations.
        limit: Maximum number of recent entries.

    Returns:
        StatusHistory with the most recent ``limit`` entries, newest first.
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    ledger = celebration.status_ledger
    # Ledger order is commit order; reverse it rather than sorting by
    # timestamp, which can tie within the same instant.
    recent = tuple(reversed(ledger))[:limit]
    return StatusHistory(
        total_changes=len(ledger),
        recent_changes=recent,
        current_status=celebration.current_status,
        duration=calculate_status_duration(celebration, now),
    )


def calculate_status_duration(celebration: Celebration, now: datetime) -> StatusDuration:
    """Whole days spent in the current status and since creation."""
    last_change = celebration.status_ledger[-1].change_datetime
    in_status = (now - last_change).total_seconds()
    lifetime = (now - celebration.created_at).total_seconds()
    return StatusDuration(
        current_status_duration_days=max(0, int(in_status // _SECONDS_PER_DAY)),
        total_lifetime_days=max(0, int(lifetime // _SECONDS_PER_DAY)),
        last_change_date=last_change,
    )
