"""Status-specific metadata carried by ledger entries.

Metadata is a tagged union keyed by the entry's new status. Each variant
is a frozen dataclass with a ``kind`` tag, and ``ALLOWED_METADATA`` states
which variants may accompany a transition into each status:

    ACTIVE   -> ReactivationDetails | AdminNotes
    PAUSED   -> PauseDetails | AdminNotes
    RESOLVED -> ResolutionDetails | SettlementDetails | AdminNotes
    DEFUNCT  -> SessionEndDetails | SettlementDetails | AdminNotes

``None`` (no metadata) is accepted for every status and persists as ``{}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, ClassVar, Union

from celebration_engine.domain.models.celebration_status import CelebrationStatus


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class ReactivationDetails:
    """Why a paused celebration went back to active."""

    kind: ClassVar[str] = "reactivation_details"

    resumed_reason: str = ""
    related_bill_status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            self.kind: {
                "resumed_reason": self.resumed_reason,
                "related_bill_status": self.related_bill_status,
            }
        }


@dataclass(frozen=True)
class PauseDetails:
    """Details of a pause.

    Attributes:
        pause_reason: Specific reason for the pause.
        expected_resume_date: When the pause is expected to lift, if known.
        related_bill_status: Bill status observed when pausing.
    """

    kind: ClassVar[str] = "pause_details"

    pause_reason: str = ""
    expected_resume_date: date | None = None
    related_bill_status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            self.kind: {
                "pause_reason": self.pause_reason,
                "expected_resume_date": _iso(self.expected_resume_date),
                "related_bill_status": self.related_bill_status,
            }
        }


@dataclass(frozen=True)
class ResolutionDetails:
    """Bill action that satisfied the celebration's condition.

    Attributes:
        bill_action_date: When the qualifying action happened.
        bill_action_type: e.g. "vote", "signature".
        bill_action_result: e.g. "passed", "failed".
        house_vote_date: House vote date, if any.
        senate_vote_date: Senate vote date, if any.
    """

    kind: ClassVar[str] = "resolution_details"

    bill_action_date: date | None = None
    bill_action_type: str = ""
    bill_action_result: str = ""
    house_vote_date: date | None = None
    senate_vote_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            self.kind: {
                "bill_action_date": _iso(self.bill_action_date),
                "bill_action_type": self.bill_action_type,
                "bill_action_result": self.bill_action_result,
                "house_vote_date": _iso(self.house_vote_date),
                "senate_vote_date": _iso(self.senate_vote_date),
            }
        }


@dataclass(frozen=True)
class SessionEndDetails:
    """Congressional session that ended without the condition being met."""

    kind: ClassVar[str] = "congressional_session"

    session_number: str = ""
    session_end_date: date | None = None
    session_type: str = "regular"

    def to_dict(self) -> dict[str, Any]:
        return {
            self.kind: {
                "session_number": self.session_number,
                "session_end_date": _iso(self.session_end_date),
                "session_type": self.session_type,
            }
        }


@dataclass(frozen=True)
class SettlementDetails:
    """Payment-provider settlement that drove the transition.

    Attributes:
        provider_ref: Provider-assigned reference (charge id).
        outcome: "captured" or "failed".
        occurred_at: When the provider reports the settlement happened.
    """

    kind: ClassVar[str] = "settlement_details"

    provider_ref: str
    outcome: str
    occurred_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            self.kind: {
                "provider_ref": self.provider_ref,
                "outcome": self.outcome,
                "occurred_at": _iso(self.occurred_at),
            }
        }


@dataclass(frozen=True)
class AdminNotes:
    """Notes attached by an administrator override."""

    kind: ClassVar[str] = "admin"

    admin_notes: str = ""
    admin_reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "admin_notes": self.admin_notes,
            "admin_reason": self.admin_reason,
        }


StatusMetadata = Union[
    ReactivationDetails,
    PauseDetails,
    ResolutionDetails,
    SessionEndDetails,
    SettlementDetails,
    AdminNotes,
]

ALLOWED_METADATA: dict[CelebrationStatus, tuple[type, ...]] = {
    CelebrationStatus.ACTIVE: (ReactivationDetails, AdminNotes),
    CelebrationStatus.PAUSED: (PauseDetails, AdminNotes),
    CelebrationStatus.RESOLVED: (ResolutionDetails, SettlementDetails, AdminNotes),
    CelebrationStatus.DEFUNCT: (SessionEndDetails, SettlementDetails, AdminNotes),
}


def is_allowed_metadata(
    status: CelebrationStatus, metadata: StatusMetadata | None
) -> bool:
    """Check that ``metadata`` is a variant permitted for ``status``."""
    if metadata is None:
        return True
    return isinstance(metadata, ALLOWED_METADATA[status])


def metadata_to_dict(metadata: StatusMetadata | None) -> dict[str, Any]:
    """Serialize metadata to the persisted ``metadata`` object."""
    if metadata is None:
        return {}
    return metadata.to_dict()


def metadata_from_dict(
    status: CelebrationStatus, payload: dict[str, Any] | None
) -> StatusMetadata | None:
    """Rebuild the metadata variant of a persisted ledger entry.

    Only variants allowed for ``status`` are considered, so every persisted
    shape maps back to exactly one variant.

    Args:
        status: The entry's new status.
        payload: The persisted ``metadata`` object.

    Returns:
        The metadata variant, or None for an empty payload.

    Raises:
        ValueError: If the payload does not match any allowed variant.
    """
    if not payload:
        return None

    allowed = ALLOWED_METADATA[status]

    if ReactivationDetails in allowed and ReactivationDetails.kind in payload:
        body = payload[ReactivationDetails.kind] or {}
        return ReactivationDetails(
            resumed_reason=body.get("resumed_reason", ""),
            related_bill_status=body.get("related_bill_status"),
        )
    if PauseDetails in allowed and PauseDetails.kind in payload:
        body = payload[PauseDetails.kind] or {}
        return PauseDetails(
            pause_reason=body.get("pause_reason", ""),
            expected_resume_date=_parse_date(body.get("expected_resume_date")),
            related_bill_status=body.get("related_bill_status"),
        )
    if ResolutionDetails in allowed and ResolutionDetails.kind in payload:
        body = payload[ResolutionDetails.kind] or {}
        return ResolutionDetails(
            bill_action_date=_parse_date(body.get("bill_action_date")),
            bill_action_type=body.get("bill_action_type", ""),
            bill_action_result=body.get("bill_action_result", ""),
            house_vote_date=_parse_date(body.get("house_vote_date")),
            senate_vote_date=_parse_date(body.get("senate_vote_date")),
        )
    if SessionEndDetails in allowed and SessionEndDetails.kind in payload:
        body = payload[SessionEndDetails.kind] or {}
        return SessionEndDetails(
            session_number=body.get("session_number", ""),
            session_end_date=_parse_date(body.get("session_end_date")),
            session_type=body.get("session_type", "regular"),
        )
    if SettlementDetails in allowed and SettlementDetails.kind in payload:
        body = payload[SettlementDetails.kind] or {}
        return SettlementDetails(
            provider_ref=body["provider_ref"],
            outcome=body["outcome"],
            occurred_at=_parse_datetime(body.get("occurred_at")),
        )
    if "admin_notes" in payload or "admin_reason" in payload:
        return AdminNotes(
            admin_notes=payload.get("admin_notes", ""),
            admin_reason=payload.get("admin_reason", ""),
        )

    raise ValueError(
        f"Metadata keys {sorted(payload)} do not match any variant allowed "
        f"for status '{status.value}'"
    )
