"""State transition errors for the celebration status ledger.

A rejected transition is always a programming error or a benign race
(for example a late pause arriving after resolution). The settlement
coordinator drops it; direct API callers see it as misuse.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from celebration_engine.domain.exceptions import CelebrationEngineError

if TYPE_CHECKING:
    from celebration_engine.domain.models.celebration_status import CelebrationStatus


class InvalidTransitionError(CelebrationEngineError):
    """Raised when the requested edge is not in the transition matrix.

    Attributes:
        from_status: Current status of the celebration.
        to_status: Attempted target status.
        allowed_transitions: Valid target statuses from the current status.
    """

    def __init__(
        self,
        from_status: CelebrationStatus,
        to_status: CelebrationStatus,
        allowed_transitions: list[CelebrationStatus] | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize invalid transition error.

        Args:
            from_status: Current celebration status.
            to_status: Attempted invalid target status.
            allowed_transitions: Valid statuses from current status (optional).
            message: Override for the default message.
        """
        self.from_status = from_status
        self.to_status = to_status
        self.allowed_transitions = allowed_transitions or []

        allowed_str = (
            f" Valid transitions: {sorted(s.value for s in self.allowed_transitions)}"
            if self.allowed_transitions
            else ""
        )
        super().__init__(
            message
            or f"Invalid status transition: {from_status.value} -> {to_status.value}.{allowed_str}"
        )


class CelebrationTerminalError(InvalidTransitionError):
    """Raised when a transition is requested out of RESOLVED or DEFUNCT.

    Subclass of InvalidTransitionError so callers that treat every invalid
    edge alike do not need a second handler.

    Attributes:
        celebration_id: Id of the celebration.
        terminal_status: The terminal status it is in.
    """

    def __init__(
        self,
        celebration_id: str,
        terminal_status: CelebrationStatus,
        to_status: CelebrationStatus,
    ) -> None:
        self.celebration_id = celebration_id
        self.terminal_status = terminal_status
        super().__init__(
            from_status=terminal_status,
            to_status=to_status,
            message=(
                f"Celebration {celebration_id} is already {terminal_status.value}. "
                "Terminal statuses cannot be changed."
            ),
        )


class InvalidStatusMetadataError(CelebrationEngineError):
    """Raised when a metadata variant does not belong to the target status."""

    def __init__(self, to_status: CelebrationStatus, metadata_kind: str) -> None:
        self.to_status = to_status
        self.metadata_kind = metadata_kind
        super().__init__(
            f"Metadata '{metadata_kind}' is not valid for a transition to "
            f"'{to_status.value}'"
        )
