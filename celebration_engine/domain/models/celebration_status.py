"""Celebration status lifecycle (state machine definition).

State Machine:
    ACTIVE -> PAUSED (condition temporarily blocked, e.g. bill tabled)
    ACTIVE -> RESOLVED (condition met, escrow released)
    ACTIVE -> DEFUNCT (condition can no longer be met, never charged)
    PAUSED -> ACTIVE (reactivation)
    PAUSED -> DEFUNCT

Terminal States:
    RESOLVED and DEFUNCT have no outgoing transitions. A refund is never
    modeled as deletion; the record stays in its terminal state so the
    ledger remains a complete audit trail.
"""

from __future__ import annotations

from enum import Enum


class CelebrationStatus(str, Enum):
    """Status of an escrowed celebration.

    States:
        ACTIVE: Initial state, funds committed and waiting on the condition.
        PAUSED: Temporarily suspended; still counts toward limits.
        RESOLVED: Condition met and funds released (terminal).
        DEFUNCT: Condition voided, nothing charged (terminal).
    """

    ACTIVE = "active"
    PAUSED = "paused"
    RESOLVED = "resolved"
    DEFUNCT = "defunct"

    def is_terminal(self) -> bool:
        """Check if this status is terminal.

        Returns:
            True if no transition may follow this status.
        """
        return self in TERMINAL_STATUSES

    def valid_transitions(self) -> frozenset[CelebrationStatus]:
        """Get valid target statuses from this status.

        Returns:
            Frozenset of reachable statuses. Empty for terminal statuses.
        """
        return STATUS_TRANSITION_MATRIX.get(self, frozenset())

    def can_transition_to(self, target: CelebrationStatus) -> bool:
        """Check whether the edge ``self -> target`` exists."""
        return target in self.valid_transitions()


# Sentinel used as previous_status of the creation entry.
INITIAL_PREVIOUS_STATUS = "none"

TERMINAL_STATUSES: frozenset[CelebrationStatus] = frozenset(
    {
        CelebrationStatus.RESOLVED,
        CelebrationStatus.DEFUNCT,
    }
)

# Maps each status to its valid target statuses. Self-edges are absent.
STATUS_TRANSITION_MATRIX: dict[CelebrationStatus, frozenset[CelebrationStatus]] = {
    CelebrationStatus.ACTIVE: frozenset(
        {
            CelebrationStatus.PAUSED,
            CelebrationStatus.RESOLVED,
            CelebrationStatus.DEFUNCT,
        }
    ),
    CelebrationStatus.PAUSED: frozenset(
        {
            CelebrationStatus.ACTIVE,
            CelebrationStatus.DEFUNCT,
        }
    ),
    CelebrationStatus.RESOLVED: frozenset(),
    CelebrationStatus.DEFUNCT: frozenset(),
}


class TriggerSource(str, Enum):
    """Who or what triggered a status change.

    Values:
        SYSTEM: Internal engine action (creation, settlement).
        ADMIN: Administrative override.
        USER: The contributor.
        API: External API caller.
        SCHEDULED_CONDITION: A scheduled watcher that observed a real-world
            condition (session end, bill status, challenger status).
    """

    SYSTEM = "system"
    ADMIN = "admin"
    USER = "user"
    API = "api"
    SCHEDULED_CONDITION = "scheduled-condition"
