"""Domain models for the celebration engine.

Contains value objects and domain models that represent
core business concepts. These models are immutable and
contain no infrastructure dependencies.
"""

from celebration_engine.domain.models.celebration import (
    AuditTrail,
    Celebration,
    Recipient,
    StatusChangeEntry,
    StatusDuration,
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
    EmploymentStatus,
    ResetType,
)

__all__: list[str] = [
    "AuditTrail",
    "Celebration",
    "CelebrationStatus",
    "ComplianceTier",
    "ContributorProfile",
    "DonorSnapshot",
    "EmploymentStatus",
    "Recipient",
    "ResetType",
    "StatusChangeEntry",
    "StatusDuration",
    "StatusHistory",
    "TransitionTrigger",
    "TriggerSource",
]
