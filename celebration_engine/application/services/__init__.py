"""Application services for the celebration engine."""

from celebration_engine.application.services.celebration_lifecycle_service import (
    CelebrationLifecycleService,
)
from celebration_engine.application.services.contribution_limit_service import (
    ContributionLimitService,
)
from celebration_engine.application.services.election_cycle_resolver import (
    ElectionCycleResolver,
)
from celebration_engine.application.services.settlement_coordinator import (
    SettlementCoordinator,
)

__all__: list[str] = [
    "CelebrationLifecycleService",
    "ContributionLimitService",
    "ElectionCycleResolver",
    "SettlementCoordinator",
]
