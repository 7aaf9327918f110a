"""Pure domain services.

Nothing here performs I/O; every function takes the clock reading and
collaborator data it needs as arguments.
"""

from celebration_engine.domain.services.compliance_tier_engine import (
    achievable_tier,
    effective_tier,
    snapshot_supports_tier,
    tier_high_water_mark,
)
from celebration_engine.domain.services.donation_limit_calculator import (
    DonationLimitCalculator,
    counts_toward_limit,
)
from celebration_engine.domain.services.status_ledger import (
    StatusLedger,
    calculate_status_duration,
    get_status_history,
    validate_transition,
)

__all__: list[str] = [
    "DonationLimitCalculator",
    "StatusLedger",
    "achievable_tier",
    "calculate_status_duration",
    "counts_toward_limit",
    "effective_tier",
    "get_status_history",
    "snapshot_supports_tier",
    "tier_high_water_mark",
    "validate_transition",
]
