"""Domain errors for the celebration engine.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from CelebrationEngineError.
"""

from celebration_engine.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
    RetryableError,
)
from celebration_engine.domain.errors.election import ElectionDataUnavailableError
from celebration_engine.domain.errors.limits import (
    LimitExceededError,
    LimitUndeterminedError,
)
from celebration_engine.domain.errors.record import (
    DuplicateRecordError,
    UnknownRecordError,
)
from celebration_engine.domain.errors.state_transition import (
    CelebrationTerminalError,
    InvalidStatusMetadataError,
    InvalidTransitionError,
)
from celebration_engine.domain.exceptions import CelebrationEngineError

__all__: list[str] = [
    "CelebrationEngineError",
    "CelebrationTerminalError",
    "ConcurrentModificationError",
    "DuplicateRecordError",
    "ElectionDataUnavailableError",
    "InvalidStatusMetadataError",
    "InvalidTransitionError",
    "LimitExceededError",
    "LimitUndeterminedError",
    "RetryableError",
    "UnknownRecordError",
]
