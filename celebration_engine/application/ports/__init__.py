"""Application ports (interfaces) for the celebration engine.

Ports define the contracts that infrastructure adapters implement.
"""

from celebration_engine.application.ports.celebration_repository import (
    CelebrationRepositoryProtocol,
)
from celebration_engine.application.ports.election_data_source import (
    ElectionDataSourceProtocol,
)
from celebration_engine.application.ports.election_snapshot_store import (
    ElectionSnapshotStoreProtocol,
)
from celebration_engine.application.ports.idempotency_store import (
    IdempotencyStoreProtocol,
)
from celebration_engine.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "CelebrationRepositoryProtocol",
    "ElectionDataSourceProtocol",
    "ElectionSnapshotStoreProtocol",
    "IdempotencyStoreProtocol",
    "TimeAuthorityProtocol",
]
