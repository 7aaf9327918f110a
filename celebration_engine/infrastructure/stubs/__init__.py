"""Infrastructure stubs for development and testing.

Available stubs:
- CelebrationRepositoryStub: In-memory celebrations with lock-simulated CAS
- IdempotencyStoreStub: In-memory (key, outcome) map with put-if-absent
- ElectionDataSourceStub: Seeded dates with unavailable / hang modes
- ElectionSnapshotStoreStub: In-memory last-known-good cache

WARNING: These stubs are NOT for production use.
Production implementations are in celebration_engine/infrastructure/adapters/.
"""

from celebration_engine.infrastructure.stubs.celebration_repository_stub import (
    CelebrationRepositoryStub,
)
from celebration_engine.infrastructure.stubs.election_data_source_stub import (
    ElectionDataSourceStub,
)
from celebration_engine.infrastructure.stubs.election_snapshot_store_stub import (
    ElectionSnapshotStoreStub,
)
from celebration_engine.infrastructure.stubs.idempotency_store_stub import (
    IdempotencyStoreStub,
)

__all__: list[str] = [
    "CelebrationRepositoryStub",
    "ElectionDataSourceStub",
    "ElectionSnapshotStoreStub",
    "IdempotencyStoreStub",
]
