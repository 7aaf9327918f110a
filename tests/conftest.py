"""
Pytest configuration and shared fixtures for celebration engine tests.

Testing Standards:
- All async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from __future__ import annotations

import pytest

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
from celebration_engine.infrastructure.stubs import (
    CelebrationRepositoryStub,
    ElectionDataSourceStub,
    ElectionSnapshotStoreStub,
    IdempotencyStoreStub,
)
from tests.helpers.builders import TX_2026
from tests.helpers.fake_time_authority import FakeTimeAuthority


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    from celebration_engine import __version__

    return __version__


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    return FakeTimeAuthority()


@pytest.fixture
def repository() -> CelebrationRepositoryStub:
    return CelebrationRepositoryStub()


@pytest.fixture
def election_source() -> ElectionDataSourceStub:
    source = ElectionDataSourceStub()
    source.set_dates(TX_2026)
    return source


@pytest.fixture
def snapshot_store() -> ElectionSnapshotStoreStub:
    return ElectionSnapshotStoreStub()


@pytest.fixture
def idempotency_store() -> IdempotencyStoreStub:
    return IdempotencyStoreStub()


@pytest.fixture
def resolver(
    election_source: ElectionDataSourceStub,
    snapshot_store: ElectionSnapshotStoreStub,
) -> ElectionCycleResolver:
    return ElectionCycleResolver(election_source, snapshot_store, timeout_seconds=0.05)


@pytest.fixture
def limit_service(
    repository: CelebrationRepositoryStub,
    resolver: ElectionCycleResolver,
    fake_time_authority: FakeTimeAuthority,
) -> ContributionLimitService:
    return ContributionLimitService(repository, resolver, fake_time_authority)


@pytest.fixture
def lifecycle(
    repository: CelebrationRepositoryStub,
    limit_service: ContributionLimitService,
    fake_time_authority: FakeTimeAuthority,
) -> CelebrationLifecycleService:
    return CelebrationLifecycleService(repository, limit_service, fake_time_authority)


@pytest.fixture
def coordinator(
    repository: CelebrationRepositoryStub,
    lifecycle: CelebrationLifecycleService,
    idempotency_store: IdempotencyStoreStub,
    limit_service: ContributionLimitService,
    fake_time_authority: FakeTimeAuthority,
) -> SettlementCoordinator:
    return SettlementCoordinator(
        repository, lifecycle, idempotency_store, limit_service, fake_time_authority
    )
