"""Bootstrap wiring for the celebration engine services.

``build_engine`` assembles every service from configuration. Adapters are
picked from the environment:

- Election data: OpenFEC when FEC_API_KEY is set, otherwise the live tier
  is skipped and the cache/default tiers answer.
- Snapshots: JSON file at ELECTION_SNAPSHOT_PATH.
- Idempotency: PostgreSQL when DATABASE_URL is set, otherwise in-memory.
- Celebrations: in-memory repository unless one is passed in.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from structlog import get_logger

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
from celebration_engine.config.election_defaults import DefaultElectionCalendar
from celebration_engine.config.engine_config import ComplianceLimitsConfig, EngineConfig
from celebration_engine.domain.services.donation_limit_calculator import (
    DonationLimitCalculator,
)
from celebration_engine.infrastructure.adapters.file_election_snapshot_store import (
    FileElectionSnapshotStore,
)
from celebration_engine.infrastructure.adapters.openfec_election_source import (
    OpenFecElectionSource,
)
from celebration_engine.infrastructure.adapters.system_time_authority import (
    SystemTimeAuthority,
)
from celebration_engine.infrastructure.stubs.celebration_repository_stub import (
    CelebrationRepositoryStub,
)
from celebration_engine.infrastructure.stubs.idempotency_store_stub import (
    IdempotencyStoreStub,
)

logger = get_logger()


@dataclass(frozen=True)
class CelebrationEngine:
    """Wired service graph."""

    repository: CelebrationRepositoryProtocol
    resolver: ElectionCycleResolver
    limits: ContributionLimitService
    lifecycle: CelebrationLifecycleService
    settlement: SettlementCoordinator


def build_election_source(config: EngineConfig) -> ElectionDataSourceProtocol | None:
    if not config.fec_api_key:
        logger.warning(
            "election_source_disabled",
            message="FEC_API_KEY not set, live election lookups skipped",
        )
        return None
    return OpenFecElectionSource(
        config.fec_api_base_url,
        config.fec_api_key,
        timeout_seconds=config.election_lookup_timeout_seconds,
    )


def build_idempotency_store() -> IdempotencyStoreProtocol:
    """PostgreSQL store when DATABASE_URL is set, in-memory otherwise."""
    if os.environ.get("DATABASE_URL"):
        from celebration_engine.bootstrap.database import get_session_factory
        from celebration_engine.infrastructure.adapters.sql_idempotency_store import (
            SqlIdempotencyStore,
        )

        logger.info("idempotency_store_initialized", store_type="PostgreSQL")
        return SqlIdempotencyStore(get_session_factory())

    logger.warning(
        "idempotency_store_initialized",
        store_type="in-memory",
        message="DATABASE_URL not set, idempotency records are not durable",
    )
    return IdempotencyStoreStub()


def build_engine(
    config: EngineConfig | None = None,
    limits: ComplianceLimitsConfig | None = None,
    *,
    repository: CelebrationRepositoryProtocol | None = None,
    election_source: ElectionDataSourceProtocol | None = None,
    snapshot_store: ElectionSnapshotStoreProtocol | None = None,
    idempotency_store: IdempotencyStoreProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    default_calendar: DefaultElectionCalendar | None = None,
) -> CelebrationEngine:
    """Wire the engine. Every collaborator can be overridden."""
    config = config or EngineConfig.from_env()
    limits = limits or ComplianceLimitsConfig.from_env()

    if repository is None:
        logger.warning(
            "celebration_repository_initialized",
            store_type="in-memory",
            message="No repository supplied, celebrations and their ledgers are not durable",
        )
        repository = CelebrationRepositoryStub()
    clock = time_authority or SystemTimeAuthority()
    resolver = ElectionCycleResolver(
        election_source if election_source is not None else build_election_source(config),
        snapshot_store or FileElectionSnapshotStore(config.election_snapshot_path),
        default_calendar,
        timeout_seconds=config.election_lookup_timeout_seconds,
        utc_offset_hours=limits.reset_utc_offset_hours,
    )
    limit_service = ContributionLimitService(
        repository, resolver, clock, DonationLimitCalculator(limits)
    )
    lifecycle = CelebrationLifecycleService(
        repository,
        limit_service,
        clock,
        max_attempts=config.max_transition_attempts,
    )
    settlement = SettlementCoordinator(
        repository,
        lifecycle,
        idempotency_store or build_idempotency_store(),
        limit_service,
        clock,
        pending_lease_seconds=config.settlement_lease_seconds,
    )
    logger.info(
        "celebration_engine_built",
        max_transition_attempts=config.max_transition_attempts,
        election_lookup_timeout_seconds=config.election_lookup_timeout_seconds,
    )
    return CelebrationEngine(
        repository=repository,
        resolver=resolver,
        limits=limit_service,
        lifecycle=lifecycle,
        settlement=settlement,
    )
