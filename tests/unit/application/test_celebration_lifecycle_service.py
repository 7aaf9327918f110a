"""Unit tests for CelebrationLifecycleService.

Covers:
- Opening celebrations behind the limit gate, idempotent on the key
- Transitions with optimistic-lock retries
- Reactivation re-validation against current capacity
- Read-only queries
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from celebration_engine.application.services.celebration_lifecycle_service import (
    CelebrationLifecycleService,
)
from celebration_engine.application.services.contribution_limit_service import (
    ContributionLimitService,
)
from celebration_engine.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
    RetryableError,
)
from celebration_engine.domain.errors.limits import LimitExceededError
from celebration_engine.domain.errors.record import UnknownRecordError
from celebration_engine.domain.errors.state_transition import (
    CelebrationTerminalError,
    InvalidStatusMetadataError,
    InvalidTransitionError,
)
from celebration_engine.domain.models.celebration import Celebration, Recipient
from celebration_engine.domain.models.celebration_status import (
    CelebrationStatus,
    TriggerSource,
)
from celebration_engine.domain.models.compliance import ComplianceTier
from celebration_engine.domain.models.limits import LimitViolationReason
from celebration_engine.domain.models.status_metadata import (
    PauseDetails,
    ReactivationDetails,
    ResolutionDetails,
    SessionEndDetails,
)
from celebration_engine.infrastructure.stubs import CelebrationRepositoryStub
from tests.helpers.builders import COMPLIANT_PROFILE, GUEST_PROFILE, make_celebration
from tests.helpers.fake_time_authority import FakeTimeAuthority

TX_POL = Recipient(id="pol-1", jurisdiction="TX")


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


async def open_guest(
    lifecycle: CelebrationLifecycleService,
    donation: str = "25",
    key: str = "key-1",
    tip: str = "0",
) -> Celebration:
    return await lifecycle.open_celebration(
        contributor_id="contributor-1",
        recipient=TX_POL,
        bill_id="hr-1234-119",
        donation=Decimal(donation),
        tip=Decimal(tip),
        idempotency_key=key,
        profile=GUEST_PROFILE,
        username="ada",
    )


class ConflictingRepository(CelebrationRepositoryStub):
    """Loses the first ``conflicts`` CAS appends."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts

    async def append_entry_cas(
        self, celebration_id: str, expected_version: int, updated: Celebration
    ) -> Celebration:
        if self.conflicts > 0:
            self.conflicts -= 1
            self.cas_failures += 1
            raise ConcurrentModificationError(
                celebration_id=celebration_id,
                expected_version=expected_version,
                actual_version=expected_version + 1,
            )
        return await super().append_entry_cas(celebration_id, expected_version, updated)


# =============================================================================
# Opening
# =============================================================================


class TestOpenCelebration:
    async def test_opens_active_record_with_snapshot(
        self,
        lifecycle: CelebrationLifecycleService,
        repository: CelebrationRepositoryStub,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        celebration = await open_guest(lifecycle, tip="3")

        stored = await repository.get(celebration.id)
        assert stored == celebration
        assert celebration.current_status == CelebrationStatus.ACTIVE
        assert celebration.created_at == fake_time_authority.now()
        assert celebration.compliance_tier == ComplianceTier.GUEST
        assert celebration.donor_snapshot.username == "ada"
        assert celebration.tip == Decimal("3")

    async def test_over_cap_is_rejected_before_any_record(
        self,
        lifecycle: CelebrationLifecycleService,
        repository: CelebrationRepositoryStub,
    ) -> None:
        with pytest.raises(LimitExceededError) as exc_info:
            await open_guest(lifecycle, donation="60")

        assert exc_info.value.reason == LimitViolationReason.EXCEEDS_PER_CONTRIBUTION_CAP
        assert await repository.get_by_idempotency_key("key-1") is None

    async def test_replayed_key_returns_original(
        self,
        lifecycle: CelebrationLifecycleService,
        repository: CelebrationRepositoryStub,
    ) -> None:
        first = await open_guest(lifecycle)
        second = await open_guest(lifecycle, donation="40")

        assert second == first
        assert len(await repository.list_by_contributor("contributor-1")) == 1

    async def test_compliant_contributor_uses_election_cap(
        self, lifecycle: CelebrationLifecycleService
    ) -> None:
        celebration = await lifecycle.open_celebration(
            contributor_id="contributor-1",
            recipient=TX_POL,
            bill_id="hr-1",
            donation=Decimal("3500"),
            idempotency_key="key-big",
            profile=COMPLIANT_PROFILE,
        )

        assert celebration.compliance_tier == ComplianceTier.COMPLIANT
        assert celebration.status_ledger[0].fec_compliant is True

    async def test_ratcheted_tier_is_snapshotted(
        self,
        lifecycle: CelebrationLifecycleService,
        repository: CelebrationRepositoryStub,
    ) -> None:
        await repository.save(
            make_celebration(created_at=utc(2026, 1, 5), tier=ComplianceTier.COMPLIANT)
        )

        celebration = await open_guest(lifecycle, donation="500", key="key-ratchet")

        assert celebration.compliance_tier == ComplianceTier.COMPLIANT
        assert celebration.status_ledger[0].fec_compliant is False


# =============================================================================
# Transitions
# =============================================================================


class TestRequestTransition:
    async def test_pause_activate_resolve(
        self,
        lifecycle: CelebrationLifecycleService,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        celebration = await open_guest(lifecycle)

        fake_time_authority.advance(seconds=60)
        paused = await lifecycle.pause(celebration.id)
        fake_time_authority.advance(seconds=60)
        active = await lifecycle.activate(celebration.id)
        resolved = await lifecycle.resolve(celebration.id)

        assert paused.status_ledger[-1].metadata == PauseDetails("Celebration paused")
        assert active.status_ledger[-1].metadata == ReactivationDetails(
            resumed_reason="Celebration reactivated"
        )
        assert resolved.status_ledger[-1].metadata == ResolutionDetails()
        assert resolved.version == 4
        assert resolved.replay_status() == CelebrationStatus.RESOLVED
        assert [e.triggered_by_name for e in resolved.status_ledger[1:]] == [
            "System - Pause",
            "System - Activation",
            "System - Resolution",
        ]

    async def test_make_defunct_uses_scheduled_trigger(
        self, lifecycle: CelebrationLifecycleService
    ) -> None:
        celebration = await open_guest(lifecycle)

        defunct = await lifecycle.make_defunct(celebration.id)

        entry = defunct.status_ledger[-1]
        assert entry.triggered_by == TriggerSource.SCHEDULED_CONDITION
        assert entry.metadata == SessionEndDetails()
        assert defunct.defunct_date == entry.change_datetime

    async def test_terminal_record_cannot_move(
        self, lifecycle: CelebrationLifecycleService
    ) -> None:
        celebration = await open_guest(lifecycle)
        await lifecycle.resolve(celebration.id)

        with pytest.raises(CelebrationTerminalError):
            await lifecycle.pause(celebration.id)

    async def test_invalid_edge_reaches_caller(
        self, lifecycle: CelebrationLifecycleService
    ) -> None:
        celebration = await open_guest(lifecycle)
        await lifecycle.pause(celebration.id)

        with pytest.raises(InvalidTransitionError):
            await lifecycle.resolve(celebration.id)

    async def test_wrong_metadata_rejected(
        self, lifecycle: CelebrationLifecycleService
    ) -> None:
        celebration = await open_guest(lifecycle)

        with pytest.raises(InvalidStatusMetadataError):
            await lifecycle.pause(celebration.id, metadata=SessionEndDetails())

    async def test_unknown_record(self, lifecycle: CelebrationLifecycleService) -> None:
        with pytest.raises(UnknownRecordError):
            await lifecycle.pause("missing")

    async def test_conflict_is_retried(
        self,
        limit_service: ContributionLimitService,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        repository = ConflictingRepository(conflicts=2)
        lifecycle = CelebrationLifecycleService(
            repository, limit_service, fake_time_authority
        )
        celebration = make_celebration(created_at=fake_time_authority.now())
        await repository.save(celebration)

        paused = await lifecycle.pause(celebration.id)

        assert paused.current_status == CelebrationStatus.PAUSED
        assert paused.version == 2
        assert repository.cas_failures == 2

    async def test_retries_exhausted_raise_retryable(
        self,
        limit_service: ContributionLimitService,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        repository = ConflictingRepository(conflicts=10)
        lifecycle = CelebrationLifecycleService(
            repository, limit_service, fake_time_authority, max_attempts=3
        )
        celebration = make_celebration(created_at=fake_time_authority.now())
        await repository.save(celebration)

        with pytest.raises(RetryableError) as exc_info:
            await lifecycle.pause(celebration.id)

        assert exc_info.value.attempts == 3
        assert repository.cas_failures == 3
        stored = await repository.get(celebration.id)
        assert stored is not None and stored.version == 1

    def test_max_attempts_must_be_positive(
        self,
        repository: CelebrationRepositoryStub,
        limit_service: ContributionLimitService,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        with pytest.raises(ValueError):
            CelebrationLifecycleService(
                repository, limit_service, fake_time_authority, max_attempts=0
            )


class TestReactivationRevalidation:
    async def _fill_year(self, repository: CelebrationRepositoryStub) -> Celebration:
        # Paused last year, then the 2026 annual cap was used up elsewhere.
        paused = make_celebration(
            created_at=utc(2025, 12, 15), donation=50, status=CelebrationStatus.PAUSED
        )
        await repository.save(paused)
        for n in range(4):
            await repository.save(
                make_celebration(
                    created_at=utc(2026, 2, 1 + n), donation=50, recipient_id=f"pol-{n}"
                )
            )
        return paused

    async def test_reactivation_over_current_cap_rejected(
        self,
        lifecycle: CelebrationLifecycleService,
        repository: CelebrationRepositoryStub,
    ) -> None:
        paused = await self._fill_year(repository)

        with pytest.raises(LimitExceededError) as exc_info:
            await lifecycle.activate(paused.id)

        assert exc_info.value.reason == LimitViolationReason.EXCEEDS_CUMULATIVE_CAP
        assert await lifecycle.get_current_status(paused.id) == CelebrationStatus.PAUSED

    async def test_reactivation_without_revalidation(
        self,
        lifecycle: CelebrationLifecycleService,
        repository: CelebrationRepositoryStub,
    ) -> None:
        paused = await self._fill_year(repository)

        active = await lifecycle.activate(paused.id, revalidate_limit=False)

        assert active.current_status == CelebrationStatus.ACTIVE

    async def test_reactivation_excludes_own_amount(
        self,
        lifecycle: CelebrationLifecycleService,
    ) -> None:
        celebration = await open_guest(lifecycle, donation="50")
        await lifecycle.pause(celebration.id)

        active = await lifecycle.activate(celebration.id)

        assert active.current_status == CelebrationStatus.ACTIVE


# =============================================================================
# Queries
# =============================================================================


class TestQueries:
    async def test_status_history(
        self,
        lifecycle: CelebrationLifecycleService,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        celebration = await open_guest(lifecycle)
        fake_time_authority.advance(seconds=86400)
        await lifecycle.pause(celebration.id, reason="Bill tabled")
        fake_time_authority.advance(seconds=3 * 86400)

        history = await lifecycle.get_status_history(celebration.id, limit=1)

        assert history.total_changes == 2
        assert [e.reason for e in history.recent_changes] == ["Bill tabled"]
        assert history.duration.current_status_duration_days == 3
        assert history.duration.total_lifetime_days == 4

    async def test_get_celebration_unknown(
        self, lifecycle: CelebrationLifecycleService
    ) -> None:
        with pytest.raises(UnknownRecordError):
            await lifecycle.get_current_status("missing")

    async def test_list_needing_updates_skips_terminal_and_seed(
        self,
        lifecycle: CelebrationLifecycleService,
        repository: CelebrationRepositoryStub,
    ) -> None:
        now = utc(2026, 3, 1)
        active = make_celebration(created_at=now)
        paused = make_celebration(created_at=now, status=CelebrationStatus.PAUSED)
        resolved = make_celebration(created_at=now, status=CelebrationStatus.RESOLVED)
        seed = make_celebration(created_at=now, idempotency_key="seed:demo")
        for c in (active, paused, resolved, seed):
            await repository.save(c)

        grouped = await lifecycle.list_needing_updates()

        assert [c.id for c in grouped[CelebrationStatus.ACTIVE]] == [active.id]
        assert [c.id for c in grouped[CelebrationStatus.PAUSED]] == [paused.id]
