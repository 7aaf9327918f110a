"""Unit tests for SqlIdempotencyStore with a mocked async session."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from celebration_engine.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from celebration_engine.domain.models.celebration_status import CelebrationStatus
from celebration_engine.domain.models.settlement import (
    IdempotencyEntry,
    IdempotencyState,
    SettlementDisposition,
    SettlementResult,
)
from celebration_engine.infrastructure.adapters.sql_idempotency_store import (
    SqlIdempotencyStore,
)

RECORDED = datetime(2026, 3, 10, 15, tzinfo=timezone.utc)


def session_factory(session: MagicMock) -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory


def make_session(execute_result: MagicMock) -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock(return_value=execute_result)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


class TestSqlIdempotencyStore:
    async def test_get_rebuilds_completed_entry(self) -> None:
        row = SimpleNamespace(
            idempotency_key="pay-key-1",
            outcome="captured",
            state="completed",
            owner_token="tok",
            recorded_at=RECORDED,
            result={
                "disposition": "applied",
                "record_id": "cel-1",
                "status": "resolved",
                "status_change_id": "chg-2",
                "idempotency_key": "pay-key-1",
                "outcome": "captured",
            },
        )
        result = MagicMock()
        result.first.return_value = row
        store = SqlIdempotencyStore(session_factory(make_session(result)))

        entry = await store.get("pay-key-1", "captured")

        assert entry is not None
        assert entry.state == IdempotencyState.COMPLETED
        assert entry.result == SettlementResult(
            disposition=SettlementDisposition.APPLIED,
            record_id="cel-1",
            status=CelebrationStatus.RESOLVED,
            status_change_id="chg-2",
            idempotency_key="pay-key-1",
            outcome="captured",
        )

    async def test_get_missing(self) -> None:
        result = MagicMock()
        result.first.return_value = None
        store = SqlIdempotencyStore(session_factory(make_session(result)))

        assert await store.get("nope", "captured") is None

    async def test_put_if_absent_returns_winner(self) -> None:
        winner = SimpleNamespace(
            idempotency_key="pay-key-1",
            outcome="captured",
            state="pending",
            owner_token="first",
            recorded_at=RECORDED,
            result=None,
        )
        result = MagicMock()
        result.one.return_value = winner
        session = make_session(result)
        store = SqlIdempotencyStore(session_factory(session))

        stored = await store.put_if_absent(
            IdempotencyEntry(
                key="pay-key-1",
                outcome="captured",
                state=IdempotencyState.PENDING,
                owner_token="second",
                recorded_at=RECORDED,
            )
        )

        assert stored.owner_token == "first"
        assert session.execute.await_count == 2
        session.commit.assert_awaited_once()

    async def test_complete_by_non_owner_conflicts(self) -> None:
        session = make_session(MagicMock(rowcount=0))
        store = SqlIdempotencyStore(session_factory(session))

        with pytest.raises(ConcurrentModificationError):
            await store.put(
                IdempotencyEntry(
                    key="pay-key-1",
                    outcome="captured",
                    state=IdempotencyState.COMPLETED,
                    owner_token="intruder",
                    recorded_at=RECORDED,
                )
            )
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    async def test_take_over_of_stale_reservation_commits(self) -> None:
        session = make_session(MagicMock(rowcount=1))
        store = SqlIdempotencyStore(session_factory(session))
        claim = IdempotencyEntry(
            key="pay-key-1",
            outcome="captured",
            state=IdempotencyState.PENDING,
            owner_token="second",
            recorded_at=RECORDED,
        )

        assert await store.take_over(claim, "first", RECORDED) is True

        params = session.execute.await_args.args[1]
        assert params["previous_owner"] == "first"
        assert params["owner_token"] == "second"
        assert params["stale_before"] == RECORDED
        session.commit.assert_awaited_once()

    async def test_take_over_of_live_reservation_rolls_back(self) -> None:
        session = make_session(MagicMock(rowcount=0))
        store = SqlIdempotencyStore(session_factory(session))
        claim = IdempotencyEntry(
            key="pay-key-1",
            outcome="captured",
            state=IdempotencyState.PENDING,
            owner_token="second",
            recorded_at=RECORDED,
        )

        assert await store.take_over(claim, "first", RECORDED) is False
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
