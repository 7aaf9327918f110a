"""PostgreSQL idempotency store (SQLAlchemy async).

Table:
    CREATE TABLE celebration_idempotency (
        idempotency_key TEXT NOT NULL,
        outcome         TEXT NOT NULL,
        state           TEXT NOT NULL,
        owner_token     TEXT NOT NULL,
        recorded_at     TIMESTAMPTZ NOT NULL,
        result          JSONB,
        PRIMARY KEY (idempotency_key, outcome)
    );

The primary key is the race guard: ``put_if_absent`` is an
``INSERT ... ON CONFLICT DO NOTHING`` and the loser reads back the winner.
An expired PENDING lease changes hands with a conditional ``UPDATE`` on
the previous owner token.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from celebration_engine.application.ports.idempotency_store import (
    IdempotencyStoreProtocol,
)
from celebration_engine.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from celebration_engine.domain.models.settlement import (
    IdempotencyEntry,
    IdempotencyState,
    SettlementResult,
)

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS celebration_idempotency (
    idempotency_key TEXT NOT NULL,
    outcome         TEXT NOT NULL,
    state           TEXT NOT NULL,
    owner_token     TEXT NOT NULL,
    recorded_at     TIMESTAMPTZ NOT NULL,
    result          JSONB,
    PRIMARY KEY (idempotency_key, outcome)
)
"""

_SELECT_SQL = text("""
    SELECT idempotency_key, outcome, state, owner_token, recorded_at, result
    FROM celebration_idempotency
    WHERE idempotency_key = :key AND outcome = :outcome
""")

_INSERT_SQL = text("""
    INSERT INTO celebration_idempotency
        (idempotency_key, outcome, state, owner_token, recorded_at, result)
    VALUES (:key, :outcome, :state, :owner_token, :recorded_at, CAST(:result AS JSONB))
    ON CONFLICT (idempotency_key, outcome) DO NOTHING
""")

_COMPLETE_SQL = text("""
    UPDATE celebration_idempotency
    SET state = :state, recorded_at = :recorded_at, result = CAST(:result AS JSONB)
    WHERE idempotency_key = :key AND outcome = :outcome AND owner_token = :owner_token
""")

_TAKE_OVER_SQL = text("""
    UPDATE celebration_idempotency
    SET owner_token = :owner_token, recorded_at = :recorded_at
    WHERE idempotency_key = :key
      AND outcome = :outcome
      AND owner_token = :previous_owner
      AND state = 'pending'
      AND recorded_at < :stale_before
""")

_RELEASE_SQL = text("""
    DELETE FROM celebration_idempotency
    WHERE idempotency_key = :key
      AND outcome = :outcome
      AND owner_token = :owner_token
      AND state = 'pending'
""")


def _entry_params(entry: IdempotencyEntry) -> dict[str, Any]:
    return {
        "key": entry.key,
        "outcome": entry.outcome,
        "state": entry.state.value,
        "owner_token": entry.owner_token,
        "recorded_at": entry.recorded_at,
        "result": json.dumps(entry.result.to_dict()) if entry.result else None,
    }


def _row_to_entry(row: Any) -> IdempotencyEntry:
    result = row.result
    if isinstance(result, str):
        result = json.loads(result)
    return IdempotencyEntry(
        key=row.idempotency_key,
        outcome=row.outcome,
        state=IdempotencyState(row.state),
        owner_token=row.owner_token,
        recorded_at=row.recorded_at,
        result=SettlementResult.from_dict(result) if result else None,
    )


class SqlIdempotencyStore(IdempotencyStoreProtocol):
    """IdempotencyStoreProtocol on PostgreSQL through SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_schema(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text(CREATE_TABLE_SQL))
            await session.commit()

    async def get(self, key: str, outcome: str) -> IdempotencyEntry | None:
        async with self._session_factory() as session:
            result = await session.execute(_SELECT_SQL, {"key": key, "outcome": outcome})
            row = result.first()
        return _row_to_entry(row) if row else None

    async def put_if_absent(self, entry: IdempotencyEntry) -> IdempotencyEntry:
        async with self._session_factory() as session:
            await session.execute(_INSERT_SQL, _entry_params(entry))
            result = await session.execute(
                _SELECT_SQL, {"key": entry.key, "outcome": entry.outcome}
            )
            row = result.one()
            await session.commit()
        return _row_to_entry(row)

    async def take_over(
        self, entry: IdempotencyEntry, previous_owner: str, stale_before: datetime
    ) -> bool:
        params = {
            "key": entry.key,
            "outcome": entry.outcome,
            "owner_token": entry.owner_token,
            "recorded_at": entry.recorded_at,
            "previous_owner": previous_owner,
            "stale_before": stale_before,
        }
        async with self._session_factory() as session:
            result = await session.execute(_TAKE_OVER_SQL, params)
            if result.rowcount != 1:
                await session.rollback()
                return False
            await session.commit()
        return True

    async def put(self, entry: IdempotencyEntry) -> None:
        async with self._session_factory() as session:
            result = await session.execute(_COMPLETE_SQL, _entry_params(entry))
            if result.rowcount != 1:
                await session.rollback()
                raise ConcurrentModificationError(
                    celebration_id=entry.key,
                    expected_version=0,
                    operation="idempotency_complete",
                )
            await session.commit()

    async def delete(self, key: str, outcome: str, owner_token: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                _RELEASE_SQL,
                {"key": key, "outcome": outcome, "owner_token": owner_token},
            )
            await session.commit()
