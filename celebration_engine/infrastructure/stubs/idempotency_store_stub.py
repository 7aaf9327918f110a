"""In-memory idempotency store stub.

A dict keyed by (key, outcome) behind an ``asyncio.Lock`` stands in for
the unique index of the SQL store. Every instance owns its own map.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

from celebration_engine.application.ports.idempotency_store import (
    IdempotencyStoreProtocol,
)
from celebration_engine.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from celebration_engine.domain.models.settlement import (
    IdempotencyEntry,
    IdempotencyState,
)


class IdempotencyStoreStub(IdempotencyStoreProtocol):
    """In-memory implementation of IdempotencyStoreProtocol."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], IdempotencyEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str, outcome: str) -> IdempotencyEntry | None:
        return self._entries.get((key, outcome))

    async def put_if_absent(self, entry: IdempotencyEntry) -> IdempotencyEntry:
        async with self._lock:
            return self._entries.setdefault((entry.key, entry.outcome), entry)

    async def take_over(
        self, entry: IdempotencyEntry, previous_owner: str, stale_before: datetime
    ) -> bool:
        async with self._lock:
            slot = (entry.key, entry.outcome)
            current = self._entries.get(slot)
            if (
                current is None
                or current.state != IdempotencyState.PENDING
                or current.owner_token != previous_owner
                or current.recorded_at >= stale_before
            ):
                return False
            self._entries[slot] = entry
            return True

    async def put(self, entry: IdempotencyEntry) -> None:
        async with self._lock:
            slot = (entry.key, entry.outcome)
            current = self._entries.get(slot)
            if current is not None and current.owner_token != entry.owner_token:
                raise ConcurrentModificationError(
                    celebration_id=entry.key,
                    expected_version=0,
                    operation="idempotency_complete",
                )
            self._entries[slot] = entry

    async def delete(self, key: str, outcome: str, owner_token: str) -> None:
        async with self._lock:
            current = self._entries.get((key, outcome))
            if (
                current is not None
                and current.owner_token == owner_token
                and current.state == IdempotencyState.PENDING
            ):
                del self._entries[(key, outcome)]

    def completed_count(self) -> int:
        return sum(
            1 for e in self._entries.values() if e.state == IdempotencyState.COMPLETED
        )

    def clear(self) -> None:
        """Clear all entries (for test cleanup)."""
        self._entries.clear()
