"""In-memory celebration repository stub.

Not for production use. Ledger appends simulate an atomic CAS with an
``asyncio.Lock``; a real backend uses a conditional update on the ledger
length instead.
"""

from __future__ import annotations

import asyncio

from celebration_engine.application.ports.celebration_repository import (
    CelebrationRepositoryProtocol,
)
from celebration_engine.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from celebration_engine.domain.errors.record import (
    DuplicateRecordError,
    UnknownRecordError,
)
from celebration_engine.domain.models.celebration import Celebration
from celebration_engine.domain.models.celebration_status import CelebrationStatus


class CelebrationRepositoryStub(CelebrationRepositoryProtocol):
    """In-memory implementation of CelebrationRepositoryProtocol.

    Attributes:
        _celebrations: Celebration id -> celebration.
        _by_idempotency_key: Idempotency key -> celebration id.
        cas_failures: Number of CAS conflicts raised, for assertions.
    """

    def __init__(self) -> None:
        self._celebrations: dict[str, Celebration] = {}
        self._by_idempotency_key: dict[str, str] = {}
        self._cas_lock = asyncio.Lock()
        self.cas_failures = 0

    async def save(self, celebration: Celebration) -> None:
        async with self._cas_lock:
            if celebration.id in self._celebrations:
                raise DuplicateRecordError(celebration.id)
            if celebration.idempotency_key in self._by_idempotency_key:
                raise DuplicateRecordError(celebration.idempotency_key)
            self._celebrations[celebration.id] = celebration
            self._by_idempotency_key[celebration.idempotency_key] = celebration.id

    async def get(self, celebration_id: str) -> Celebration | None:
        return self._celebrations.get(celebration_id)

    async def get_by_idempotency_key(self, idempotency_key: str) -> Celebration | None:
        celebration_id = self._by_idempotency_key.get(idempotency_key)
        if celebration_id is None:
            return None
        return self._celebrations.get(celebration_id)

    async def append_entry_cas(
        self,
        celebration_id: str,
        expected_version: int,
        updated: Celebration,
    ) -> Celebration:
        async with self._cas_lock:
            current = self._celebrations.get(celebration_id)
            if current is None:
                raise UnknownRecordError(celebration_id)
            if current.version != expected_version:
                self.cas_failures += 1
                raise ConcurrentModificationError(
                    celebration_id=celebration_id,
                    expected_version=expected_version,
                    actual_version=current.version,
                )
            if updated.version != expected_version + 1:
                raise ValueError(
                    f"Append to {celebration_id} must add exactly one ledger entry"
                )
            if updated.status_ledger[:expected_version] != current.status_ledger:
                raise ValueError(f"Existing ledger entries of {celebration_id} changed")
            self._celebrations[celebration_id] = updated
            return updated

    async def list_by_contributor(self, contributor_id: str) -> list[Celebration]:
        return [
            c for c in self._celebrations.values() if c.contributor_id == contributor_id
        ]

    async def list_by_status(
        self,
        status: CelebrationStatus,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Celebration], int]:
        matching = [c for c in self._celebrations.values() if c.current_status == status]
        matching.sort(key=lambda c: c.created_at, reverse=True)
        return matching[offset : offset + limit], len(matching)

    def clear(self) -> None:
        """Clear all stored celebrations (for test cleanup)."""
        self._celebrations.clear()
        self._by_idempotency_key.clear()
        self.cas_failures = 0
