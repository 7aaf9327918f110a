"""Celebration repository port.

Persistence for celebrations and their status ledgers.

Developer Rules:
1. FAIL LOUD - Repository raises on errors.
2. CAS FOR LEDGER APPENDS - ``append_entry_cas`` is the only write after
   creation. It commits only when the stored ledger length still equals
   ``expected_version``, and writes ``current_status``, the legacy flags and
   the ledger in a single update.
3. NEVER DELETE - Terminal records stay in storage forever.
"""

from __future__ import annotations

from typing import Protocol

from celebration_engine.domain.models.celebration import Celebration
from celebration_engine.domain.models.celebration_status import CelebrationStatus


class CelebrationRepositoryProtocol(Protocol):
    """Protocol for celebration storage operations.

    Implementations may use a document store, a relational database or
    in-memory storage.
    """

    async def save(self, celebration: Celebration) -> None:
        """Store a newly opened celebration.

        Raises:
            DuplicateRecordError: If the id or idempotency key already exists.
        """
        ...

    async def get(self, celebration_id: str) -> Celebration | None:
        """Retrieve a celebration by id, None if absent."""
        ...

    async def get_by_idempotency_key(self, idempotency_key: str) -> Celebration | None:
        """Retrieve a celebration by its creation idempotency key."""
        ...

    async def append_entry_cas(
        self,
        celebration_id: str,
        expected_version: int,
        updated: Celebration,
    ) -> Celebration:
        """Atomically replace a celebration if its version is unchanged.

        Production implementations use
        ``UPDATE ... WHERE id = :id AND ledger_length = :expected`` or an
        equivalent conditional document update.

        Args:
            celebration_id: Celebration to update.
            expected_version: Ledger length the caller read.
            updated: Celebration with exactly one more ledger entry.

        Returns:
            The stored celebration.

        Raises:
            ConcurrentModificationError: If the stored version differs.
            UnknownRecordError: If the celebration does not exist.
        """
        ...

    async def list_by_contributor(self, contributor_id: str) -> list[Celebration]:
        """All celebrations of a contributor, any status."""
        ...

    async def list_by_status(
        self,
        status: CelebrationStatus,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Celebration], int]:
        """Celebrations in ``status``, newest first.

        Returns:
            Tuple of (page of celebrations, total count in that status).
        """
        ...
