"""Idempotency store port.

Keyed store of (idempotency key, outcome) -> recorded result. Settlement
and lifecycle events are applied at most once per slot.

Concurrency:
    ``put_if_absent`` is the guard. Two concurrent deliveries of the same
    event race on it and exactly one of them gets its own entry back; the
    other receives the winner's entry. Production backends implement it
    with a unique constraint on (key, outcome); a read followed by a
    separate write is not acceptable.

Leases:
    A PENDING entry is a lease that starts at ``recorded_at``. When its
    owner dies or cannot complete it, a later delivery claims the slot
    with ``take_over`` once the lease has run out.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from celebration_engine.domain.models.settlement import IdempotencyEntry


class IdempotencyStoreProtocol(Protocol):
    """Protocol for the idempotency key store."""

    async def get(self, key: str, outcome: str) -> IdempotencyEntry | None:
        """Return the entry for a slot, None if the slot is free."""
        ...

    async def put_if_absent(self, entry: IdempotencyEntry) -> IdempotencyEntry:
        """Reserve a slot.

        Returns:
            ``entry`` itself when it was stored, otherwise the entry that
            already occupied the slot.
        """
        ...

    async def take_over(
        self, entry: IdempotencyEntry, previous_owner: str, stale_before: datetime
    ) -> bool:
        """Claim a PENDING slot whose lease has run out.

        The slot is handed to ``entry.owner_token`` only while it is still
        PENDING, still owned by ``previous_owner`` and was recorded before
        ``stale_before``.

        Returns:
            True if the caller now owns the slot.
        """
        ...

    async def put(self, entry: IdempotencyEntry) -> None:
        """Complete a slot the caller reserved.

        Raises:
            ConcurrentModificationError: If the stored entry belongs to a
                different owner.
        """
        ...

    async def delete(self, key: str, outcome: str, owner_token: str) -> None:
        """Release a PENDING reservation so a redelivery can retry.

        A slot owned by someone else, or already COMPLETED, is left alone.
        """
        ...
