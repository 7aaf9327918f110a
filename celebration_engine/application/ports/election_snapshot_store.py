"""Election snapshot store port.

Holds the last successfully fetched election dates per jurisdiction and
year. Only live results are ever written here; nothing is fabricated.
"""

from __future__ import annotations

from typing import Protocol

from celebration_engine.domain.models.election import ElectionDates


class ElectionSnapshotStoreProtocol(Protocol):
    """Protocol for the last-known-good election date cache."""

    async def load(self, jurisdiction: str, year: int) -> ElectionDates | None:
        """Return the cached dates, None when nothing was cached."""
        ...

    async def store(self, dates: ElectionDates) -> None:
        """Record a successful live lookup."""
        ...
