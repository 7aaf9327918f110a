"""In-memory election snapshot store stub."""

from __future__ import annotations

from celebration_engine.application.ports.election_snapshot_store import (
    ElectionSnapshotStoreProtocol,
)
from celebration_engine.domain.models.election import ElectionDates


class ElectionSnapshotStoreStub(ElectionSnapshotStoreProtocol):
    def __init__(self) -> None:
        self._snapshots: dict[tuple[str, int], ElectionDates] = {}

    async def load(self, jurisdiction: str, year: int) -> ElectionDates | None:
        return self._snapshots.get((jurisdiction.upper(), year))

    async def store(self, dates: ElectionDates) -> None:
        self._snapshots[(dates.jurisdiction.upper(), dates.year)] = dates

    def clear(self) -> None:
        self._snapshots.clear()
