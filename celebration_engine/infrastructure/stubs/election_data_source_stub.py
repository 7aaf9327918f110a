"""Configurable election data source stub.

Modes:
- Answers from a dict of ElectionDates seeded with ``set_dates``.
- ``fail_with_unavailable()``: raises ElectionDataUnavailableError.
- ``hang()``: never answers within the resolver's timeout.
"""

from __future__ import annotations

import asyncio

from celebration_engine.application.ports.election_data_source import (
    ElectionDataSourceProtocol,
)
from celebration_engine.domain.errors.election import ElectionDataUnavailableError
from celebration_engine.domain.models.election import ElectionDates


class ElectionDataSourceStub(ElectionDataSourceProtocol):
    """In-memory election data source with failure injection.

    Attributes:
        calls: (jurisdiction, year) of every lookup, in order.
    """

    def __init__(self) -> None:
        self._dates: dict[tuple[str, int], ElectionDates] = {}
        self._unavailable = False
        self._hang_seconds: float | None = None
        self.calls: list[tuple[str, int]] = []

    def set_dates(self, dates: ElectionDates) -> None:
        self._dates[(dates.jurisdiction, dates.year)] = dates

    def fail_with_unavailable(self) -> None:
        self._unavailable = True

    def hang(self, seconds: float = 3600.0) -> None:
        self._hang_seconds = seconds

    async def fetch_election_dates(self, jurisdiction: str, year: int) -> ElectionDates:
        self.calls.append((jurisdiction, year))
        if self._hang_seconds is not None:
            await asyncio.sleep(self._hang_seconds)
        if self._unavailable:
            raise ElectionDataUnavailableError(jurisdiction, year, detail="stub unavailable")
        dates = self._dates.get((jurisdiction, year))
        if dates is None:
            raise ElectionDataUnavailableError(jurisdiction, year, detail="no stub dates")
        return dates
