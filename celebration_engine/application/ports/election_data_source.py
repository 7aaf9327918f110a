"""Election data source port.

Live lookup of primary and general election dates. Implementations must
not block indefinitely; the resolver additionally wraps every call in a
timeout.
"""

from __future__ import annotations

from typing import Protocol

from celebration_engine.domain.models.election import ElectionDates


class ElectionDataSourceProtocol(Protocol):
    """Protocol for live election-date lookups."""

    async def fetch_election_dates(self, jurisdiction: str, year: int) -> ElectionDates:
        """Fetch dates for a jurisdiction and even election year.

        Raises:
            ElectionDataUnavailableError: If the source cannot answer.
        """
        ...
