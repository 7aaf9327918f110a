"""Static default election calendar.

Last tier of the election-date fallback chain, used when neither the live
source nor the snapshot store can answer.

Known jurisdictions always resolve: explicit dates where a cycle's primary
is recorded below, otherwise the statutory federal general election with
the primary unknown (the cycle is then a single window). Unknown
jurisdiction codes do not resolve at all.
"""

from __future__ import annotations

from datetime import date

from celebration_engine.domain.models.election import ElectionDates
from celebration_engine.domain.services.reset_windows import statutory_general_date

US_JURISDICTIONS: frozenset[str] = frozenset(
    {
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
        "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
        "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
        "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
        "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
        "DC", "AS", "GU", "MP", "PR", "VI",
    }
)

# Primary dates keyed by (jurisdiction, cycle year).
DEFAULT_PRIMARY_DATES: dict[tuple[str, int], date] = {
    ("CA", 2024): date(2024, 3, 5),
    ("IL", 2024): date(2024, 3, 19),
    ("NC", 2024): date(2024, 3, 5),
    ("TX", 2024): date(2024, 3, 5),
    ("CA", 2026): date(2026, 6, 2),
    ("IL", 2026): date(2026, 3, 17),
    ("NC", 2026): date(2026, 3, 3),
    ("TX", 2026): date(2026, 3, 3),
}


class DefaultElectionCalendar:
    """Lookup over the static default calendar.

    Args:
        primaries: Override of DEFAULT_PRIMARY_DATES.
        jurisdictions: Override of US_JURISDICTIONS.
    """

    def __init__(
        self,
        primaries: dict[tuple[str, int], date] | None = None,
        jurisdictions: frozenset[str] | None = None,
    ) -> None:
        self._primaries = DEFAULT_PRIMARY_DATES if primaries is None else primaries
        self._jurisdictions = US_JURISDICTIONS if jurisdictions is None else jurisdictions

    def lookup(self, jurisdiction: str, year: int) -> ElectionDates | None:
        code = jurisdiction.upper()
        if code not in self._jurisdictions:
            return None
        return ElectionDates(
            jurisdiction=code,
            year=year,
            general=statutory_general_date(year),
            primary=self._primaries.get((code, year)),
        )


EMPTY_ELECTION_CALENDAR = DefaultElectionCalendar(primaries={}, jurisdictions=frozenset())
