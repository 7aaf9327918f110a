"""Election calendar models used for limit reset windows.

Compliant-tier limits reset at a jurisdiction's primary and general
election dates. A cycle is split into ordered windows:

    [previous general, primary)  -> counts toward the primary
    [primary, general)           -> counts toward the general
    after the general            -> first window of the next cycle

Election dates are calendar dates; window boundaries are instants at the
start of the day after the election in the fixed reference timezone, so a
contribution made on election day still counts toward that election.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class BoundarySource(str, Enum):
    """Which tier of the fallback chain produced a reset boundary."""

    LIVE = "live"
    CACHE = "cache"
    DEFAULT = "default"


class ElectionWindowKind(str, Enum):
    """Which election a contribution window counts toward."""

    PRIMARY = "primary"
    GENERAL = "general"
    ANNUAL = "annual"


@dataclass(frozen=True)
class ElectionDates:
    """Primary and general election dates for one jurisdiction and year.

    ``primary`` may be unknown; ``general`` is always set once resolved.
    """

    jurisdiction: str
    year: int
    general: date
    primary: date | None = None

    def __post_init__(self) -> None:
        if self.primary is not None and self.primary > self.general:
            raise ValueError(
                f"Primary {self.primary} falls after general {self.general} "
                f"for {self.jurisdiction}"
            )

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "jurisdiction": self.jurisdiction,
            "year": self.year,
            "primary": self.primary.isoformat() if self.primary else None,
            "general": self.general.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> ElectionDates:
        primary = payload.get("primary")
        return cls(
            jurisdiction=str(payload["jurisdiction"]),
            year=int(str(payload["year"])),
            general=date.fromisoformat(str(payload["general"])),
            primary=date.fromisoformat(str(primary)) if primary else None,
        )


@dataclass(frozen=True)
class ResetBoundary:
    """Election reset boundary for the cycle that contains a given date.

    Attributes:
        jurisdiction: State code.
        cycle_year: Even election year of the cycle.
        primary_date: Primary election date, if known.
        general_date: General election date.
        previous_general_date: General election date of the prior cycle,
            the lower edge of the first window.
        source: Fallback tier that supplied the dates.
    """

    jurisdiction: str
    cycle_year: int
    general_date: date
    previous_general_date: date
    source: BoundarySource
    primary_date: date | None = None

    @property
    def used_fallback(self) -> bool:
        return self.source != BoundarySource.LIVE


@dataclass(frozen=True)
class ResetWindow:
    """Half-open instant range ``[start, end)`` over which a cap accumulates."""

    kind: ElectionWindowKind
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end
