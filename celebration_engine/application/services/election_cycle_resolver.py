"""Election cycle resolver.

Resolves the election reset boundary for a jurisdiction and moment using
a three-tier fallback chain:

1. Live election-data source, bounded by a timeout.
2. Last-known-good snapshot of a previous live lookup.
3. Static default calendar.

If all three are empty, LimitUndeterminedError is raised: a contribution is
never allowed with an unknown cap. The tier that answered is reported on
the boundary as ``source``.

Successful live lookups are written back to the snapshot store.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime

from celebration_engine.application.ports.election_data_source import (
    ElectionDataSourceProtocol,
)
from celebration_engine.application.ports.election_snapshot_store import (
    ElectionSnapshotStoreProtocol,
)
from celebration_engine.application.services.base import LoggingMixin
from celebration_engine.config.election_defaults import DefaultElectionCalendar
from celebration_engine.domain.errors.election import ElectionDataUnavailableError
from celebration_engine.domain.errors.limits import LimitUndeterminedError
from celebration_engine.domain.models.election import (
    BoundarySource,
    ElectionDates,
    ResetBoundary,
)
from celebration_engine.domain.services.reset_windows import (
    election_boundary_instant,
    election_cycle_year,
    local_date,
    statutory_general_date,
)

DEFAULT_LOOKUP_TIMEOUT_SECONDS = 5.0


class ElectionCycleResolver(LoggingMixin):
    """Resolves election reset boundaries with live, cache and default tiers.

    Attributes:
        _live_source: Live election-date source, None to skip the live tier.
        _snapshots: Last-known-good store.
        _defaults: Static calendar.
        _timeout: Seconds allowed for one live lookup.
        _offset: Reference UTC offset for day boundaries.
    """

    def __init__(
        self,
        live_source: ElectionDataSourceProtocol | None,
        snapshot_store: ElectionSnapshotStoreProtocol,
        default_calendar: DefaultElectionCalendar | None = None,
        *,
        timeout_seconds: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS,
        utc_offset_hours: int = -5,
    ) -> None:
        self._live_source = live_source
        self._snapshots = snapshot_store
        self._defaults = default_calendar or DefaultElectionCalendar()
        self._timeout = timeout_seconds
        self._offset = utc_offset_hours
        self._init_logger(component="election")

    async def resolve_election_dates(
        self, jurisdiction: str, year: int
    ) -> tuple[ElectionDates, BoundarySource]:
        """Resolve dates for one jurisdiction and cycle year.

        Returns:
            The dates and the tier that supplied them.

        Raises:
            LimitUndeterminedError: If no tier has dates.
        """
        log = self._log_operation(
            "resolve_election_dates", jurisdiction=jurisdiction, year=year
        )

        live = await self._fetch_live(jurisdiction, year)
        if live is not None:
            await self._remember(live)
            log.debug("election_dates_live")
            return live, BoundarySource.LIVE

        cached = await self._snapshots.load(jurisdiction, year)
        if cached is not None:
            log.info("election_dates_fallback_cache")
            return cached, BoundarySource.CACHE

        default = self._defaults.lookup(jurisdiction, year)
        if default is not None:
            log.warning(
                "election_dates_fallback_default",
                has_primary=default.primary is not None,
            )
            return default, BoundarySource.DEFAULT

        log.error("election_dates_undetermined")
        raise LimitUndeterminedError(jurisdiction=jurisdiction, year=year)

    async def resolve_reset_boundary(
        self, jurisdiction: str, as_of: datetime
    ) -> ResetBoundary:
        """Boundary of the election cycle containing ``as_of``.

        Once the cycle's general election has passed, the next cycle is
        resolved instead and the passed general becomes its lower edge.
        Otherwise the lower edge is the prior cycle's general as last
        cached, or its statutory date when nothing was cached.

        Raises:
            LimitUndeterminedError: If no tier has dates.
        """
        cycle_year = election_cycle_year(local_date(as_of, self._offset))
        dates, source = await self.resolve_election_dates(jurisdiction, cycle_year)
        if as_of < election_boundary_instant(dates.general, self._offset):
            previous_general = await self._previous_general(jurisdiction, cycle_year)
        else:
            previous_general = dates.general
            cycle_year += 2
            dates, source = await self.resolve_election_dates(jurisdiction, cycle_year)
            self._log_operation(
                "resolve_reset_boundary", jurisdiction=jurisdiction
            ).info("election_cycle_rolled_forward", cycle_year=cycle_year)

        return ResetBoundary(
            jurisdiction=jurisdiction,
            cycle_year=cycle_year,
            primary_date=dates.primary,
            general_date=dates.general,
            previous_general_date=previous_general,
            source=source,
        )

    async def _previous_general(self, jurisdiction: str, cycle_year: int) -> date:
        cached = await self._snapshots.load(jurisdiction, cycle_year - 2)
        if cached is not None:
            return cached.general
        return statutory_general_date(cycle_year - 2)

    async def _fetch_live(self, jurisdiction: str, year: int) -> ElectionDates | None:
        if self._live_source is None:
            return None
        log = self._log_operation("fetch_live", jurisdiction=jurisdiction, year=year)
        try:
            return await asyncio.wait_for(
                self._live_source.fetch_election_dates(jurisdiction, year),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            log.warning("election_lookup_timeout", timeout_seconds=self._timeout)
        except ElectionDataUnavailableError as e:
            log.warning("election_lookup_unavailable", detail=e.detail)
        return None

    async def _remember(self, dates: ElectionDates) -> None:
        try:
            await self._snapshots.store(dates)
        except OSError as e:
            # The live answer is still good; only the cache write failed.
            self._log_operation(
                "remember", jurisdiction=dates.jurisdiction, year=dates.year
            ).error("election_snapshot_write_failed", error=str(e))
