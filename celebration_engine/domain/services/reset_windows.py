"""Reset-window arithmetic for contribution caps.

All boundaries are computed in a fixed UTC offset (US Eastern Standard
Time by default), never the host's local timezone. Daylight saving time is
intentionally ignored: the reference clock is a constant offset.

Annual window (guest tier):
    [Jan 1 00:00, next Jan 1 00:00) in the reference offset.

Election windows (compliant tier), for a cycle with a known primary:
    PRIMARY  [day after previous general, day after primary)
    GENERAL  [day after primary, day after general)
Without a primary the whole cycle is a single GENERAL window. Moments after
the general belong to the next cycle; resolving that cycle is the
ElectionCycleResolver's job.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from celebration_engine.domain.models.election import (
    ElectionWindowKind,
    ResetBoundary,
    ResetWindow,
)

_NOVEMBER = 11
_MONDAY = 0


def reference_timezone(utc_offset_hours: int) -> timezone:
    """Fixed-offset timezone used for every reset boundary."""
    return timezone(timedelta(hours=utc_offset_hours))


def local_date(moment: datetime, utc_offset_hours: int) -> date:
    """Calendar date of ``moment`` in the reference offset.

    Raises:
        ValueError: If ``moment`` is naive.
    """
    if moment.tzinfo is None:
        raise ValueError("Reset-window arithmetic requires timezone-aware datetimes")
    return moment.astimezone(reference_timezone(utc_offset_hours)).date()


def start_of_day(day: date, utc_offset_hours: int) -> datetime:
    """Midnight of ``day`` in the reference offset, as an aware UTC datetime."""
    local_midnight = datetime.combine(day, time.min, tzinfo=reference_timezone(utc_offset_hours))
    return local_midnight.astimezone(timezone.utc)


def annual_window(moment: datetime, utc_offset_hours: int) -> ResetWindow:
    """Calendar-year window containing ``moment``."""
    year = local_date(moment, utc_offset_hours).year
    return ResetWindow(
        kind=ElectionWindowKind.ANNUAL,
        start=start_of_day(date(year, 1, 1), utc_offset_hours),
        end=start_of_day(date(year + 1, 1, 1), utc_offset_hours),
    )


def election_cycle_year(day: date) -> int:
    """Even election year of the cycle a date falls in.

    Odd years roll forward to the following even year.
    """
    return day.year if day.year % 2 == 0 else day.year + 1


def statutory_general_date(year: int) -> date:
    """Tuesday after the first Monday in November."""
    november_first = date(year, _NOVEMBER, 1)
    first_monday = november_first + timedelta(
        days=(_MONDAY - november_first.weekday()) % 7
    )
    return first_monday + timedelta(days=1)


def election_boundary_instant(election_day: date, utc_offset_hours: int) -> datetime:
    """Instant an election's window closes: start of the following day."""
    return start_of_day(election_day + timedelta(days=1), utc_offset_hours)


def election_windows(
    boundary: ResetBoundary, utc_offset_hours: int
) -> tuple[ResetWindow, ...]:
    """Ordered windows of one election cycle.

    Args:
        boundary: Resolved dates for the cycle.
        utc_offset_hours: Reference offset.

    Returns:
        (PRIMARY, GENERAL) when a primary is known, else (GENERAL,).
    """
    cycle_start = election_boundary_instant(
        boundary.previous_general_date, utc_offset_hours
    )
    cycle_end = election_boundary_instant(boundary.general_date, utc_offset_hours)
    if boundary.primary_date is None:
        return (ResetWindow(ElectionWindowKind.GENERAL, cycle_start, cycle_end),)

    primary_end = election_boundary_instant(boundary.primary_date, utc_offset_hours)
    return (
        ResetWindow(ElectionWindowKind.PRIMARY, cycle_start, primary_end),
        ResetWindow(ElectionWindowKind.GENERAL, primary_end, cycle_end),
    )


def election_window(
    boundary: ResetBoundary, moment: datetime, utc_offset_hours: int
) -> ResetWindow:
    """Election window of ``boundary``'s cycle that contains ``moment``.

    Raises:
        ValueError: If ``moment`` falls outside the cycle; the caller
            resolved the wrong cycle.
    """
    for window in election_windows(boundary, utc_offset_hours):
        if window.contains(moment):
            return window
    raise ValueError(
        f"{moment.isoformat()} is outside the {boundary.cycle_year} election "
        f"cycle for {boundary.jurisdiction}"
    )
