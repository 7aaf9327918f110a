"""Unit tests for reset-window arithmetic.

Reference offset is UTC-5 throughout, so local midnight is 05:00 UTC.
"""

from datetime import date, datetime, timezone

import pytest

from celebration_engine.domain.models.election import (
    BoundarySource,
    ElectionWindowKind,
    ResetBoundary,
)
from celebration_engine.domain.services.reset_windows import (
    annual_window,
    election_boundary_instant,
    election_cycle_year,
    election_window,
    election_windows,
    local_date,
    statutory_general_date,
)

OFFSET = -5

TX_2026_BOUNDARY = ResetBoundary(
    jurisdiction="TX",
    cycle_year=2026,
    primary_date=date(2026, 3, 3),
    general_date=date(2026, 11, 3),
    previous_general_date=date(2024, 11, 5),
    source=BoundarySource.LIVE,
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestStatutoryGeneral:
    @pytest.mark.parametrize(
        ("year", "expected"),
        [
            (2024, date(2024, 11, 5)),
            (2026, date(2026, 11, 3)),
            (2028, date(2028, 11, 7)),
            (2027, date(2027, 11, 2)),
        ],
    )
    def test_tuesday_after_first_monday(self, year: int, expected: date) -> None:
        assert statutory_general_date(year) == expected

    def test_odd_years_roll_to_next_cycle(self) -> None:
        assert election_cycle_year(date(2025, 6, 1)) == 2026
        assert election_cycle_year(date(2026, 6, 1)) == 2026


class TestAnnualWindow:
    def test_window_spans_local_calendar_year(self) -> None:
        window = annual_window(utc(2026, 3, 10, 15), OFFSET)

        assert window.kind == ElectionWindowKind.ANNUAL
        assert window.start == utc(2026, 1, 1, 5)
        assert window.end == utc(2027, 1, 1, 5)

    def test_new_years_eve_in_reference_zone_is_previous_year(self) -> None:
        # 03:00 UTC on Jan 1 is still Dec 31 at UTC-5.
        window = annual_window(utc(2027, 1, 1, 3), OFFSET)
        assert window.start == utc(2026, 1, 1, 5)
        assert window.contains(utc(2027, 1, 1, 3))

    def test_naive_datetime_rejected(self) -> None:
        with pytest.raises(ValueError):
            local_date(datetime(2026, 1, 1), OFFSET)


class TestElectionWindows:
    def test_primary_and_general_windows(self) -> None:
        primary, general = election_windows(TX_2026_BOUNDARY, OFFSET)

        assert primary.kind == ElectionWindowKind.PRIMARY
        assert primary.start == utc(2024, 11, 6, 5)
        assert primary.end == utc(2026, 3, 4, 5)
        assert general.kind == ElectionWindowKind.GENERAL
        assert general.start == primary.end
        assert general.end == utc(2026, 11, 4, 5)

    def test_election_day_counts_toward_that_election(self) -> None:
        # 20:00 local on primary day.
        moment = utc(2026, 3, 4, 1)
        assert election_window(TX_2026_BOUNDARY, moment, OFFSET).kind == (
            ElectionWindowKind.PRIMARY
        )

    def test_day_after_primary_counts_toward_general(self) -> None:
        moment = election_boundary_instant(date(2026, 3, 3), OFFSET)
        assert election_window(TX_2026_BOUNDARY, moment, OFFSET).kind == (
            ElectionWindowKind.GENERAL
        )

    def test_unknown_primary_gives_single_general_window(self) -> None:
        boundary = ResetBoundary(
            jurisdiction="WY",
            cycle_year=2026,
            general_date=date(2026, 11, 3),
            previous_general_date=date(2024, 11, 5),
            source=BoundarySource.DEFAULT,
        )

        (window,) = election_windows(boundary, OFFSET)

        assert window.kind == ElectionWindowKind.GENERAL
        assert boundary.used_fallback is True

    def test_moment_after_general_is_outside_cycle(self) -> None:
        with pytest.raises(ValueError):
            election_window(TX_2026_BOUNDARY, utc(2026, 11, 10), OFFSET)
