"""Unit tests for OpenFecElectionSource using httpx.MockTransport."""

from datetime import date

import httpx
import pytest

from celebration_engine.application.services.election_cycle_resolver import (
    ElectionCycleResolver,
)
from celebration_engine.domain.errors.election import ElectionDataUnavailableError
from celebration_engine.domain.models.election import BoundarySource
from celebration_engine.infrastructure.adapters.openfec_election_source import (
    OpenFecElectionSource,
)
from celebration_engine.infrastructure.stubs import ElectionSnapshotStoreStub
from tests.helpers.builders import TX_2026

BASE_URL = "https://api.open.fec.gov/v1"


def make_source(handler, api_key: str | None = "test-key") -> OpenFecElectionSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenFecElectionSource(BASE_URL, api_key, client=client)


class TestFetchElectionDates:
    async def test_parses_primary_and_general(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "results": [
                        {"election_state": "TX", "election_type_id": "G", "election_date": "2026-11-03"},
                        {"election_state": "TX", "election_type_id": "P", "election_date": "2026-05-26"},
                        {"election_state": "TX", "election_type_id": "P", "election_date": "2026-03-03"},
                        {"election_state": "TX", "election_type_id": "SG", "election_date": "2026-01-31"},
                    ]
                },
            )

        dates = await make_source(handler).fetch_election_dates("TX", 2026)

        assert dates.primary == date(2026, 3, 3)
        assert dates.general == date(2026, 11, 3)
        params = seen[0].url.params
        assert seen[0].url.path == "/v1/election-dates/"
        assert params["election_state"] == "TX"
        assert params["election_year"] == "2026"
        assert params["office"] == "H"
        assert params["per_page"] == "100"
        assert params["api_key"] == "test-key"

    async def test_missing_general_uses_statutory_date(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "results": [
                        {"election_state": "CA", "election_type_id": "P", "election_date": "2026-06-02"}
                    ]
                },
            )

        dates = await make_source(handler).fetch_election_dates("CA", 2026)

        assert dates.primary == date(2026, 6, 2)
        assert dates.general == date(2026, 11, 3)

    async def test_server_error_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "down"})

        with pytest.raises(ElectionDataUnavailableError):
            await make_source(handler).fetch_election_dates("TX", 2026)

    async def test_transport_error_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ElectionDataUnavailableError):
            await make_source(handler).fetch_election_dates("TX", 2026)

    async def test_empty_results_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"results": []})

        with pytest.raises(ElectionDataUnavailableError) as exc_info:
            await make_source(handler).fetch_election_dates("TX", 2026)
        assert exc_info.value.detail == "no results"

    async def test_missing_api_key_makes_no_request(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"results": []})

        with pytest.raises(ElectionDataUnavailableError):
            await make_source(handler, api_key=None).fetch_election_dates("TX", 2026)
        assert calls == []

    async def test_html_body_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        with pytest.raises(ElectionDataUnavailableError):
            await make_source(handler).fetch_election_dates("TX", 2026)

    async def test_non_object_results_are_skipped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "results": [
                        "garbage",
                        None,
                        {
                            "election_state": "TX",
                            "election_type_id": "P",
                            "election_date": "2026-03-03",
                        },
                    ]
                },
            )

        dates = await make_source(handler).fetch_election_dates("TX", 2026)

        assert dates.primary == date(2026, 3, 3)

    async def test_results_not_a_list_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"results": {"election_type_id": "P"}})

        with pytest.raises(ElectionDataUnavailableError):
            await make_source(handler).fetch_election_dates("TX", 2026)


class TestResolverWithOpenFec:
    async def test_maintenance_page_falls_back_to_cache(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        snapshots = ElectionSnapshotStoreStub()
        await snapshots.store(TX_2026)
        resolver = ElectionCycleResolver(make_source(handler), snapshots)

        dates, source = await resolver.resolve_election_dates("TX", 2026)

        assert source == BoundarySource.CACHE
        assert dates == TX_2026
