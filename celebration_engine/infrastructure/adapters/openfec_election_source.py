"""OpenFEC election-date source.

Fetches House primary and general election dates from the OpenFEC
``/election-dates/`` endpoint. Every failure (missing API key, transport
error, non-2xx status, malformed or empty payload) is reported as
ElectionDataUnavailableError so the resolver can fall back.

When the payload has a primary but no general, the statutory general
(Tuesday after the first Monday in November) is used.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from celebration_engine.application.ports.election_data_source import (
    ElectionDataSourceProtocol,
)
from celebration_engine.domain.errors.election import ElectionDataUnavailableError
from celebration_engine.domain.models.election import ElectionDates
from celebration_engine.domain.services.reset_windows import statutory_general_date
from celebration_engine.infrastructure.observability.logging import (
    get_logger_for_component,
)

ELECTION_DATES_ENDPOINT = "/election-dates/"
PRIMARY_TYPE_ID = "P"
GENERAL_TYPE_ID = "G"
HOUSE_OFFICE = "H"
PAGE_SIZE = 100


class OpenFecElectionSource(ElectionDataSourceProtocol):
    """ElectionDataSourceProtocol backed by the OpenFEC API.

    Args:
        base_url: API base, e.g. https://api.open.fec.gov/v1
        api_key: OpenFEC key; without one every lookup is unavailable.
        timeout_seconds: httpx timeout for one request.
        client: Shared client; one is created per call when omitted.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        *,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + ELECTION_DATES_ENDPOINT
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._client = client
        self._log = get_logger_for_component(self.__class__.__name__, component="election")

    async def fetch_election_dates(self, jurisdiction: str, year: int) -> ElectionDates:
        if not self._api_key:
            raise ElectionDataUnavailableError(jurisdiction, year, detail="FEC API key not configured")

        params: dict[str, str | int] = {
            "election_year": year,
            "election_state": jurisdiction,
            "office": HOUSE_OFFICE,
            "per_page": PAGE_SIZE,
            "api_key": self._api_key,
        }
        log = self._log.bind(jurisdiction=jurisdiction, year=year)
        try:
            payload = await self._get(params)
        except httpx.HTTPError as e:
            log.warning("openfec_request_failed", error=str(e))
            raise ElectionDataUnavailableError(jurisdiction, year, detail=str(e)) from e
        except ValueError as e:
            # 200 with a body that is not JSON, e.g. a maintenance page
            log.warning("openfec_response_not_json", error=str(e))
            raise ElectionDataUnavailableError(jurisdiction, year, detail=str(e)) from e

        dates = self._parse(jurisdiction, year, payload)
        log.info(
            "openfec_election_dates_fetched",
            primary=dates.primary.isoformat() if dates.primary else None,
            general=dates.general.isoformat(),
        )
        return dates

    async def _get(self, params: dict[str, str | int]) -> Any:
        if self._client is not None:
            response = await self._client.get(self._url, params=params, timeout=self._timeout)
            response.raise_for_status()
            return response.json()
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(self._url, params=params)
            response.raise_for_status()
            return response.json()

    def _parse(self, jurisdiction: str, year: int, payload: Any) -> ElectionDates:
        results = payload.get("results") if isinstance(payload, dict) else None
        if not results:
            raise ElectionDataUnavailableError(jurisdiction, year, detail="no results")

        earliest: dict[str, date] = {}
        if not isinstance(results, list):
            raise ElectionDataUnavailableError(jurisdiction, year, detail="results is not a list")
        for election in results:
            if not isinstance(election, dict):
                continue
            type_id = election.get("election_type_id")
            if type_id not in (PRIMARY_TYPE_ID, GENERAL_TYPE_ID):
                continue
            state = election.get("election_state")
            if state and state != jurisdiction:
                continue
            try:
                when = date.fromisoformat(str(election["election_date"])[:10])
            except (KeyError, ValueError):
                continue
            if when.year != year:
                continue
            if type_id not in earliest or when < earliest[type_id]:
                earliest[type_id] = when

        if not earliest:
            raise ElectionDataUnavailableError(
                jurisdiction, year, detail="no primary or general in results"
            )
        try:
            return ElectionDates(
                jurisdiction=jurisdiction,
                year=year,
                primary=earliest.get(PRIMARY_TYPE_ID),
                general=earliest.get(GENERAL_TYPE_ID, statutory_general_date(year)),
            )
        except ValueError as e:
            raise ElectionDataUnavailableError(jurisdiction, year, detail=str(e)) from e
