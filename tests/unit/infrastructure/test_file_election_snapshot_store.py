"""Unit tests for FileElectionSnapshotStore."""

import json
from datetime import date
from pathlib import Path

from celebration_engine.domain.models.election import ElectionDates
from celebration_engine.infrastructure.adapters.file_election_snapshot_store import (
    FileElectionSnapshotStore,
)
from tests.helpers.builders import TX_2026


class TestFileElectionSnapshotStore:
    async def test_missing_file_loads_nothing(self, tmp_path: Path) -> None:
        store = FileElectionSnapshotStore(tmp_path / "snapshot.json")
        assert await store.load("TX", 2026) is None

    async def test_stored_dates_survive_new_instance(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "snapshot.json"
        await FileElectionSnapshotStore(path).store(TX_2026)
        await FileElectionSnapshotStore(path).store(
            ElectionDates(jurisdiction="WY", year=2026, general=date(2026, 11, 3))
        )

        reopened = FileElectionSnapshotStore(path)

        assert await reopened.load("TX", 2026) == TX_2026
        wy = await reopened.load("WY", 2026)
        assert wy is not None and wy.primary is None
        document = json.loads(path.read_text())
        assert document["cycles"]["2026"]["TX"] == {
            "primary": "2026-03-03",
            "general": "2026-11-03",
        }
        assert "updatedAt" in document
        assert [p.name for p in path.parent.iterdir()] == ["snapshot.json"]

    async def test_corrupt_file_loads_nothing(self, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text("{not json")

        assert await FileElectionSnapshotStore(path).load("TX", 2026) is None

    async def test_undecodable_date_is_a_miss(self, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text(
            json.dumps({"cycles": {"2026": {"TX": {"primary": None, "general": "11/03/2026"}}}})
        )

        assert await FileElectionSnapshotStore(path).load("TX", 2026) is None

    async def test_primary_after_general_is_a_miss(self, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text(
            json.dumps(
                {
                    "cycles": {
                        "2026": {
                            "TX": {"primary": "2026-12-01", "general": "2026-11-03"}
                        }
                    }
                }
            )
        )

        assert await FileElectionSnapshotStore(path).load("TX", 2026) is None

    async def test_jurisdiction_lookup_ignores_case(self, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        store = FileElectionSnapshotStore(path)
        await store.store(
            ElectionDates(jurisdiction="tx", year=2026, general=date(2026, 11, 3))
        )

        loaded = await store.load("tx", 2026)

        assert loaded is not None and loaded.jurisdiction == "TX"
        assert await store.load("TX", 2026) == loaded
        assert list(json.loads(path.read_text())["cycles"]["2026"]) == ["TX"]
