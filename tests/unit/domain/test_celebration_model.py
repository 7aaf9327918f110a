"""Unit tests for the Celebration aggregate and its persisted document."""

from datetime import datetime, timezone

import pytest

from celebration_engine.domain.models.celebration import Celebration
from celebration_engine.domain.models.celebration_status import CelebrationStatus
from celebration_engine.domain.models.status_metadata import PauseDetails
from tests.helpers.builders import make_celebration

CREATED = datetime(2026, 3, 1, 12, tzinfo=timezone.utc)


class TestCelebrationInvariants:
    def test_empty_ledger_rejected(self) -> None:
        celebration = make_celebration(created_at=CREATED)
        with pytest.raises(ValueError):
            Celebration(**{**celebration.__dict__, "status_ledger": ()})

    def test_entry_after_terminal_rejected(self) -> None:
        resolved = make_celebration(created_at=CREATED, status=CelebrationStatus.RESOLVED)
        paused_entry = make_celebration(
            created_at=CREATED, status=CelebrationStatus.PAUSED
        ).status_ledger[-1]

        with pytest.raises(ValueError):
            resolved.with_entry(paused_entry)

    def test_seed_records_are_flagged(self) -> None:
        seed = make_celebration(created_at=CREATED, idempotency_key="seed:demo-1")
        assert seed.is_seed is True


class TestCelebrationDocument:
    def test_document_carries_projection_and_legacy_flags(self) -> None:
        paused = make_celebration(created_at=CREATED, status=CelebrationStatus.PAUSED)

        document = paused.to_document()

        assert document["current_status"] == "paused"
        assert document["paused"] is True
        assert document["resolved"] is False
        assert document["status_ledger"][0]["previous_status"] == "none"
        assert document["status_ledger"][1]["metadata"] == {
            "pause_details": {
                "pause_reason": "tabled",
                "expected_resume_date": None,
                "related_bill_status": None,
            }
        }

    def test_document_reload_restores_ledger(self) -> None:
        paused = make_celebration(created_at=CREATED, status=CelebrationStatus.PAUSED)

        reloaded = Celebration.from_document(paused.to_document())

        assert reloaded == paused
        assert reloaded.status_ledger[-1].metadata == PauseDetails("tabled")

    def test_disagreeing_current_status_rejected(self) -> None:
        document = make_celebration(created_at=CREATED).to_document()
        document["current_status"] = "resolved"

        with pytest.raises(ValueError):
            Celebration.from_document(document)
