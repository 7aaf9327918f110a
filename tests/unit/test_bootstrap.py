"""Unit tests for bootstrap helpers."""

from unittest.mock import MagicMock

import pytest
import structlog

from celebration_engine.bootstrap import build_engine, configure_structlog
from celebration_engine.bootstrap import engine as engine_module
from celebration_engine.bootstrap.database import (
    get_database_url,
    mask_database_url,
)
from celebration_engine.bootstrap.engine import (
    build_election_source,
    build_idempotency_store,
)
from celebration_engine.config.engine_config import EngineConfig
from celebration_engine.infrastructure.adapters.openfec_election_source import (
    OpenFecElectionSource,
)
from celebration_engine.infrastructure.stubs import (
    CelebrationRepositoryStub,
    IdempotencyStoreStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority


# =============================================================================
# Database URL
# =============================================================================


class TestDatabaseUrl:
    @pytest.mark.parametrize(
        "raw",
        [
            "postgresql://app:secret@db:5432/engine",
            "postgres://app:secret@db:5432/engine",
            "postgresql+asyncpg://app:secret@db:5432/engine",
        ],
    )
    def test_converted_to_asyncpg(self, raw: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", raw)
        assert get_database_url() == "postgresql+asyncpg://app:secret@db:5432/engine"

    def test_missing_url_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValueError):
            get_database_url()

    def test_password_masked(self) -> None:
        masked = mask_database_url("postgresql+asyncpg://app:secret@db:5432/engine")
        assert masked == "postgresql+asyncpg://app:***@db:5432/engine"

    def test_url_without_password_unchanged(self) -> None:
        assert mask_database_url("postgresql://db/engine") == "postgresql://db/engine"


# =============================================================================
# Engine wiring
# =============================================================================


class TestEngineWiring:
    def test_no_api_key_disables_live_source(self) -> None:
        assert build_election_source(EngineConfig(fec_api_key=None)) is None

    def test_api_key_builds_openfec_source(self) -> None:
        source = build_election_source(EngineConfig(fec_api_key="key"))
        assert isinstance(source, OpenFecElectionSource)

    def test_in_memory_store_without_database(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert isinstance(build_idempotency_store(), IdempotencyStoreStub)

    def test_overrides_are_used(self, tmp_path) -> None:
        repository = CelebrationRepositoryStub()
        engine = build_engine(
            EngineConfig(election_snapshot_path=str(tmp_path / "dates.json")),
            repository=repository,
            idempotency_store=IdempotencyStoreStub(),
            time_authority=FakeTimeAuthority(),
        )
        assert engine.repository is repository

    def test_missing_repository_warns_in_memory(
        self, tmp_path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        logger = MagicMock()
        monkeypatch.setattr(engine_module, "logger", logger)

        engine = build_engine(
            EngineConfig(election_snapshot_path=str(tmp_path / "dates.json")),
            idempotency_store=IdempotencyStoreStub(),
            time_authority=FakeTimeAuthority(),
        )

        assert isinstance(engine.repository, CelebrationRepositoryStub)
        events = [c.args[0] for c in logger.warning.call_args_list]
        assert "celebration_repository_initialized" in events


# =============================================================================
# Logging
# =============================================================================


class TestConfigureLogging:
    def test_environment_variable_selects_renderer(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        try:
            assert configure_structlog() == "production"
            processors = structlog.get_config()["processors"]
            assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        finally:
            structlog.reset_defaults()

    def test_defaults_to_development(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        try:
            assert configure_structlog() == "development"
        finally:
            structlog.reset_defaults()
