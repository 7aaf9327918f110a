"""PostgreSQL session factory for the durable idempotency store.

Celebrations themselves are persisted by the host application; the engine
only needs a database for the (idempotency key, outcome) table.

Environment:
    DATABASE_URL: postgres:// or postgresql:// URL, rewritten to the
        asyncpg driver.
    SQLALCHEMY_ECHO: "1", "true" or "yes" to echo statements.
"""

from __future__ import annotations

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

logger = get_logger()

ASYNC_SCHEME = "postgresql+asyncpg://"
_SYNC_SCHEMES = ("postgresql://", "postgres://")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_database_url() -> str:
    """DATABASE_URL with the asyncpg scheme.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    url = os.environ.get("DATABASE_URL", "")
    if not url:
        raise ValueError("DATABASE_URL is not set; the idempotency store needs PostgreSQL")
    if url.startswith(ASYNC_SCHEME):
        return url
    for scheme in _SYNC_SCHEMES:
        if url.startswith(scheme):
            return ASYNC_SCHEME + url[len(scheme) :]
    return ASYNC_SCHEME + url


def mask_database_url(url: str) -> str:
    """``url`` with the password replaced by ``***``."""
    scheme, sep, rest = url.partition("://")
    userinfo, at, host = rest.rpartition("@")
    if not at or ":" not in userinfo:
        return url
    user = userinfo.split(":", 1)[0]
    return f"{scheme}{sep}{user}:***@{host}"


def _echo_enabled() -> bool:
    return os.environ.get("SQLALCHEMY_ECHO", "").lower() in {"1", "true", "yes"}


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Process-wide session factory, created on first use.

    Raises:
        ValueError: If DATABASE_URL is not configured.
    """
    global _engine, _session_factory

    if _session_factory is not None:
        return _session_factory

    url = get_database_url()
    log = logger.bind(component="database_bootstrap")
    log.info("idempotency_database_connecting", url=mask_database_url(url))
    _engine = create_async_engine(url, echo=_echo_enabled(), pool_pre_ping=True)
    _session_factory = async_sessionmaker(
        bind=_engine, class_=AsyncSession, expire_on_commit=False
    )
    log.info("idempotency_session_factory_ready")
    return _session_factory


def reset_database_bootstrap() -> None:
    """Forget the cached engine without disposing it (tests only)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None


async def close_database_engine() -> None:
    """Dispose the pooled connections at shutdown."""
    global _engine, _session_factory
    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()
