"""Logging bootstrap for host processes embedding the engine."""

from __future__ import annotations

import os

from celebration_engine.infrastructure.observability import (
    configure_structlog as _configure_structlog,
)

ENVIRONMENT_ENV = "ENVIRONMENT"


def configure_structlog(environment: str | None = None) -> str:
    """Configure structlog for ``environment`` or $ENVIRONMENT.

    Returns:
        The environment that was applied ("development" when unset).
    """
    resolved = environment or os.environ.get(ENVIRONMENT_ENV, "development")
    _configure_structlog(environment=resolved)
    return resolved


__all__ = ["configure_structlog"]
