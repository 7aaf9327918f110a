"""structlog setup for the celebration engine.

One JSON object per line in production, colored console output elsewhere.
A settlement log line looks like:

    {"event": "settlement_duplicate_ignored", "level": "info",
     "timestamp": "2026-03-11T10:00:00.000000Z",
     "service": "SettlementCoordinator", "component": "settlement",
     "operation": "apply_settlement", "idempotency_key": "pay-key-1",
     "outcome": "captured", "disposition": "duplicate",
     "correlation_id": "..."}
"""

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from celebration_engine.infrastructure.observability.correlation import (
    correlation_id_processor,
)

LOG_LEVEL_ENV = "LOG_LEVEL"


def _level_from_env() -> int:
    name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _renderer(environment: str) -> Processor:
    if environment == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog process-wide. Call once at startup.

    Args:
        environment: "production" selects JSON lines; any other value
            selects the console renderer.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _renderer(environment),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_from_env()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger_for_component(name: str, component: str = "celebration") -> structlog.BoundLogger:
    """Bound logger for adapters and other code outside LoggingMixin."""
    return structlog.get_logger().bind(service=name, component=component)
