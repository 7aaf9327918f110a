"""Observability infrastructure: structured logging and correlation ids.

Usage:
    from celebration_engine.infrastructure.observability import (
        configure_structlog,
        set_correlation_id,
    )

    configure_structlog(environment="production")
    set_correlation_id(delivery_id)
"""

from celebration_engine.infrastructure.observability.correlation import (
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from celebration_engine.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_component,
)

__all__: list[str] = [
    "configure_structlog",
    "correlation_id_processor",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger_for_component",
    "set_correlation_id",
]
