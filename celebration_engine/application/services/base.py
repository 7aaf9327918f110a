"""LoggingMixin shared by the application services.

Every service binds ``service`` and ``component`` once in ``__init__``
and derives one logger per call with ``_log_operation``:

    class SettlementCoordinator(LoggingMixin):
        def __init__(self, ...) -> None:
            ...
            self._init_logger(component="settlement")

        async def apply(self, event):
            log = self._log_operation("apply", idempotency_key=event.idempotency_key)
            log.info("settlement_received")
"""

import structlog

from celebration_engine.infrastructure.observability.correlation import (
    get_correlation_id,
)


class LoggingMixin:
    """Adds a service-bound structlog logger.

    Components in use: ``celebration`` (lifecycle), ``limits``,
    ``election`` and ``settlement``.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "celebration") -> None:
        self._log = structlog.get_logger().bind(
            service=type(self).__name__,
            component=component,
        )

    def _log_operation(self, operation: str, **context: object) -> structlog.BoundLogger:
        """Logger for one call, carrying the delivery's correlation id."""
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **context,
        )
