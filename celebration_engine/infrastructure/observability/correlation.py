"""Correlation ids for one webhook delivery or watcher run.

The id lives in a ContextVar, so every coroutine spawned while handling
a delivery logs under the same id.

    set_correlation_id(request.headers.get("X-Request-Id") or generate_correlation_id())
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4

_current: ContextVar[str] = ContextVar("celebration_correlation_id", default="")


def generate_correlation_id() -> str:
    return str(uuid4())


def get_correlation_id() -> str:
    """Current id, or "" outside a delivery."""
    return _current.get()


def set_correlation_id(correlation_id: str) -> None:
    _current.set(correlation_id)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor: stamp ``correlation_id`` when one is set."""
    if correlation_id := get_correlation_id():
        event_dict["correlation_id"] = correlation_id
    return event_dict
