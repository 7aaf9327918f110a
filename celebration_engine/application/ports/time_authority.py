"""Time authority port.

Every service that needs the current time injects a TimeAuthorityProtocol
instead of calling ``datetime.now()``. Tests inject FakeTimeAuthority from
tests/helpers/fake_time_authority.py; ledger timestamps, limit windows and
election-cycle rollover are then deterministic.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time, timezone-aware (UTC)."""
        ...

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return the current UTC time."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return a monotonic clock value for measuring elapsed time."""
        ...
