"""Celebration lookup and persistence errors."""

from __future__ import annotations

from celebration_engine.domain.exceptions import CelebrationEngineError


class UnknownRecordError(CelebrationEngineError):
    """Raised when an event or request references a missing celebration."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"Celebration not found: {reference}")


class DuplicateRecordError(CelebrationEngineError):
    """Raised when saving a celebration whose id or idempotency key exists."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"Celebration already exists: {reference}")
