"""Optimistic concurrency errors for celebration ledger writes.

Every ledger append is a compare-and-swap on the ledger length. A failed
swap raises ConcurrentModificationError; the lifecycle service re-reads
and retries a bounded number of times, then raises RetryableError.
"""

from __future__ import annotations

from celebration_engine.domain.exceptions import CelebrationEngineError


class ConcurrentModificationError(CelebrationEngineError):
    """Raised when a CAS append fails because the ledger moved.

    This is a recoverable error - the caller should re-read the
    celebration and decide whether to retry or abort.

    Attributes:
        celebration_id: Id of the celebration being modified.
        expected_version: Ledger length the writer read.
        actual_version: Ledger length found at commit time.
        operation: Description of the failed operation.
    """

    def __init__(
        self,
        celebration_id: str,
        expected_version: int,
        actual_version: int | None = None,
        operation: str = "status_change",
    ) -> None:
        self.celebration_id = celebration_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.operation = operation
        super().__init__(
            f"Concurrent modification detected for celebration {celebration_id} "
            f"during {operation}. Expected version {expected_version}, "
            f"found {actual_version}."
        )


class RetryableError(CelebrationEngineError):
    """Raised when an operation failed transiently and may be retried later.

    Attributes:
        operation: The operation that gave up.
        attempts: How many attempts were made.
    """

    def __init__(self, message: str, operation: str = "", attempts: int = 0) -> None:
        self.operation = operation
        self.attempts = attempts
        super().__init__(message)
