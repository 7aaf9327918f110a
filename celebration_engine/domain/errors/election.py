"""Election data source errors."""

from __future__ import annotations

from celebration_engine.domain.exceptions import CelebrationEngineError


class ElectionDataUnavailableError(CelebrationEngineError):
    """Raised by an election data source that cannot answer.

    Covers timeouts, transport failures, missing credentials and empty
    results. The election cycle resolver consumes it and falls back.
    """

    def __init__(self, jurisdiction: str, year: int, detail: str = "") -> None:
        self.jurisdiction = jurisdiction
        self.year = year
        self.detail = detail
        suffix = f": {detail}" if detail else ""
        super().__init__(
            f"Election dates unavailable for {jurisdiction} in {year}{suffix}"
        )
