"""JSON-file election snapshot store.

File layout:
    {
        "updatedAt": "2026-03-04T12:00:00+00:00",
        "cycles": {
            "2026": {"TX": {"primary": "2026-03-03", "general": "2026-11-03"}}
        }
    }

Writes go to a temporary file in the same directory followed by
``os.replace``, so readers see either the old or the new snapshot.
File I/O runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from celebration_engine.application.ports.election_snapshot_store import (
    ElectionSnapshotStoreProtocol,
)
from celebration_engine.domain.models.election import ElectionDates
from celebration_engine.infrastructure.observability.logging import (
    get_logger_for_component,
)


class FileElectionSnapshotStore(ElectionSnapshotStoreProtocol):
    """Last-known-good election dates persisted to a JSON file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()
        self._log = get_logger_for_component(self.__class__.__name__, component="election")

    async def load(self, jurisdiction: str, year: int) -> ElectionDates | None:
        """Cached dates, None on a miss or an entry that cannot be decoded."""
        code = jurisdiction.upper()
        document = await asyncio.to_thread(self._read)
        try:
            entry = document.get("cycles", {}).get(str(year), {}).get(code)
            if not entry or not entry.get("general"):
                return None
            primary = entry.get("primary")
            return ElectionDates(
                jurisdiction=code,
                year=year,
                general=date.fromisoformat(entry["general"]),
                primary=date.fromisoformat(primary) if primary else None,
            )
        except (AttributeError, TypeError, ValueError) as e:
            self._log.error(
                "election_snapshot_corrupt",
                path=str(self._path),
                jurisdiction=code,
                year=year,
                error=str(e),
            )
            return None

    async def store(self, dates: ElectionDates) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write_dates, dates)
        self._log.debug(
            "election_snapshot_written",
            jurisdiction=dates.jurisdiction,
            year=dates.year,
        )

    def _read(self) -> dict[str, Any]:
        try:
            with self._path.open(encoding="utf-8") as handle:
                document = json.load(handle)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            self._log.error("election_snapshot_corrupt", path=str(self._path), error=str(e))
            return {}
        return document if isinstance(document, dict) else {}

    def _write_dates(self, dates: ElectionDates) -> None:
        document = self._read()
        cycles = document.setdefault("cycles", {})
        cycles.setdefault(str(dates.year), {})[dates.jurisdiction.upper()] = {
            "primary": dates.primary.isoformat() if dates.primary else None,
            "general": dates.general.isoformat(),
        }
        document["updatedAt"] = datetime.now(timezone.utc).isoformat()

        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, sort_keys=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
