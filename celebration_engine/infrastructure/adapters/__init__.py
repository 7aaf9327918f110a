"""Production adapters for the celebration engine ports."""

from celebration_engine.infrastructure.adapters.file_election_snapshot_store import (
    FileElectionSnapshotStore,
)
from celebration_engine.infrastructure.adapters.openfec_election_source import (
    OpenFecElectionSource,
)
from celebration_engine.infrastructure.adapters.settlement_payload import (
    SettlementPayload,
    SettlementPayloadError,
    parse_settlement_payload,
)
from celebration_engine.infrastructure.adapters.system_time_authority import (
    SystemTimeAuthority,
)

__all__: list[str] = [
    "FileElectionSnapshotStore",
    "OpenFecElectionSource",
    "SettlementPayload",
    "SettlementPayloadError",
    "SystemTimeAuthority",
    "parse_settlement_payload",
]
