"""Compliance limits and engine configuration.

This module defines FEC contribution limits and engine tuning values with
environment variable overrides for production. Limits typically change
once per two-year cycle when the FEC publishes new amounts.

Environment Variables (Limits):
- FEC_PER_DONATION: Guest per-donation cap in dollars (default: 50)
- FEC_ANNUAL: Guest annual cap across all candidates (default: 200)
- FEC_PER_CAMPAIGN: Compliant per-donation and per-candidate-per-election
  cap (default: 3500)
- FEC_PAC_ANNUAL: Annual cap on tips retained by the platform PAC
  (default: 5000)
- MIN_DONATION: Smallest accepted donation (default: 1)
- ANNUAL_RESET_UTC_OFFSET_HOURS: Fixed UTC offset of the annual reset
  reference timezone (default: -5, US Eastern Standard Time)

Environment Variables (Engine):
- CELEBRATION_MAX_TRANSITION_ATTEMPTS: Optimistic-lock attempts per
  transition before giving up (default: 3)
- ELECTION_LOOKUP_TIMEOUT_SECONDS: Timeout on live election lookups
  (default: 5.0)
- FEC_API_BASE_URL: OpenFEC base URL (default: https://api.open.fec.gov/v1)
- FEC_API_KEY: OpenFEC API key (no default; live lookups disabled if unset)
- ELECTION_SNAPSHOT_PATH: Last-known-good election dates JSON file
  (default: snapshots/electionDates.snapshot.json)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_decimal_env(key: str, default: Decimal) -> Decimal:
    """Get decimal environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return Decimal(value)
    except InvalidOperation:
        return default


@dataclass(frozen=True)
class ComplianceLimitsConfig:
    """FEC contribution limits.

    Attributes:
        guest_per_donation: Largest single guest donation.
        guest_annual_cap: Guest cap per calendar year across all candidates.
        compliant_per_donation: Largest single compliant donation.
        compliant_per_election: Compliant cap per candidate per election.
        pac_annual_limit: Annual cap on tips.
        min_donation: Smallest accepted donation.
        reset_utc_offset_hours: Fixed offset of the annual reset timezone.
    """

    guest_per_donation: Decimal = Decimal("50")
    guest_annual_cap: Decimal = Decimal("200")
    compliant_per_donation: Decimal = Decimal("3500")
    compliant_per_election: Decimal = Decimal("3500")
    pac_annual_limit: Decimal = Decimal("5000")
    min_donation: Decimal = Decimal("1")
    reset_utc_offset_hours: int = -5

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for name in (
            "guest_per_donation",
            "guest_annual_cap",
            "compliant_per_donation",
            "compliant_per_election",
            "pac_annual_limit",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.min_donation < 0:
            raise ValueError(f"min_donation must be >= 0, got {self.min_donation}")
        if not -12 <= self.reset_utc_offset_hours <= 14:
            raise ValueError(
                "reset_utc_offset_hours must be a real UTC offset, "
                f"got {self.reset_utc_offset_hours}"
            )

    @classmethod
    def from_env(cls) -> ComplianceLimitsConfig:
        """Create configuration from environment variables."""
        per_campaign = _get_decimal_env("FEC_PER_CAMPAIGN", Decimal("3500"))
        return cls(
            guest_per_donation=_get_decimal_env("FEC_PER_DONATION", Decimal("50")),
            guest_annual_cap=_get_decimal_env("FEC_ANNUAL", Decimal("200")),
            compliant_per_donation=per_campaign,
            compliant_per_election=per_campaign,
            pac_annual_limit=_get_decimal_env("FEC_PAC_ANNUAL", Decimal("5000")),
            min_donation=_get_decimal_env("MIN_DONATION", Decimal("1")),
            reset_utc_offset_hours=_get_int_env("ANNUAL_RESET_UTC_OFFSET_HOURS", -5),
        )


DEFAULT_LIMITS_CONFIG = ComplianceLimitsConfig()


@dataclass(frozen=True)
class EngineConfig:
    """Engine tuning and external source configuration."""

    max_transition_attempts: int = 3
    election_lookup_timeout_seconds: float = 5.0
    fec_api_base_url: str = "https://api.open.fec.gov/v1"
    fec_api_key: str | None = None
    election_snapshot_path: str = "snapshots/electionDates.snapshot.json"
    settlement_lease_seconds: float = 300.0

    def __post_init__(self) -> None:
        if self.max_transition_attempts < 1:
            raise ValueError(
                f"max_transition_attempts must be >= 1, got {self.max_transition_attempts}"
            )
        if self.election_lookup_timeout_seconds <= 0:
            raise ValueError(
                "election_lookup_timeout_seconds must be positive, "
                f"got {self.election_lookup_timeout_seconds}"
            )
        if self.settlement_lease_seconds <= 0:
            raise ValueError(
                f"settlement_lease_seconds must be positive, got {self.settlement_lease_seconds}"
            )

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Create configuration from environment variables."""
        return cls(
            max_transition_attempts=_get_int_env("CELEBRATION_MAX_TRANSITION_ATTEMPTS", 3),
            election_lookup_timeout_seconds=_get_float_env(
                "ELECTION_LOOKUP_TIMEOUT_SECONDS", 5.0
            ),
            fec_api_base_url=os.environ.get(
                "FEC_API_BASE_URL", "https://api.open.fec.gov/v1"
            ),
            fec_api_key=os.environ.get("FEC_API_KEY") or None,
            election_snapshot_path=os.environ.get(
                "ELECTION_SNAPSHOT_PATH", "snapshots/electionDates.snapshot.json"
            ),
            settlement_lease_seconds=_get_float_env("SETTLEMENT_LEASE_SECONDS", 300.0),
        )


DEFAULT_ENGINE_CONFIG = EngineConfig()
