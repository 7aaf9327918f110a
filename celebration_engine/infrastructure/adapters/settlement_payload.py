"""Settlement webhook payload normalization (pydantic).

Accepts the provider-neutral settlement shape, in either camelCase or
snake_case, and produces a SettlementEvent:

    {"idempotencyKey": "...", "recordId": "...", "outcome": "captured",
     "providerRef": "ch_123", "occurredAt": "2026-03-05T14:00:00Z"}
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from celebration_engine.domain.models.settlement import SettlementEvent, SettlementOutcome


class SettlementPayloadError(ValueError):
    """Raised when a webhook payload cannot be normalized."""


class SettlementPayload(BaseModel):
    """Validated settlement webhook payload."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    idempotency_key: str = Field(alias="idempotencyKey", min_length=1)
    record_id: str | None = Field(default=None, alias="recordId")
    outcome: SettlementOutcome
    provider_ref: str = Field(alias="providerRef", min_length=1)
    occurred_at: datetime = Field(alias="occurredAt")

    @field_validator("occurred_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_event(self) -> SettlementEvent:
        return SettlementEvent(
            idempotency_key=self.idempotency_key,
            record_id=self.record_id or None,
            outcome=self.outcome,
            provider_ref=self.provider_ref,
            occurred_at=self.occurred_at,
        )


def parse_settlement_payload(payload: Mapping[str, Any]) -> SettlementEvent:
    """Normalize a webhook body into a SettlementEvent.

    Raises:
        SettlementPayloadError: If required fields are missing or invalid.
    """
    try:
        return SettlementPayload.model_validate(dict(payload)).to_event()
    except ValidationError as e:
        raise SettlementPayloadError(str(e)) from e
