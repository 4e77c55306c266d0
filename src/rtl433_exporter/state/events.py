"""Normalized ingestion values.

The parser produces :class:`RawRecord` values, the normalizer turns each of
them into either a :class:`ValidatedSample` or a :class:`Discard`. Only the
state/store layer is allowed to merge them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def ensure_tz_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class RawRecord(BaseModel):
    """One parsed line: the flattened key/value bag of tags and fields."""

    model_config = ConfigDict(frozen=True)

    metric_name: str
    fields: dict[str, str] = Field(default_factory=dict)
    captured_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("captured_at")
    @classmethod
    def _tz_aware_captured_at(cls, value: datetime) -> datetime:
        return ensure_tz_aware(value)


class ValidatedSample(BaseModel):
    """A reading with all required fields present and numeric."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    area: str = Field(..., description="Area name after id remapping")
    temperature: float
    humidity: float
    battery: float

    @field_validator("time")
    @classmethod
    def _tz_aware_time(cls, value: datetime) -> datetime:
        return ensure_tz_aware(value)

    @field_validator("area")
    @classmethod
    def _non_empty_area(cls, value: str) -> str:
        if not value:
            raise ValueError("area must be non-empty")
        return value


class DiscardReason(StrEnum):
    MISSING_FIELDS = "missing_fields"
    INVALID_NUMBER = "invalid_number"


class Discard(BaseModel):
    """A record that failed validation; counted, never stored."""

    model_config = ConfigDict(frozen=True)

    reason: DiscardReason
    record: RawRecord


NormalizeOutcome = ValidatedSample | Discard
