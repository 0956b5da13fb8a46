"""Domain models for glucose readings."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from insula_client.domain.timestamps import as_utc

NOTES_MAX_LENGTH = 30


class GlucoseReading(BaseModel):
    """A single glucose measurement in mg/dL."""

    model_config = ConfigDict(frozen=True)

    id: str
    value: int
    timestamp: datetime
    notes: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)


class NewGlucoseReading(BaseModel):
    """Payload for a manually entered reading."""

    value: int = Field(gt=0)
    notes: str | None = None

    @field_validator("notes")
    @classmethod
    def _truncate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value[:NOTES_MAX_LENGTH]
