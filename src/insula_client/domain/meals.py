"""Meal summaries used as assistant context."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from insula_client.domain.timestamps import as_utc


class MealSummary(BaseModel):
    """Minimal view of a logged meal."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = ""
    type: str = ""
    timestamp: datetime
    total_carbs: float = Field(default=0.0, alias="carbs")

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)
