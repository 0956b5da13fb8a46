"""Domain models for the insulin dose log and dosing settings."""

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator

from insula_client.domain.timestamps import as_utc
from insula_client.domain.wire import WireModel

InsulinType = Literal["rapid", "long"]


class InsulinDose(WireModel):
    """An administered insulin dose."""

    id: str
    units: float
    timestamp: datetime
    type: InsulinType
    notes: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class NewInsulinDose(WireModel):
    """Payload for logging a dose."""

    units: float = Field(gt=0)
    timestamp: datetime
    type: InsulinType
    notes: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    def to_payload(self) -> dict[str, object]:
        """Return the JSON body, omitting empty notes."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TargetRange(WireModel):
    """Glucose target range in mg/dL."""

    min: int = Field(gt=0)
    max: int = Field(gt=0)

    @model_validator(mode="after")
    def _ordered(self) -> "TargetRange":
        if self.min > self.max:
            raise ValueError("min must not exceed max")
        return self


class ActiveInsulin(WireModel):
    """Insulin-on-board decay settings."""

    duration: float = Field(gt=0)


class InsulinSettings(WireModel):
    """Ratios used when calculating doses."""

    carb_ratio: float = Field(gt=0)
    correction_factor: float = Field(gt=0)
    target_glucose: TargetRange
    active_insulin: ActiveInsulin


class InsulinSettingsUpdate(WireModel):
    """Partial update of the insulin settings; unset fields are not sent."""

    carb_ratio: float | None = Field(default=None, gt=0)
    correction_factor: float | None = Field(default=None, gt=0)
    target_glucose: TargetRange | None = None
    active_insulin: ActiveInsulin | None = None

    def to_payload(self) -> dict[str, object]:
        """Return the JSON body with only the fields being changed."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GlucoseTarget(WireModel):
    """The user's glucose target bounds.

    Sent as ``minTarget``/``maxTarget``; the profile returned by the backend
    names them ``minTargetGlucose``/``maxTargetGlucose``.
    """

    min_target: int = Field(
        gt=0,
        validation_alias=AliasChoices("minTarget", "minTargetGlucose", "min_target"),
        serialization_alias="minTarget",
    )
    max_target: int = Field(
        gt=0,
        validation_alias=AliasChoices("maxTarget", "maxTargetGlucose", "max_target"),
        serialization_alias="maxTarget",
    )

    @model_validator(mode="after")
    def _ordered(self) -> "GlucoseTarget":
        if self.min_target >= self.max_target:
            raise ValueError("min_target must be below max_target")
        return self
