"""Domain models for insulin dose predictions."""

from datetime import datetime
from typing import Annotated

from pydantic import Field, field_validator

from insula_client.domain.timestamps import as_utc
from insula_client.domain.wire import WireModel

MAX_CGM_PREV = 24
MIN_GLUCOSE_OBJECTIVE = 80
MAX_GLUCOSE_OBJECTIVE = 180
MIN_LEVEL = 1
MAX_LEVEL = 10

Level = Annotated[int, Field(ge=MIN_LEVEL, le=MAX_LEVEL)]


class InsulinPredictionRequest(WireModel):
    """Inputs of a dose calculation.

    ``cgm_prev`` keeps the order the values were entered in, which is
    most-recent-first. Chronological reordering only happens for display.
    """

    date: datetime
    cgm_prev: list[int] = Field(min_length=1, max_length=MAX_CGM_PREV)
    glucose_objective: int = Field(
        ge=MIN_GLUCOSE_OBJECTIVE, le=MAX_GLUCOSE_OBJECTIVE
    )
    carbs: float = Field(ge=0)
    insulin_on_board: float = Field(ge=0)
    sleep_level: Level
    work_level: Level
    activity_level: Level

    @field_validator("date")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class InsulinPredictionResult(WireModel):
    """A prediction persisted by the backend."""

    id: str
    date: datetime
    cgm_prev: list[int] = Field(default_factory=list)
    glucose_objective: int
    carbs: float
    insulin_on_board: float
    sleep_level: int
    work_level: int
    activity_level: int
    recommended_dose: float
    apply_dose: float | None = None
    cgm_post: list[int] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("cgm_prev", "cgm_post", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def has_post_data(self) -> bool:
        """Whether any post-dose outcome was recorded."""
        return len(self.cgm_post) > 0 or bool(self.apply_dose)

    @property
    def cgm_prev_chronological(self) -> list[int]:
        """Pre-dose readings oldest-first."""
        return list(reversed(self.cgm_prev))


class OutcomeUpdate(WireModel):
    """Full replacement of a prediction's post-dose data."""

    apply_dose: float | None = None
    cgm_post: list[int] = Field(default_factory=list)

    @classmethod
    def cleared(cls) -> "OutcomeUpdate":
        """Return an update that removes all outcome data."""
        return cls(apply_dose=None, cgm_post=[])
