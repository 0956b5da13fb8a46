"""Dose calculation form and its submission state machine."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from insula_client.adapters.glucose_client import GlucoseClient
from insula_client.adapters.insulin_client import PredictionClient
from insula_client.domain.errors import InsulaError, user_message
from insula_client.domain.predictions import (
    InsulinPredictionRequest,
    InsulinPredictionResult,
)
from insula_client.navigation import PredictionResultParams, Route, Router
from insula_client.services.glucose_seeding import seed_pre_dose
from insula_client.services.glucose_slots import GlucoseSlots
from insula_client.services.session import SessionContext
from insula_client.services.validation import (
    is_valid_decimal,
    is_valid_level,
    is_valid_objective,
    parse_decimal,
)

_logger = logging.getLogger(__name__)

_DECIMAL_FIELDS = ("carbs", "insulin_on_board")
_LEVEL_FIELDS = ("sleep_level", "work_level", "activity_level")
_TEXT_FIELDS = (*_DECIMAL_FIELDS, "glucose_objective", *_LEVEL_FIELDS)


class FormState(str, Enum):
    """Lifecycle of the dose form."""

    EDITING = "editing"
    SUBMITTABLE = "submittable"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class DoseCalculationForm:
    """Collects dose inputs, validates them and requests a recommendation."""

    prediction_client: PredictionClient
    glucose_client: GlucoseClient
    session: SessionContext
    router: Router
    clock: Callable[[], datetime] = _utc_now
    glucose: GlucoseSlots = field(default_factory=GlucoseSlots)
    carbs: str = ""
    insulin_on_board: str = ""
    glucose_objective: str = ""
    sleep_level: str = ""
    work_level: str = ""
    activity_level: str = ""
    error: str | None = None
    result: InsulinPredictionResult | None = None
    no_glucose_data: bool = False
    _phase: FormState | None = None

    @property
    def state(self) -> FormState:
        """Current state; EDITING and SUBMITTABLE follow the inputs."""
        if self._phase is not None:
            return self._phase
        return FormState.SUBMITTABLE if self.is_valid() else FormState.EDITING

    @property
    def can_load_glucose(self) -> bool:
        """Loading stays disabled after an empty lookup until reset."""
        return not self.no_glucose_data and self._phase is not FormState.SUBMITTING

    def set_glucose(self, index: int, value: str) -> bool:
        """Edit a glucose slot; rejected values leave the slot unchanged."""
        accepted = self.glucose.set(index, value)
        if accepted:
            self._touch()
        return accepted

    def remove_glucose(self, index: int) -> None:
        """Remove a glucose slot."""
        self.glucose.remove(index)
        self._touch()

    def set_field(self, name: str, value: str) -> None:
        """Edit one of the free-text fields."""
        if name not in _TEXT_FIELDS:
            raise KeyError(name)
        setattr(self, name, value.strip())
        self._touch()

    def invalid_fields(self) -> list[str]:
        """Names of fields that currently block submission."""
        invalid: list[str] = []
        if not self.glucose.has_entry():
            invalid.append("glucose")
        invalid.extend(
            name
            for name in _DECIMAL_FIELDS
            if not is_valid_decimal(getattr(self, name))
        )
        if not is_valid_objective(self.glucose_objective):
            invalid.append("glucose_objective")
        invalid.extend(
            name for name in _LEVEL_FIELDS if not is_valid_level(getattr(self, name))
        )
        return invalid

    def is_valid(self) -> bool:
        """Whether every field passes validation."""
        return not self.invalid_fields()

    def build_request(self) -> InsulinPredictionRequest:
        """Assemble the request in entry order, dropping empty and zero slots."""
        return InsulinPredictionRequest(
            date=self.clock(),
            cgm_prev=self.glucose.entries(),
            glucose_objective=int(self.glucose_objective),
            carbs=parse_decimal(self.carbs),
            insulin_on_board=parse_decimal(self.insulin_on_board),
            sleep_level=int(self.sleep_level),
            work_level=int(self.work_level),
            activity_level=int(self.activity_level),
        )

    async def submit(self) -> InsulinPredictionResult | None:
        """Request a recommendation and open the result screen on success."""
        if self.state is not FormState.SUBMITTABLE:
            return None
        self._phase = FormState.SUBMITTING
        self.error = None
        try:
            token = self.session.require_token()
            result = await self.prediction_client.calculate(
                self.build_request(), token
            )
        except InsulaError as exc:
            _logger.warning("Dose calculation failed: %s", exc.message)
            self._phase = FormState.FAILED
            self.error = user_message(exc)
            return None
        self._phase = FormState.SUCCESS
        self.result = result
        _logger.info(
            "Dose calculated: id=%s dose=%s", result.id, result.recommended_dose
        )
        self.router.navigate(
            Route.PREDICTION_RESULT, PredictionResultParams(prediction=result)
        )
        return result

    async def load_recent_glucose(self) -> bool:
        """Fill glucose slots from readings of the last 2h15m."""
        if not self.can_load_glucose:
            return False
        try:
            seed = await seed_pre_dose(
                self.glucose_client, self.session.require_token(), self.clock()
            )
        except InsulaError as exc:
            self.error = user_message(exc)
            return False
        if seed.no_data:
            self.no_glucose_data = True
            return False
        self.glucose.replace(seed.inputs)
        self._touch()
        return True

    def reset(self) -> None:
        """Return to a blank form and re-enable glucose loading."""
        self.glucose.clear()
        for name in _TEXT_FIELDS:
            setattr(self, name, "")
        self.error = None
        self.result = None
        self.no_glucose_data = False
        self._phase = None

    def _touch(self) -> None:
        if self._phase is not FormState.SUBMITTING:
            self._phase = None
