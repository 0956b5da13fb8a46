"""Prediction result screen and post-dose outcome recording."""

import logging
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from insula_client.adapters.glucose_client import GlucoseClient
from insula_client.adapters.insulin_client import PredictionClient
from insula_client.domain.errors import InsulaError, user_message
from insula_client.domain.predictions import InsulinPredictionResult, OutcomeUpdate
from insula_client.services.glucose_seeding import seed_post_dose
from insula_client.services.glucose_slots import GlucoseSlots
from insula_client.services.session import SessionContext
from insula_client.services.validation import parse_optional_dose

CHART_PADDING = 10
MISSING_OUTCOME_MESSAGE = "Cargue al menos una glucosa o la dosis aplicada."

_logger = logging.getLogger(__name__)


def format_dose(value: float) -> str:
    """Render a dose the way the result card shows it."""
    return f"{value:g} unidades"


def _format_number(value: float) -> str:
    return f"{value:g}"


@dataclass
class PredictionResultView:
    """Shows a recommendation and edits its post-dose outcome."""

    prediction: InsulinPredictionResult
    prediction_client: PredictionClient
    glucose_client: GlucoseClient
    session: SessionContext
    timezone_name: str = "America/Argentina/Buenos_Aires"
    editing: bool = False
    post_inputs: GlucoseSlots = field(default_factory=GlucoseSlots)
    apply_dose_input: str = ""
    error: str | None = None
    saving: bool = False
    no_glucose_data: bool = False

    @property
    def timeline(self) -> list[int]:
        """Pre-dose readings oldest-first followed by post-dose readings."""
        return self.prediction.cgm_prev_chronological + list(self.prediction.cgm_post)

    @property
    def dose_index(self) -> int:
        """Timeline index of the moment the dose was applied."""
        return len(self.prediction.cgm_prev) - 1

    @property
    def dose_label(self) -> str:
        """Recommended dose with its unit."""
        return format_dose(self.prediction.recommended_dose)

    @property
    def formatted_date(self) -> str:
        """Calculation time in the display timezone."""
        local = self.prediction.date.astimezone(ZoneInfo(self.timezone_name))
        return local.strftime("%d/%m/%Y %H:%M")

    @property
    def has_post_data(self) -> bool:
        """Whether an outcome is stored for this prediction."""
        return self.prediction.has_post_data

    def chart_bounds(self) -> tuple[int, int] | None:
        """Y-axis range padded around the timeline values."""
        values = self.timeline
        if not values:
            return None
        return max(0, min(values) - CHART_PADDING), max(values) + CHART_PADDING

    def begin_edit(self) -> None:
        """Open the outcome editor, prefilled with stored data if any."""
        stored = [str(value) for value in self.prediction.cgm_post]
        if stored:
            stored.append("")
        self.post_inputs.replace(stored)
        apply_dose = self.prediction.apply_dose
        self.apply_dose_input = "" if apply_dose is None else _format_number(apply_dose)
        self.error = None
        self.no_glucose_data = False
        self.editing = True

    def cancel_edit(self) -> None:
        """Close the editor without saving."""
        self.editing = False
        self.error = None

    def set_post_glucose(self, index: int, value: str) -> bool:
        """Edit a post-dose glucose slot."""
        return self.post_inputs.set(index, value)

    def remove_post_glucose(self, index: int) -> None:
        """Remove a post-dose glucose slot."""
        self.post_inputs.remove(index)

    def set_apply_dose(self, value: str) -> None:
        """Edit the administered dose."""
        self.apply_dose_input = value.strip()

    @property
    def can_update_post(self) -> bool:
        """At least one glucose reading or a parseable applied dose."""
        return (
            self.post_inputs.has_entry()
            or parse_optional_dose(self.apply_dose_input) is not None
        )

    async def load_post_glucose(self) -> bool:
        """Fill the editor from readings in the 2h15m after the dose."""
        if self.no_glucose_data:
            return False
        try:
            seed = await seed_post_dose(
                self.glucose_client,
                self.session.require_token(),
                self.prediction.date,
            )
        except InsulaError as exc:
            self.error = user_message(exc)
            return False
        if seed.no_data:
            self.no_glucose_data = True
            return False
        self.post_inputs.replace(seed.inputs)
        return True

    async def save_outcome(self) -> bool:
        """Overwrite the stored outcome with the current inputs."""
        if not self.can_update_post:
            self.error = MISSING_OUTCOME_MESSAGE
            return False
        update = OutcomeUpdate(
            apply_dose=parse_optional_dose(self.apply_dose_input),
            cgm_post=self.post_inputs.entries(),
        )
        if await self._send(update):
            self.editing = False
            return True
        return False

    async def delete_outcome(self) -> bool:
        """Clear the stored outcome, keeping the prediction itself."""
        return await self._send(OutcomeUpdate.cleared())

    async def _send(self, update: OutcomeUpdate) -> bool:
        self.saving = True
        self.error = None
        try:
            updated = await self.prediction_client.update_outcome(
                self.session.require_token(), self.prediction.id, update
            )
        except InsulaError as exc:
            _logger.warning(
                "Outcome update failed for %s: %s", self.prediction.id, exc.message
            )
            self.error = user_message(exc)
            return False
        finally:
            self.saving = False
        self.prediction = updated
        return True
