"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from insula_client.adapters.glucose_client import GlucoseClient
from insula_client.adapters.insulin_client import PredictionClient
from insula_client.adapters.meals_client import MealsClient
from insula_client.config import Settings
from insula_client.domain.glucose import GlucoseReading, NewGlucoseReading
from insula_client.domain.meals import MealSummary
from insula_client.domain.predictions import (
    InsulinPredictionRequest,
    InsulinPredictionResult,
    OutcomeUpdate,
)
from insula_client.navigation import Router
from insula_client.services.assistant import AssistantClient
from insula_client.services.session import SessionContext

FIXED_NOW = datetime(2025, 6, 10, 15, 0, tzinfo=UTC)


def make_prediction(**overrides: object) -> InsulinPredictionResult:
    """Build a stored prediction with sensible defaults."""
    data: dict[str, object] = {
        "id": "abc",
        "date": FIXED_NOW,
        "cgm_prev": [140, 130, 120],
        "glucose_objective": 120,
        "carbs": 45,
        "insulin_on_board": 0.5,
        "sleep_level": 7,
        "work_level": 3,
        "activity_level": 2,
        "recommended_dose": 4.2,
        "apply_dose": None,
        "cgm_post": [],
    }
    data.update(overrides)
    return InsulinPredictionResult.model_validate(data)


def make_reading(
    value: int, timestamp: datetime, reading_id: str = ""
) -> GlucoseReading:
    """Build a stored glucose reading."""
    return GlucoseReading(
        id=reading_id or f"g-{value}-{timestamp.isoformat()}",
        value=value,
        timestamp=timestamp,
    )


@dataclass
class FakePredictionClient(PredictionClient):
    """Fake prediction client that records calls."""

    history: list[InsulinPredictionResult] = field(default_factory=list)
    calculate_result: InsulinPredictionResult | None = None
    error: Exception | None = None
    delete_result: bool = True
    calculated: list[InsulinPredictionRequest] = field(default_factory=list)
    updates: list[tuple[str, OutcomeUpdate]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    tokens: list[str] = field(default_factory=list)

    async def calculate(
        self, request: InsulinPredictionRequest, token: str
    ) -> InsulinPredictionResult:
        self.tokens.append(token)
        self.calculated.append(request)
        if self.error:
            raise self.error
        if self.calculate_result is not None:
            return self.calculate_result
        return make_prediction(
            date=request.date,
            cgm_prev=request.cgm_prev,
            glucose_objective=request.glucose_objective,
            carbs=request.carbs,
            insulin_on_board=request.insulin_on_board,
            sleep_level=request.sleep_level,
            work_level=request.work_level,
            activity_level=request.activity_level,
        )

    async def fetch_history(self, token: str) -> list[InsulinPredictionResult]:
        self.tokens.append(token)
        if self.error:
            raise self.error
        return list(self.history)

    async def update_outcome(
        self, token: str, prediction_id: str, update: OutcomeUpdate
    ) -> InsulinPredictionResult:
        self.tokens.append(token)
        self.updates.append((prediction_id, update))
        if self.error:
            raise self.error
        base = next((p for p in self.history if p.id == prediction_id), None)
        base = base or make_prediction(id=prediction_id)
        return base.model_copy(
            update={"apply_dose": update.apply_dose, "cgm_post": update.cgm_post}
        )

    async def delete_prediction(self, token: str, prediction_id: str) -> bool:
        self.tokens.append(token)
        self.deleted.append(prediction_id)
        if self.error:
            raise self.error
        return self.delete_result


@dataclass
class FakeGlucoseClient(GlucoseClient):
    """Fake glucose client filtering an in-memory list by window."""

    readings: list[GlucoseReading] = field(default_factory=list)
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def fetch_readings(
        self,
        token: str,
        *,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
    ) -> list[GlucoseReading]:
        self.calls.append(
            {"start_date": start_date, "end_date": end_date, "limit": limit}
        )
        if self.error:
            raise self.error
        selected = [
            r
            for r in self.readings
            if (start_date is None or r.timestamp >= start_date)
            and (end_date is None or r.timestamp <= end_date)
        ]
        return selected[:limit] if limit else selected

    async def create_reading(
        self, token: str, reading: NewGlucoseReading
    ) -> GlucoseReading:
        created = make_reading(reading.value, FIXED_NOW)
        self.readings.append(created)
        return created


@dataclass
class FakeMealsClient(MealsClient):
    """Fake meals client."""

    meals: list[MealSummary] = field(default_factory=list)
    error: Exception | None = None

    async def fetch_meals(
        self, token: str, *, limit: int | None = None
    ) -> list[MealSummary]:
        if self.error:
            raise self.error
        return self.meals[:limit] if limit else list(self.meals)


@dataclass
class FakeAssistantClient(AssistantClient):
    """Fake assistant returning a canned reply."""

    reply: str = "Tu glucosa está estable."
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="https://api.test/api",
        openai_api_key="openai-key",
    )


@pytest.fixture
def session() -> SessionContext:
    context = SessionContext()
    context.sign_in("test-token")
    return context


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def prediction_client() -> FakePredictionClient:
    return FakePredictionClient()


@pytest.fixture
def glucose_client() -> FakeGlucoseClient:
    return FakeGlucoseClient()
