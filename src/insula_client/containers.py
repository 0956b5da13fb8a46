"""Dependency container wiring for the client."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from insula_client.adapters.glucose_client import GlucoseClient, HttpxGlucoseClient
from insula_client.adapters.insulin_client import (
    HttpxPredictionClient,
    PredictionClient,
)
from insula_client.adapters.insulin_therapy_client import (
    HttpxInsulinTherapyClient,
    InsulinTherapyClient,
)
from insula_client.adapters.meals_client import HttpxMealsClient, MealsClient
from insula_client.adapters.openai_assistant_client import OpenAIAssistantClient
from insula_client.adapters.profile_client import HttpxProfileClient, ProfileClient
from insula_client.app_logging import configure_logging
from insula_client.config import Settings
from insula_client.domain.predictions import InsulinPredictionResult
from insula_client.navigation import Router
from insula_client.services.assistant import AssistantService
from insula_client.services.dose_form import DoseCalculationForm
from insula_client.services.history import HistoryView
from insula_client.services.prediction_result import PredictionResultView
from insula_client.services.retry import (
    RetryingGlucoseClient,
    RetryingPredictionClient,
)
from insula_client.services.session import SessionContext


@dataclass
class AppContainer:
    """Holds application-wide dependencies and builds screen models."""

    settings: Settings
    session: SessionContext
    router: Router
    glucose_client: GlucoseClient
    prediction_client: PredictionClient
    meals_client: MealsClient
    therapy_client: InsulinTherapyClient
    profile_client: ProfileClient
    assistant_service: AssistantService | None
    close_resources: Callable[[], Awaitable[None]]

    def dose_form(self) -> DoseCalculationForm:
        """Create a blank dose calculation form."""
        return DoseCalculationForm(
            prediction_client=self.prediction_client,
            glucose_client=self.glucose_client,
            session=self.session,
            router=self.router,
        )

    def result_view(self, prediction: InsulinPredictionResult) -> PredictionResultView:
        """Create the result screen for ``prediction``."""
        return PredictionResultView(
            prediction=prediction,
            prediction_client=self.prediction_client,
            glucose_client=self.glucose_client,
            session=self.session,
            timezone_name=self.settings.display_timezone,
        )

    def history_view(self) -> HistoryView:
        """Create the prediction history screen."""
        return HistoryView(
            prediction_client=self.prediction_client,
            session=self.session,
            page_size=self.settings.history_page_size,
            timezone_name=self.settings.display_timezone,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    configure_logging()
    resolved_settings = settings or Settings()
    base_url = resolved_settings.api_base_url.rstrip("/")
    timeout = resolved_settings.request_timeout_seconds
    session = SessionContext()
    http_glucose_client = HttpxGlucoseClient.create(base_url, timeout=timeout)
    http_prediction_client = HttpxPredictionClient.create(base_url, timeout=timeout)
    meals_client = HttpxMealsClient.create(base_url, timeout=timeout)
    therapy_client = HttpxInsulinTherapyClient.create(base_url, timeout=timeout)
    profile_client = HttpxProfileClient.create(base_url, timeout=timeout)

    glucose_client: GlucoseClient = http_glucose_client
    prediction_client: PredictionClient = http_prediction_client
    if resolved_settings.retry_attempts > 0:
        glucose_client = RetryingGlucoseClient(
            inner=http_glucose_client,
            attempts=resolved_settings.retry_attempts,
            delay_seconds=resolved_settings.retry_delay_seconds,
        )
        prediction_client = RetryingPredictionClient(
            inner=http_prediction_client,
            attempts=resolved_settings.retry_attempts,
            delay_seconds=resolved_settings.retry_delay_seconds,
        )

    assistant_service = None
    assistant_client = None
    if resolved_settings.openai_api_key:
        assistant_client = OpenAIAssistantClient.create(
            resolved_settings.openai_api_key, resolved_settings.openai_model
        )
        assistant_service = AssistantService(
            glucose_client=glucose_client,
            prediction_client=prediction_client,
            meals_client=meals_client,
            assistant_client=assistant_client,
            session=session,
            timezone_name=resolved_settings.display_timezone,
        )

    async def close_resources() -> None:
        await http_glucose_client.close()
        await http_prediction_client.close()
        await meals_client.close()
        await therapy_client.close()
        await profile_client.close()
        if assistant_client is not None:
            await assistant_client.close()

    return AppContainer(
        settings=resolved_settings,
        session=session,
        router=Router(),
        glucose_client=glucose_client,
        prediction_client=prediction_client,
        meals_client=meals_client,
        therapy_client=therapy_client,
        profile_client=profile_client,
        assistant_service=assistant_service,
        close_resources=close_resources,
    )
