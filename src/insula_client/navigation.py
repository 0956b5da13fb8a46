"""Typed routing table for the app's screens."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict

from insula_client.domain.predictions import InsulinPredictionResult


class Route(str, Enum):
    """Screens reachable through the router."""

    DASHBOARD = "Dashboard"
    INSULIN = "InsulinPage"
    PREDICTION_RESULT = "PredictionResultPage"
    HISTORY = "HistoryPage"
    CHAT = "FullChat"


class NoParams(BaseModel):
    """Payload for routes that take no parameters."""

    model_config = ConfigDict(frozen=True)


class PredictionResultParams(BaseModel):
    """The full prediction shown on the result screen."""

    model_config = ConfigDict(frozen=True)

    prediction: InsulinPredictionResult


class ChatParams(BaseModel):
    """Optional question sent as soon as the chat opens."""

    model_config = ConfigDict(frozen=True)

    initial_message: str | None = None


ROUTE_PAYLOADS: dict[Route, type[BaseModel]] = {
    Route.DASHBOARD: NoParams,
    Route.INSULIN: NoParams,
    Route.PREDICTION_RESULT: PredictionResultParams,
    Route.HISTORY: NoParams,
    Route.CHAT: ChatParams,
}


@dataclass(frozen=True)
class RouteEntry:
    """A screen on the navigation stack."""

    route: Route
    params: BaseModel


@dataclass
class Router:
    """Stack-based navigator validating each route's payload."""

    stack: list[RouteEntry] = field(
        default_factory=lambda: [RouteEntry(Route.DASHBOARD, NoParams())]
    )

    @property
    def current(self) -> RouteEntry:
        """Top of the stack."""
        return self.stack[-1]

    def navigate(
        self, route: Route, params: BaseModel | dict[str, object] | None = None
    ) -> RouteEntry:
        """Push ``route`` after validating ``params`` against its schema."""
        entry = RouteEntry(route, _validate_params(route, params))
        self.stack.append(entry)
        return entry

    def back(self) -> RouteEntry:
        """Pop the current screen; the root screen is never popped."""
        if len(self.stack) > 1:
            self.stack.pop()
        return self.current

    def reset(
        self, route: Route, params: BaseModel | dict[str, object] | None = None
    ) -> RouteEntry:
        """Replace the whole stack with a single screen."""
        self.stack = [RouteEntry(route, _validate_params(route, params))]
        return self.current


def _validate_params(
    route: Route, params: BaseModel | dict[str, object] | None
) -> BaseModel:
    schema = ROUTE_PAYLOADS[route]
    if isinstance(params, schema):
        return params
    if isinstance(params, BaseModel):
        raise TypeError(
            f"{route.value} expects {schema.__name__}, got {type(params).__name__}"
        )
    return schema.model_validate(params or {})
