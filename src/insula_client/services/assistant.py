"""Health assistant chat: context gathering and prompt assembly."""

import asyncio
import logging
import re
from collections.abc import Awaitable
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Protocol, TypeVar
from zoneinfo import ZoneInfo

from pydantic import ValidationError as SchemaError

from insula_client.adapters.glucose_client import GlucoseClient
from insula_client.adapters.insulin_client import PredictionClient
from insula_client.adapters.meals_client import MealsClient
from insula_client.domain.errors import SESSION_EXPIRED_MESSAGE, InsulaError
from insula_client.domain.glucose import GlucoseReading
from insula_client.domain.meals import MealSummary
from insula_client.domain.predictions import InsulinPredictionResult
from insula_client.services.session import SessionContext

T = TypeVar("T")

GLUCOSE_CONTEXT_LIMIT = 5
MEALS_CONTEXT_LIMIT = 3
PREDICTIONS_CONTEXT_LIMIT = 3
MAX_RESPONSE_PARAGRAPHS = 3

WELCOME_MESSAGE = "Hola, soy tu asistente de salud. ¿En qué puedo ayudarte hoy?"
LOGIN_REQUIRED_MESSAGE = "Lo siento, necesitas iniciar sesión para usar el asistente."
EMPTY_REPLY_MESSAGE = "Lo siento, no tengo una respuesta en este momento."
ASSISTANT_UNAVAILABLE_MESSAGE = (
    "Hubo un error al conectar con el asistente. Intenta más tarde."
)

SUGGESTED_QUESTIONS = (
    "¿Necesito ajustar mi dosis de insulina?",
    "¿Cuál es mi tendencia de glucosa?",
    "¿Qué comidas me afectan más?",
    "¿Cómo puedo mejorar mi control?",
    "¿Cuál es mi promedio de glucosa?",
)

_INSTRUCTIONS = (
    "Simula ser un asistente de salud para pacientes con diabetes tipo 1.",
    "El formato de fechas será MM/dd/yyyy, pero vos responde con la fecha en "
    "formato corto escrita en español",
    'Si sientes que no tienes suficiente información, responde con "No tengo '
    'suficiente información para responder a esa pregunta".',
    "Proporciona respuestas claras y concisas, evitando tecnicismos innecesarios.",
    "Utiliza un tono amigable y profesional, como si fueras un asistente de "
    "salud virtual.",
    "Si sientes que la pregunta no es relacionada con la diabetes o factores que "
    'pueden afectar la glucosa, responde con "Lo siento, no puedo ayudar con eso".',
    "La pregunta la realiza un paciente con los siguientes datos:",
)

_BULLET_PATTERN = re.compile(r"^[-•]\s*")

_logger = logging.getLogger(__name__)


class AssistantClient(Protocol):
    """Interface for the text-generation backend."""

    async def complete(self, prompt: str) -> str:
        """Return the model's reply to ``prompt``."""


@dataclass(frozen=True)
class PatientContext:
    """Recent records included in every prompt."""

    glucose: list[GlucoseReading] = field(default_factory=list)
    predictions: list[InsulinPredictionResult] = field(default_factory=list)
    meals: list[MealSummary] = field(default_factory=list)


@dataclass(frozen=True)
class ChatMessage:
    """A message in the conversation."""

    content: str
    sender: str
    timestamp: datetime
    show_suggestions: bool = False


def format_ai_response(text: str) -> str:
    """Keep the leading paragraphs and normalize list bullets."""
    paragraphs = [line for line in text.split("\n") if line.strip()]
    formatted = "\n\n".join(paragraphs[:MAX_RESPONSE_PARAGRAPHS])
    if "- " in formatted or "• " in formatted:
        formatted = "\n".join(
            _BULLET_PATTERN.sub("• ", line) for line in formatted.split("\n")
        )
    return formatted


def build_prompt(question: str, context: PatientContext, tz: ZoneInfo) -> str:
    """Assemble the single-shot prompt sent to the assistant."""
    lines = [
        *_INSTRUCTIONS,
        "Paciente (últimos registros):",
        f"• Glucosa: {_glucose_summary(context.glucose, tz)}",
        f"• Insulina: {_insulin_summary(context.predictions, tz)}",
        f"• Comidas: {_meals_summary(context.meals, tz)}",
    ]
    return "\n".join(lines) + f'\n\nUsuario pregunta: "{question}"\n\nAsistente:'


def _glucose_summary(readings: list[GlucoseReading], tz: ZoneInfo) -> str:
    if not readings:
        return "No hay lecturas recientes"
    return "; ".join(
        f"{r.value} mg/dL @ {r.timestamp.astimezone(tz):%m/%d/%Y}" for r in readings
    )


def _insulin_summary(predictions: list[InsulinPredictionResult], tz: ZoneInfo) -> str:
    if not predictions:
        return "No hay dosis recientes"
    return "; ".join(
        f"{p.recommended_dose:g}U @ {p.date.astimezone(tz):%H:%M}"
        for p in predictions[:PREDICTIONS_CONTEXT_LIMIT]
    )


def _meals_summary(meals: list[MealSummary], tz: ZoneInfo) -> str:
    if not meals:
        return "No hay comidas recientes"
    return "; ".join(
        f"{m.type} ({m.total_carbs:g}g carbs) @ {m.timestamp.astimezone(tz):%H:%M}"
        for m in meals
    )


async def _or_empty(call: Awaitable[list[T]], label: str) -> list[T]:
    try:
        return await call
    except (InsulaError, SchemaError) as exc:
        _logger.error("Error fetching %s data: %s", label, exc)
        return []


@dataclass
class AssistantService:
    """Answers patient questions using their recent records as context."""

    glucose_client: GlucoseClient
    prediction_client: PredictionClient
    meals_client: MealsClient
    assistant_client: AssistantClient
    session: SessionContext
    timezone_name: str = "America/Argentina/Buenos_Aires"
    messages: list[ChatMessage] = field(default_factory=list)

    async def gather_context(self, token: str) -> PatientContext:
        """Fetch recent records in parallel; a failing source yields no data."""
        glucose, predictions, meals = await asyncio.gather(
            _or_empty(
                self.glucose_client.fetch_readings(token, limit=GLUCOSE_CONTEXT_LIMIT),
                "glucose",
            ),
            _or_empty(self.prediction_client.fetch_history(token), "insulin"),
            _or_empty(
                self.meals_client.fetch_meals(token, limit=MEALS_CONTEXT_LIMIT),
                "meals",
            ),
        )
        return PatientContext(glucose=glucose, predictions=predictions, meals=meals)

    async def check_session(self) -> bool:
        """Probe the backend with the current token."""
        token = self.session.token
        if token is None:
            return False
        try:
            await self.glucose_client.fetch_readings(token, limit=1)
        except InsulaError as exc:
            _logger.warning("Token validation failed: %s", exc.message)
            return False
        return True

    async def open(self, initial_message: str | None = None) -> None:
        """Start a conversation, optionally sending a first question."""
        self.messages = []
        if self.session.token is None:
            self._reply(LOGIN_REQUIRED_MESSAGE)
            return
        if not await self.check_session():
            self._reply(SESSION_EXPIRED_MESSAGE)
            return
        self._reply(WELCOME_MESSAGE, show_suggestions=True)
        if initial_message:
            await self.ask(initial_message)

    async def ask(self, question: str) -> str:
        """Send a question and return the formatted reply."""
        self._append(question, "user")
        token = self.session.token
        if token is None:
            return self._reply(LOGIN_REQUIRED_MESSAGE)
        context = await self.gather_context(token)
        prompt = build_prompt(question, context, ZoneInfo(self.timezone_name))
        raw = await self._complete(prompt)
        return self._reply(format_ai_response(raw), show_suggestions=True)

    async def _complete(self, prompt: str) -> str:
        try:
            text = await self.assistant_client.complete(prompt)
        except InsulaError as exc:
            _logger.error("Assistant call failed: %s", exc.message)
            return ASSISTANT_UNAVAILABLE_MESSAGE
        return text or EMPTY_REPLY_MESSAGE

    def _append(
        self, content: str, sender: str, *, show_suggestions: bool = False
    ) -> None:
        if sender == "ai":
            self.messages = [
                replace(message, show_suggestions=False) for message in self.messages
            ]
        self.messages.append(
            ChatMessage(
                content=content,
                sender=sender,
                timestamp=datetime.now(tz=ZoneInfo(self.timezone_name)),
                show_suggestions=show_suggestions,
            )
        )

    def _reply(self, content: str, *, show_suggestions: bool = False) -> str:
        self._append(content, "ai", show_suggestions=show_suggestions)
        return content
