"""Optional retry layer applied uniformly to the backend accessors."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from insula_client.adapters.glucose_client import GlucoseClient
from insula_client.adapters.insulin_client import PredictionClient
from insula_client.domain.errors import NetworkError
from insula_client.domain.glucose import GlucoseReading, NewGlucoseReading
from insula_client.domain.predictions import (
    InsulinPredictionRequest,
    InsulinPredictionResult,
    OutcomeUpdate,
)

T = TypeVar("T")

_logger = logging.getLogger(__name__)


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    action: str,
    attempts: int,
    delay_seconds: float,
) -> T:
    """Call ``func``, retrying ``NetworkError`` up to ``attempts`` more times.

    The wait grows linearly with each attempt. Backend responses, including
    errors, are never retried.
    """
    attempt = 0
    while True:
        try:
            return await func()
        except NetworkError as exc:
            attempt += 1
            if attempt > attempts:
                raise
            _logger.warning(
                "%s failed (attempt %s/%s): %s",
                action,
                attempt,
                attempts + 1,
                exc.message,
            )
            await asyncio.sleep(delay_seconds * attempt)


@dataclass
class RetryingPredictionClient(PredictionClient):
    """Prediction client that retries transport failures."""

    inner: PredictionClient
    attempts: int
    delay_seconds: float

    async def calculate(
        self, request: InsulinPredictionRequest, token: str
    ) -> InsulinPredictionResult:
        return await self._retry(
            lambda: self.inner.calculate(request, token), "calculate"
        )

    async def fetch_history(self, token: str) -> list[InsulinPredictionResult]:
        return await self._retry(
            lambda: self.inner.fetch_history(token), "fetch_history"
        )

    async def update_outcome(
        self, token: str, prediction_id: str, update: OutcomeUpdate
    ) -> InsulinPredictionResult:
        return await self._retry(
            lambda: self.inner.update_outcome(token, prediction_id, update),
            f"update_outcome:{prediction_id}",
        )

    async def delete_prediction(self, token: str, prediction_id: str) -> bool:
        return await self._retry(
            lambda: self.inner.delete_prediction(token, prediction_id),
            f"delete_prediction:{prediction_id}",
        )

    async def _retry(self, func: Callable[[], Awaitable[T]], action: str) -> T:
        return await call_with_retry(
            func,
            action=action,
            attempts=self.attempts,
            delay_seconds=self.delay_seconds,
        )


@dataclass
class RetryingGlucoseClient(GlucoseClient):
    """Glucose client that retries transport failures."""

    inner: GlucoseClient
    attempts: int
    delay_seconds: float

    async def fetch_readings(
        self,
        token: str,
        *,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
    ) -> list[GlucoseReading]:
        return await call_with_retry(
            lambda: self.inner.fetch_readings(
                token, start_date=start_date, end_date=end_date, limit=limit
            ),
            action="fetch_readings",
            attempts=self.attempts,
            delay_seconds=self.delay_seconds,
        )

    async def create_reading(
        self, token: str, reading: NewGlucoseReading
    ) -> GlucoseReading:
        return await call_with_retry(
            lambda: self.inner.create_reading(token, reading),
            action="create_reading",
            attempts=self.attempts,
            delay_seconds=self.delay_seconds,
        )
