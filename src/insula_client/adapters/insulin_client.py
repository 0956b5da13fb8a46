"""Insulin prediction API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from insula_client.adapters.backend_http import (
    parse_model,
    parse_models,
    send_request,
)
from insula_client.domain.predictions import (
    InsulinPredictionRequest,
    InsulinPredictionResult,
    OutcomeUpdate,
)


class PredictionClient(Protocol):
    """Interface for insulin prediction records."""

    async def calculate(
        self, request: InsulinPredictionRequest, token: str
    ) -> InsulinPredictionResult:
        """Request a dose recommendation, creating one record."""

    async def fetch_history(self, token: str) -> list[InsulinPredictionResult]:
        """Return the caller's predictions in server order."""

    async def update_outcome(
        self, token: str, prediction_id: str, update: OutcomeUpdate
    ) -> InsulinPredictionResult:
        """Replace the post-dose data of a prediction."""

    async def delete_prediction(self, token: str, prediction_id: str) -> bool:
        """Delete a prediction record."""


@dataclass
class HttpxPredictionClient(PredictionClient):
    """HTTPX-backed prediction client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "HttpxPredictionClient":
        """Create a prediction client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def calculate(
        self, request: InsulinPredictionRequest, token: str
    ) -> InsulinPredictionResult:
        """Calculate a dose via ``POST /insulin/calculate``."""
        data = await send_request(
            self.http_client,
            "POST",
            f"{self.base_url}/insulin/calculate",
            token,
            json=request.to_payload(),
            fallback_message="Failed to calculate insulin dose",
            timeout=self.timeout,
        )
        return parse_model(InsulinPredictionResult, data)

    async def fetch_history(self, token: str) -> list[InsulinPredictionResult]:
        """Fetch predictions via ``GET /insulin/predictions``."""
        data = await send_request(
            self.http_client,
            "GET",
            f"{self.base_url}/insulin/predictions",
            token,
            fallback_message="Failed to fetch insulin predictions",
            timeout=self.timeout,
        )
        return parse_models(InsulinPredictionResult, data)

    async def update_outcome(
        self, token: str, prediction_id: str, update: OutcomeUpdate
    ) -> InsulinPredictionResult:
        """Replace outcome data via ``PUT /insulin/{id}``."""
        data = await send_request(
            self.http_client,
            "PUT",
            f"{self.base_url}/insulin/{prediction_id}",
            token,
            json=update.to_payload(),
            fallback_message="Failed to update insulin prediction",
            timeout=self.timeout,
        )
        return parse_model(InsulinPredictionResult, data)

    async def delete_prediction(self, token: str, prediction_id: str) -> bool:
        """Delete a prediction via ``DELETE /insulin/{id}``."""
        data = await send_request(
            self.http_client,
            "DELETE",
            f"{self.base_url}/insulin/{prediction_id}",
            token,
            fallback_message="Failed to delete insulin prediction",
            timeout=self.timeout,
        )
        if isinstance(data, dict):
            return bool(data.get("success", False))
        return data is None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
