"""Insulin dose log and dosing settings API client."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import httpx

from insula_client.adapters.backend_http import parse_model, parse_models, send_request
from insula_client.domain.insulin import (
    InsulinDose,
    InsulinSettings,
    InsulinSettingsUpdate,
    NewInsulinDose,
)


class InsulinTherapyClient(Protocol):
    """Interface for the dose log and the user's insulin settings."""

    async def fetch_doses(
        self,
        token: str,
        *,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
    ) -> list[InsulinDose]:
        """Return logged doses within an optional time window."""

    async def create_dose(self, token: str, dose: NewInsulinDose) -> InsulinDose:
        """Log an administered dose."""

    async def delete_dose(self, token: str, dose_id: str) -> bool:
        """Remove a logged dose."""

    async def fetch_settings(self, token: str) -> InsulinSettings:
        """Return carb ratio, correction factor and targets."""

    async def update_settings(
        self, token: str, update: InsulinSettingsUpdate
    ) -> bool:
        """Change some of the insulin settings."""


@dataclass
class HttpxInsulinTherapyClient(InsulinTherapyClient):
    """HTTPX-backed dose log and settings client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(
        cls, base_url: str, timeout: float = 15
    ) -> "HttpxInsulinTherapyClient":
        """Create a client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def fetch_doses(
        self,
        token: str,
        *,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
    ) -> list[InsulinDose]:
        """Fetch doses via ``GET /insulin/doses``."""
        params: dict[str, str] = {}
        if start_date is not None:
            params["startDate"] = start_date.isoformat()
        if end_date is not None:
            params["endDate"] = end_date.isoformat()
        if limit:
            params["limit"] = str(limit)
        data = await send_request(
            self.http_client,
            "GET",
            f"{self.base_url}/insulin/doses",
            token,
            params=params,
            fallback_message="Failed to fetch insulin doses",
            timeout=self.timeout,
        )
        if isinstance(data, dict) and "doses" in data:
            data = data["doses"]
        return parse_models(InsulinDose, data)

    async def create_dose(self, token: str, dose: NewInsulinDose) -> InsulinDose:
        """Log a dose via ``POST /insulin/doses``."""
        data = await send_request(
            self.http_client,
            "POST",
            f"{self.base_url}/insulin/doses",
            token,
            json=dose.to_payload(),
            fallback_message="Failed to create insulin dose",
            timeout=self.timeout,
        )
        return parse_model(InsulinDose, data)

    async def delete_dose(self, token: str, dose_id: str) -> bool:
        """Delete a dose via ``DELETE /insulin/doses/{id}``."""
        data = await send_request(
            self.http_client,
            "DELETE",
            f"{self.base_url}/insulin/doses/{dose_id}",
            token,
            fallback_message="Failed to delete insulin dose",
            timeout=self.timeout,
        )
        if isinstance(data, dict):
            return bool(data.get("success", False))
        return data is None

    async def fetch_settings(self, token: str) -> InsulinSettings:
        """Fetch settings via ``GET /insulin/settings``."""
        data = await send_request(
            self.http_client,
            "GET",
            f"{self.base_url}/insulin/settings",
            token,
            fallback_message="Failed to fetch insulin settings",
            timeout=self.timeout,
        )
        return parse_model(InsulinSettings, data)

    async def update_settings(
        self, token: str, update: InsulinSettingsUpdate
    ) -> bool:
        """Update settings via ``PUT /insulin/settings``."""
        data = await send_request(
            self.http_client,
            "PUT",
            f"{self.base_url}/insulin/settings",
            token,
            json=update.to_payload(),
            fallback_message="Failed to update insulin settings",
            timeout=self.timeout,
        )
        if isinstance(data, dict):
            return bool(data.get("success", False))
        return data is None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
