"""Glucose readings API client."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import httpx

from insula_client.adapters.backend_http import (
    parse_model,
    parse_models,
    send_request,
)
from insula_client.domain.glucose import GlucoseReading, NewGlucoseReading


class GlucoseClient(Protocol):
    """Interface for glucose reading retrieval."""

    async def fetch_readings(
        self,
        token: str,
        *,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
    ) -> list[GlucoseReading]:
        """Return readings within an optional time window."""

    async def create_reading(
        self, token: str, reading: NewGlucoseReading
    ) -> GlucoseReading:
        """Persist a manually entered reading."""


@dataclass
class HttpxGlucoseClient(GlucoseClient):
    """HTTPX-backed glucose client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "HttpxGlucoseClient":
        """Create a glucose client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def fetch_readings(
        self,
        token: str,
        *,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
    ) -> list[GlucoseReading]:
        """Fetch readings via ``GET /glucose``."""
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
            f"{self.base_url}/glucose",
            token,
            params=params,
            fallback_message="Failed to fetch glucose readings",
            timeout=self.timeout,
        )
        return parse_models(GlucoseReading, data)

    async def create_reading(
        self, token: str, reading: NewGlucoseReading
    ) -> GlucoseReading:
        """Create a reading via ``POST /glucose``."""
        data = await send_request(
            self.http_client,
            "POST",
            f"{self.base_url}/glucose",
            token,
            json=reading.model_dump(exclude_none=True),
            fallback_message="Failed to create glucose reading",
            timeout=self.timeout,
        )
        return parse_model(GlucoseReading, data)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
