"""Meals API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from insula_client.adapters.backend_http import parse_models, send_request
from insula_client.domain.meals import MealSummary


class MealsClient(Protocol):
    """Interface for meal retrieval."""

    async def fetch_meals(
        self, token: str, *, limit: int | None = None
    ) -> list[MealSummary]:
        """Return recent meals."""


@dataclass
class HttpxMealsClient(MealsClient):
    """HTTPX-backed meals client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "HttpxMealsClient":
        """Create a meals client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def fetch_meals(
        self, token: str, *, limit: int | None = None
    ) -> list[MealSummary]:
        """Fetch meals via ``GET /meals``."""
        params = {"limit": str(limit)} if limit else None
        data = await send_request(
            self.http_client,
            "GET",
            f"{self.base_url}/meals",
            token,
            params=params,
            fallback_message="Failed to fetch meals",
            timeout=self.timeout,
        )
        return parse_models(MealSummary, data)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
