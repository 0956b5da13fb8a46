"""User profile API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from insula_client.adapters.backend_http import parse_model, send_request
from insula_client.domain.insulin import GlucoseTarget


class ProfileClient(Protocol):
    """Interface for profile settings used by dosing."""

    async def update_glucose_target(
        self, token: str, target: GlucoseTarget
    ) -> GlucoseTarget:
        """Store new glucose target bounds and return the saved ones."""


@dataclass
class HttpxProfileClient(ProfileClient):
    """HTTPX-backed profile client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "HttpxProfileClient":
        """Create a profile client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def update_glucose_target(
        self, token: str, target: GlucoseTarget
    ) -> GlucoseTarget:
        """Update targets via ``PUT /users/glucose-target``."""
        data = await send_request(
            self.http_client,
            "PUT",
            f"{self.base_url}/users/glucose-target",
            token,
            json=target.to_payload(),
            fallback_message="Failed to update glucose target",
            timeout=self.timeout,
        )
        user = _profile_user(data)
        if user is None:
            return target
        return parse_model(GlucoseTarget, user)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _profile_user(data: object) -> dict[str, object] | None:
    if not isinstance(data, dict):
        return None
    body = data.get("data", data)
    user = body.get("user") if isinstance(body, dict) else None
    if isinstance(user, dict) and "minTargetGlucose" in user:
        return user
    return None
