"""OpenAI Responses API client for the health assistant."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from insula_client.domain.errors import NetworkError, ServerError
from insula_client.services.assistant import AssistantClient


@dataclass
class OpenAIAssistantClient(AssistantClient):
    """Assistant client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    model: str

    @classmethod
    def create(cls, api_key: str, model: str) -> "OpenAIAssistantClient":
        """Create an OpenAI assistant client."""
        return cls(client=AsyncOpenAI(api_key=api_key), model=model)

    async def complete(self, prompt: str) -> str:
        """Send a single-shot prompt and return the output text."""
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=prompt,
            )
        except openai.APIConnectionError as exc:
            raise NetworkError(f"Assistant unreachable: {exc}") from exc
        except openai.APIError as exc:
            raise ServerError(f"Assistant request failed: {exc}") from exc
        return response.output_text or ""

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        await self.client.close()
