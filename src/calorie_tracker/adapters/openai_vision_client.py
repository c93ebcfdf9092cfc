"""OpenAI Responses API client for vision estimates."""

import logging
from dataclasses import dataclass

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from calorie_tracker.domain.errors import AIUnavailableError
from calorie_tracker.services.vision import VisionClient

logger = logging.getLogger(__name__)


@dataclass
class OpenAIVisionClient(VisionClient):
    """Vision client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str, timeout: float = 30.0) -> "OpenAIVisionClient":
        """Create an OpenAI vision client without automatic retries."""
        return cls(client=AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0))

    async def describe(self, *, model: str, image_data_url: str, prompt: str) -> str:
        """Call OpenAI Responses API and return the output text."""
        try:
            response = await self.client.responses.create(
                model=model,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": prompt},
                            {"type": "input_image", "image_url": image_data_url},
                        ],
                    }
                ],
                store=False,
            )
        except (APITimeoutError, APIConnectionError, APIStatusError) as exc:
            logger.exception("OpenAI vision call failed", extra={"model": model})
            raise AIUnavailableError() from exc
        return response.output_text or ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
