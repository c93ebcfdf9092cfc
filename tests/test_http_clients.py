"""Tests for the OpenAI vision adapter."""

import asyncio

import httpx
import pytest
from openai import APITimeoutError

from calorie_tracker.adapters.openai_vision_client import OpenAIVisionClient
from calorie_tracker.domain.errors import AIUnavailableError


class _FakeResponses:
    def __init__(self, output_text: str = "", error: Exception | None = None) -> None:
        self.output_text = output_text
        self.error = error
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if self.error is not None:
            raise self.error
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, responses: _FakeResponses) -> None:
        self.responses = responses


def test_openai_vision_client_returns_output_text() -> None:
    responses = _FakeResponses(output_text='{"item": "Salad"}')
    client = OpenAIVisionClient(client=_FakeOpenAI(responses))

    result = asyncio.run(
        client.describe(
            model="gpt-4o-mini",
            image_data_url="data:image/jpeg;base64,ZmFrZQ==",
            prompt="Estimate calories",
        )
    )

    assert result == '{"item": "Salad"}'
    assert responses.last_payload is not None
    assert responses.last_payload["model"] == "gpt-4o-mini"
    content = responses.last_payload["input"][0]["content"]
    assert content[0] == {"type": "input_text", "text": "Estimate calories"}
    assert content[1]["image_url"].startswith("data:image/jpeg;base64,")


def test_openai_vision_client_maps_timeouts() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    responses = _FakeResponses(error=APITimeoutError(request=request))
    client = OpenAIVisionClient(client=_FakeOpenAI(responses))

    with pytest.raises(AIUnavailableError):
        asyncio.run(
            client.describe(model="m", image_data_url="data:,", prompt="p")
        )


def test_openai_vision_client_empty_output_is_blank() -> None:
    client = OpenAIVisionClient(client=_FakeOpenAI(_FakeResponses(output_text="")))

    result = asyncio.run(
        client.describe(model="m", image_data_url="data:,", prompt="p")
    )

    assert result == ""
