"""Vision estimation service using LLMs."""

import base64
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Protocol

from calorie_tracker.domain.errors import AIParseError
from calorie_tracker.domain.models import FoodEstimate

logger = logging.getLogger(__name__)

ESTIMATE_PROMPT = (
    "Identify the food in this photo and estimate its calories and protein. "
    "When unsure, round the calorie estimate down rather than up "
    "(err about 15% on the lower side). "
    "Always give your best estimate; never refuse or answer that you can't tell. "
    'Reply with JSON only: {"item": string, "calories": number, "protein": number}'
)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class VisionClient(Protocol):
    """Interface for LLM vision calls."""

    async def describe(self, *, model: str, image_data_url: str, prompt: str) -> str:
        """Return the model's free-text answer for an image and prompt."""


@dataclass(frozen=True)
class ParseFailure:
    """Reason a model response could not be read as a food estimate."""

    reason: str


def parse_food_estimate(text: str) -> FoodEstimate | ParseFailure:
    """Extract the first JSON object with an ``item`` field from free text.

    Surrounding prose and code fences are ignored. Calories and protein fall
    back to 0 when missing, non-numeric or negative.
    """
    cleaned = _CODE_FENCE.sub("", text or "")
    decoder = json.JSONDecoder()
    start = cleaned.find("{")
    if start < 0:
        return ParseFailure("no JSON object in response")
    while start >= 0:
        try:
            payload, _ = decoder.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict) and _has_item(payload):
            return FoodEstimate(
                item=str(payload["item"]).strip(),
                calories=_to_amount(payload.get("calories")),
                protein=_to_amount(payload.get("protein")),
            )
        start = cleaned.find("{", start + 1)
    return ParseFailure("no JSON object with an item field")


@dataclass
class VisionService:
    """Service that prepares the estimate prompt and parses answers."""

    client: VisionClient
    model: str
    prompt: str = ESTIMATE_PROMPT

    async def estimate(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> FoodEstimate:
        """Return a food estimate for an image or raise ``AIParseError``."""
        text = await self.client.describe(
            model=self.model,
            image_data_url=_to_data_url(image_bytes, mime_type),
            prompt=self.prompt,
        )
        result = parse_food_estimate(text)
        if isinstance(result, ParseFailure):
            logger.warning(
                "Unparseable vision response",
                extra={"reason": result.reason, "response": text[:500]},
            )
            raise AIParseError()
        return result


def _has_item(payload: dict[str, object]) -> bool:
    item = payload.get("item")
    return isinstance(item, str) and bool(item.strip())


def _to_amount(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def _to_data_url(image_bytes: bytes, mime_type: str | None) -> str:
    """Convert bytes to a base64 data URL for image input."""
    resolved = mime_type or _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
