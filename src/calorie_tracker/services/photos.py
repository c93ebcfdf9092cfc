"""Photo intake: shrink, estimate, and log a meal photo."""

import asyncio
import logging
from dataclasses import dataclass

from calorie_tracker.domain.errors import ValidationError
from calorie_tracker.domain.models import LogEntry
from calorie_tracker.domain.users import UserDirectory
from calorie_tracker.services.images import shrink_image
from calorie_tracker.services.meals import MealLogService
from calorie_tracker.services.vision import VisionService

logger = logging.getLogger(__name__)


@dataclass
class PhotoIntakeService:
    """Turns an uploaded meal photo into a logged entry."""

    vision_service: VisionService
    meal_log_service: MealLogService
    users: UserDirectory
    max_edge: int = 1024
    jpeg_quality: int = 70
    max_upload_bytes: int = 10 * 1024 * 1024

    async def ingest_photo(
        self, image_bytes: bytes, mime_type: str | None, user: str | None
    ) -> LogEntry:
        """Estimate the food in a photo and log it.

        Raises ``ValidationError`` for empty or oversized uploads and unknown
        users, and the vision service's ``AIUnavailableError``/``AIParseError``
        otherwise. Nothing is logged when estimation fails.
        """
        profile = self.users.resolve(user)
        if not image_bytes:
            raise ValidationError("No photo attached.")
        if len(image_bytes) > self.max_upload_bytes:
            raise ValidationError("Photo is too large.")
        payload, payload_type = await asyncio.to_thread(
            shrink_image,
            image_bytes,
            mime_type,
            max_edge=self.max_edge,
            quality=self.jpeg_quality,
        )
        logger.info(
            "Estimating photo",
            extra={
                "user": profile.name,
                "original_size": len(image_bytes),
                "sent_size": len(payload),
            },
        )
        estimate = await self.vision_service.estimate(payload, payload_type)
        return await self.meal_log_service.log_estimate(profile.name, estimate)
