"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from google.auth.exceptions import GoogleAuthError

from calorie_tracker.adapters.google_sheets_repository import GoogleSheetsRepository
from calorie_tracker.adapters.openai_vision_client import OpenAIVisionClient
from calorie_tracker.config import Settings
from calorie_tracker.domain.users import UserDirectory
from calorie_tracker.services.log_store import LogStore, SheetRepository
from calorie_tracker.services.meals import MealLogService
from calorie_tracker.services.photos import PhotoIntakeService
from calorie_tracker.services.stats import StatsService
from calorie_tracker.services.vision import VisionService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    users: UserDirectory
    store: LogStore
    stats_service: StatsService
    meal_log_service: MealLogService
    photo_service: PhotoIntakeService
    close_resources: Callable[[], Awaitable[None]]


def build_container(
    settings: Settings | None = None, users: UserDirectory | None = None
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_users = users or UserDirectory()
    repository: SheetRepository | None = None
    if resolved_settings.sheets_enabled:
        try:
            repository = GoogleSheetsRepository.create(
                resolved_settings, resolved_users
            )
        except (OSError, ValueError, GoogleAuthError):
            logger.exception(
                "Invalid spreadsheet credentials; logs are kept in memory only"
            )
    else:
        logger.warning("Spreadsheet not configured; logs are kept in memory only")
    store = LogStore(
        repository=repository,
        delete_tolerance_seconds=resolved_settings.delete_tolerance_seconds,
    )
    openai_client = OpenAIVisionClient.create(
        resolved_settings.openai_api_key,
        timeout=resolved_settings.openai_timeout_seconds,
    )
    vision_service = VisionService(
        client=openai_client, model=resolved_settings.openai_model
    )
    meal_log_service = MealLogService(store=store, users=resolved_users)
    photo_service = PhotoIntakeService(
        vision_service=vision_service,
        meal_log_service=meal_log_service,
        users=resolved_users,
        max_edge=resolved_settings.image_max_edge,
        jpeg_quality=resolved_settings.image_jpeg_quality,
        max_upload_bytes=resolved_settings.max_upload_bytes,
    )
    stats_service = StatsService(
        store=store,
        users=resolved_users,
        recent_limit=resolved_settings.recent_limit,
        window_days=resolved_settings.chart_window_days,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        users=resolved_users,
        store=store,
        stats_service=stats_service,
        meal_log_service=meal_log_service,
        photo_service=photo_service,
        close_resources=close_resources,
    )
