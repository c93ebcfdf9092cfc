"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from calorie_tracker.config import Settings
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.errors import StoreReadError, StoreWriteError
from calorie_tracker.domain.models import LogEntry, WeightEntry
from calorie_tracker.domain.users import UserDirectory
from calorie_tracker.services.log_store import LogStore, SheetRepository
from calorie_tracker.services.meals import MealLogService
from calorie_tracker.services.photos import PhotoIntakeService
from calorie_tracker.services.stats import StatsService
from calorie_tracker.services.vision import VisionClient, VisionService

BURGER_RESPONSE = 'Sure! {"item":"Burger","calories":650,"protein":30} enjoy!'


@dataclass
class InMemorySheetRepository(SheetRepository):
    """In-memory spreadsheet repository for tests."""

    logs: list[LogEntry] = field(default_factory=list)
    weights: list[WeightEntry] = field(default_factory=list)
    fail_writes: bool = False
    fail_reads: bool = False
    deleted: list[str] = field(default_factory=list)

    def append_log(self, entry: LogEntry) -> None:
        if self.fail_writes:
            raise StoreWriteError()
        self.logs.append(entry)

    def delete_log(self, entry: LogEntry, tolerance_seconds: int) -> bool:
        if self.fail_writes:
            raise StoreWriteError()
        for index, row in enumerate(self.logs):
            if row.id == entry.id:
                self.logs.pop(index)
                self.deleted.append(entry.id)
                return True
        return False

    def list_logs(self) -> list[LogEntry]:
        if self.fail_reads:
            raise StoreReadError()
        return list(self.logs)

    def append_weight(self, entry: WeightEntry) -> None:
        if self.fail_writes:
            raise StoreWriteError()
        self.weights.append(entry)

    def list_weights(self) -> list[WeightEntry]:
        if self.fail_reads:
            raise StoreReadError()
        return list(self.weights)


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning fixed text."""

    text: str = BURGER_RESPONSE
    error: Exception | None = None
    calls: list[dict[str, str]] = field(default_factory=list)

    async def describe(self, *, model: str, image_data_url: str, prompt: str) -> str:
        self.calls.append(
            {"model": model, "image_data_url": image_data_url, "prompt": prompt}
        )
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key", environment="test")


@pytest.fixture
def users() -> UserDirectory:
    return UserDirectory()


@pytest.fixture
def sheet_repository() -> InMemorySheetRepository:
    return InMemorySheetRepository()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def store(sheet_repository: InMemorySheetRepository) -> LogStore:
    return LogStore(repository=sheet_repository)


@pytest.fixture
def container(
    settings: Settings,
    users: UserDirectory,
    store: LogStore,
    vision_client: FakeVisionClient,
) -> AppContainer:
    meal_log_service = MealLogService(store=store, users=users)
    photo_service = PhotoIntakeService(
        vision_service=VisionService(client=vision_client, model="test-model"),
        meal_log_service=meal_log_service,
        users=users,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        users=users,
        store=store,
        stats_service=StatsService(store=store, users=users),
        meal_log_service=meal_log_service,
        photo_service=photo_service,
        close_resources=close_resources,
    )
