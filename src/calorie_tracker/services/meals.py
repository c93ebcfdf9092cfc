"""Meal and weight logging service."""

import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from calorie_tracker.domain.errors import ValidationError
from calorie_tracker.domain.models import (
    AI_PHOTO_CATEGORY,
    FoodEstimate,
    LogEntry,
    WeightEntry,
)
from calorie_tracker.domain.users import UserDirectory
from calorie_tracker.services.bucketing import day_key
from calorie_tracker.services.log_store import LogStore

logger = logging.getLogger(__name__)

DEFAULT_MANUAL_ITEM = "Manual Entry"
DEFAULT_MANUAL_CATEGORY = "Snack"


@dataclass
class MealLogService:
    """Service that builds log entries and persists them in the store."""

    store: LogStore
    users: UserDirectory

    async def log_manual(
        self,
        user: str | None,
        item: str | None = None,
        calories: object = None,
        protein: object = None,
        category: str | None = None,
    ) -> LogEntry:
        """Create a manual entry, filling blanks with defaults."""
        profile = self.users.resolve(user)
        entry = _new_entry(
            user=profile.name,
            item=(item or "").strip() or DEFAULT_MANUAL_ITEM,
            calories=_to_amount(calories, "calories"),
            protein=_to_amount(protein, "protein"),
            category=(category or "").strip() or DEFAULT_MANUAL_CATEGORY,
        )
        await self.store.append(entry)
        logger.info(
            "Manual entry logged",
            extra={"user": profile.name, "entry_id": entry.id},
        )
        return entry

    async def log_estimate(self, user: str, estimate: FoodEstimate) -> LogEntry:
        """Create an entry from a vision estimate."""
        profile = self.users.resolve(user)
        entry = _new_entry(
            user=profile.name,
            item=estimate.item,
            calories=estimate.calories,
            protein=estimate.protein,
            category=AI_PHOTO_CATEGORY,
        )
        await self.store.append(entry)
        logger.info(
            "Photo entry logged",
            extra={"user": profile.name, "entry_id": entry.id},
        )
        return entry

    async def delete(self, user: str | None, entry_id: str) -> bool:
        """Delete an entry by id; missing ids are a no-op."""
        profile = self.users.resolve(user)
        removed = await self.store.delete_by_id(profile.name, entry_id)
        return removed is not None

    async def log_weight(
        self, user: str | None, weight: object, now: datetime | None = None
    ) -> WeightEntry:
        """Record a weight reading dated in the user's timezone."""
        profile = self.users.resolve(user)
        value = _to_positive(weight)
        entry = WeightEntry(
            date=day_key(now or datetime.now(tz=UTC), profile),
            user=profile.name,
            weight=value,
        )
        await self.store.append_weight(entry)
        return entry


def _new_entry(
    user: str, item: str, calories: float, protein: float, category: str
) -> LogEntry:
    return LogEntry(
        id=uuid4().hex,
        timestamp=datetime.now(tz=UTC),
        user=user,
        item=item,
        calories=calories,
        protein=protein,
        category=category,
    )


def _to_amount(value: object, field_name: str) -> float:
    """Parse a non-negative number; blanks and junk count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    if amount < 0:
        raise ValidationError(f"{field_name.capitalize()} can't be negative.")
    return amount


def _to_positive(value: object) -> float:
    try:
        weight = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError("Weight must be a number.") from None
    if not math.isfinite(weight) or weight <= 0:
        raise ValidationError("Weight must be a positive number.")
    return weight
