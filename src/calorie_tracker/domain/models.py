"""Domain models for the calorie tracker."""

from dataclasses import dataclass
from datetime import datetime

AI_PHOTO_CATEGORY = "AI Photo"


@dataclass(frozen=True)
class LogEntry:
    """A single recorded meal with its calorie and protein estimate."""

    id: str
    timestamp: datetime
    user: str
    item: str
    calories: float
    protein: float
    category: str


@dataclass(frozen=True)
class WeightEntry:
    """A weight reading for a user's calendar day."""

    date: str
    user: str
    weight: float


@dataclass(frozen=True)
class FoodEstimate:
    """Food label and nutrition estimate parsed from a vision response."""

    item: str
    calories: float
    protein: float
