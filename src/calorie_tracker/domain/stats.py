"""Domain models for statistics."""

from dataclasses import dataclass

from calorie_tracker.domain.models import LogEntry, WeightEntry


@dataclass(frozen=True)
class ChartSeries:
    """Parallel labels and calorie values for a trailing window of days."""

    labels: list[str]
    values: list[float]


@dataclass(frozen=True)
class StatsSnapshot:
    """Aggregated view of a user's log for the current day."""

    user: str
    total_calories_today: float
    total_protein_today: float
    last_weight: float | None
    recent_entries: list[LogEntry]
    chart: ChartSeries
    weight_history: list[WeightEntry]
    daily_goal: int
    percent_of_goal: int
