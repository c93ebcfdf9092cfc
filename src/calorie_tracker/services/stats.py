"""Statistics service for meal logs."""

from dataclasses import dataclass
from datetime import UTC, datetime

from calorie_tracker.domain.models import LogEntry
from calorie_tracker.domain.stats import ChartSeries, StatsSnapshot
from calorie_tracker.domain.users import UserDirectory, UserProfile
from calorie_tracker.services.bucketing import day_key, day_label, rolling_window_keys
from calorie_tracker.services.log_store import LogStore


@dataclass
class StatsService:
    """Service for computing per-user stats in the user's timezone."""

    store: LogStore
    users: UserDirectory
    recent_limit: int = 30
    window_days: int = 7

    def get_stats(
        self, user: str | None, now: datetime | None = None
    ) -> StatsSnapshot:
        """Return today's totals, recent entries and the trailing chart."""
        if user is None or not user.strip():
            profile = self.users.default
        else:
            profile = self.users.resolve(user)
        current = now or datetime.now(tz=UTC)
        entries = self.store.entries_for_user(profile.name)
        today = day_key(current, profile)

        calories = 0.0
        protein = 0.0
        for entry in entries:
            if day_key(entry.timestamp, profile) == today:
                calories += entry.calories
                protein += entry.protein

        return StatsSnapshot(
            user=profile.name,
            total_calories_today=calories,
            total_protein_today=protein,
            last_weight=self.store.last_weight_for_user(profile.name),
            recent_entries=_recent(entries, self.recent_limit),
            chart=_chart(entries, current, profile, self.window_days),
            weight_history=self.store.weights_for_user(profile.name),
            daily_goal=profile.daily_goal,
            percent_of_goal=percent_of_goal(calories, profile.daily_goal),
        )


def percent_of_goal(total_calories: float, daily_goal: int) -> int:
    """Return the share of the daily goal consumed, capped at 100."""
    if daily_goal <= 0:
        return 0
    return min(100, round(total_calories / daily_goal * 100))


def _recent(entries: list[LogEntry], limit: int) -> list[LogEntry]:
    return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)[:limit]


def _chart(
    entries: list[LogEntry], now: datetime, profile: UserProfile, window_days: int
) -> ChartSeries:
    keys = rolling_window_keys(now, profile, window_days)
    totals = dict.fromkeys(keys, 0.0)
    for entry in entries:
        key = day_key(entry.timestamp, profile)
        if key in totals:
            totals[key] += entry.calories
    return ChartSeries(
        labels=[day_label(key) for key in keys],
        values=[totals[key] for key in keys],
    )
