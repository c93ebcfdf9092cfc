"""Map instants to user-local calendar days."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from calorie_tracker.domain.users import UserProfile


def day_key(timestamp: datetime, profile: UserProfile) -> str:
    """Return the civil date of an instant in the user's timezone."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(ZoneInfo(profile.timezone)).date().isoformat()


def rolling_window_keys(
    reference: datetime, profile: UserProfile, window_days: int
) -> list[str]:
    """Return day keys for a trailing window, oldest first.

    The last key is the bucket containing ``reference``.
    """
    if window_days <= 0:
        return []
    end = date.fromisoformat(day_key(reference, profile))
    return [
        (end - timedelta(days=offset)).isoformat()
        for offset in range(window_days - 1, -1, -1)
    ]


def day_label(key: str) -> str:
    """Format a day key as a short month/day chart label."""
    day = date.fromisoformat(key)
    return f"{day.month}/{day.day}"
