"""Static user profiles."""

from dataclasses import dataclass

from calorie_tracker.domain.errors import ValidationError


@dataclass(frozen=True)
class UserProfile:
    """A tracked person with their display timezone and calorie goal."""

    name: str
    timezone: str
    daily_goal: int


DEFAULT_USERS = (
    UserProfile(name="husband", timezone="Pacific/Honolulu", daily_goal=4000),
    UserProfile(name="wife", timezone="Asia/Tokyo", daily_goal=2000),
)


class UserDirectory:
    """Lookup of configured users keyed by identity."""

    def __init__(self, profiles: tuple[UserProfile, ...] = DEFAULT_USERS) -> None:
        if not profiles:
            raise ValueError("At least one user profile is required")
        self._profiles = {profile.name.lower(): profile for profile in profiles}
        self._default = profiles[0]

    @property
    def default(self) -> UserProfile:
        """Return the profile used when a request names no user."""
        return self._default

    def names(self) -> list[str]:
        """Return configured user names."""
        return list(self._profiles)

    def get(self, name: str | None) -> UserProfile | None:
        """Return the profile for a user name, if configured."""
        if name is None:
            return None
        return self._profiles.get(name.strip().lower())

    def resolve(self, name: str | None) -> UserProfile:
        """Return the profile for a user name or raise a validation error."""
        if name is None or not name.strip():
            raise ValidationError("A user is required.")
        profile = self.get(name)
        if profile is None:
            raise ValidationError(f"Unknown user: {name.strip()}.")
        return profile
