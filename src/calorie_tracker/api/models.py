"""Request payload models for the JSON endpoints."""

from pydantic import BaseModel


class ManualLogRequest(BaseModel):
    """Manual meal entry; blank fields fall back to defaults."""

    user: str | None = None
    item: str | None = None
    calories: float | str | None = None
    protein: float | str | None = None
    category: str | None = None


class WeightRequest(BaseModel):
    """Weight reading for today."""

    user: str | None = None
    weight: float | str | None = None


class DeleteLogRequest(BaseModel):
    """Owner of the entry being deleted."""

    user: str | None = None
