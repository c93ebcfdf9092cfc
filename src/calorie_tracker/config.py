"""Application configuration."""

import json
import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 30.0
    google_service_account_json: str | None = None
    google_service_account_file: str | None = None
    spreadsheet_id: str | None = None
    log_worksheet: str = "Sheet1"
    weight_worksheet: str = "Sheet2"
    max_upload_bytes: int = 10 * 1024 * 1024
    image_max_edge: int = 1024
    image_jpeg_quality: int = 70
    recent_limit: int = 30
    chart_window_days: int = 7
    delete_tolerance_seconds: int = 120
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def sheets_enabled(self) -> bool:
        """Return true when a spreadsheet and credentials are configured."""
        has_credentials = bool(
            self.google_service_account_json or self.google_service_account_file
        )
        return bool(self.spreadsheet_id) and has_credentials


def parse_service_account_info(raw: str | None) -> dict[str, object] | None:
    """Parse inline service account JSON from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if not cleaned:
        return None
    try:
        info = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    return info if isinstance(info, dict) else None
