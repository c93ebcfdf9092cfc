"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from calorie_tracker.api.models import DeleteLogRequest, ManualLogRequest, WeightRequest
from calorie_tracker.app_logging import configure_logging
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.errors import (
    AIParseError,
    AIUnavailableError,
    TrackerError,
    ValidationError,
)
from calorie_tracker.domain.models import LogEntry
from calorie_tracker.domain.stats import StatsSnapshot
from calorie_tracker.domain.users import UserDirectory
from calorie_tracker.services.bucketing import day_key

STATIC_DIR = Path(__file__).resolve().parents[1] / "static"

_STATUS_CODES: dict[type[TrackerError], int] = {
    ValidationError: 400,
    AIParseError: 502,
    AIUnavailableError: 503,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app.state.container.store.load_from_external_store()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.exception_handler(TrackerError)
    async def tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        status_code = _status_code(exc)
        if status_code >= 500:
            logger.error(
                "Request failed",
                extra={"path": request.url.path, "error": type(exc).__name__},
            )
        state_container: AppContainer = request.app.state.container
        return JSONResponse(
            status_code=status_code,
            content={"error": _format_error(state_container, exc)},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info(
            "Rejected request body",
            extra={"path": request.url.path, "errors": exc.errors()},
        )
        return JSONResponse(status_code=400, content={"error": "Invalid request."})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        """Serve the static client page."""
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/api/stats")
    async def stats(request: Request, user: str | None = None) -> dict[str, object]:
        """Return today's totals, recent logs and the weekly chart."""
        state_container: AppContainer = request.app.state.container
        snapshot = state_container.stats_service.get_stats(user)
        return _serialize_stats(snapshot, state_container.users)

    @app.post("/api/log/photo")
    async def log_photo(
        request: Request,
        image: UploadFile | None = File(default=None),
        photo: UploadFile | None = File(default=None),
        user: str | None = Form(default=None),
    ) -> dict[str, object]:
        """Estimate and log a meal photo."""
        state_container: AppContainer = request.app.state.container
        upload = image or photo
        if upload is None:
            raise ValidationError("No photo attached.")
        photo_service = state_container.photo_service
        # One byte past the limit is enough to reject an oversized upload.
        image_bytes = await upload.read(photo_service.max_upload_bytes + 1)
        entry = await photo_service.ingest_photo(
            image_bytes, upload.content_type, user
        )
        return _serialize_entry(entry, state_container.users)

    @app.post("/api/log/manual")
    async def log_manual(
        payload: ManualLogRequest, request: Request
    ) -> dict[str, object]:
        """Log a manually entered meal."""
        state_container: AppContainer = request.app.state.container
        entry = await state_container.meal_log_service.log_manual(
            user=payload.user,
            item=payload.item,
            calories=payload.calories,
            protein=payload.protein,
            category=payload.category,
        )
        return _serialize_entry(entry, state_container.users)

    @app.post("/api/weight")
    async def log_weight(payload: WeightRequest, request: Request) -> dict[str, bool]:
        """Record today's weight."""
        state_container: AppContainer = request.app.state.container
        await state_container.meal_log_service.log_weight(payload.user, payload.weight)
        return {"success": True}

    @app.delete("/api/log/{entry_id}")
    async def delete_log(
        entry_id: str, payload: DeleteLogRequest, request: Request
    ) -> dict[str, bool]:
        """Delete a log entry; unknown ids succeed as a no-op."""
        state_container: AppContainer = request.app.state.container
        await state_container.meal_log_service.delete(payload.user, entry_id)
        return {"success": True}

    return app


def _status_code(exc: TrackerError) -> int:
    for error_type, status_code in _STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


def _format_error(state_container: AppContainer, exc: TrackerError) -> str:
    """Return a user-facing error message with local debug info."""
    cause = exc.__cause__
    if state_container.settings.environment == "local" and cause is not None:
        detail = f"{type(cause).__name__}: {cause}".strip()
        return f"{exc.message} (debug: {detail})"
    return exc.message


def _serialize_entry(entry: LogEntry, users: UserDirectory) -> dict[str, object]:
    profile = users.get(entry.user)
    return {
        "id": entry.id,
        "timestamp": entry.timestamp.isoformat(),
        "date": day_key(entry.timestamp, profile) if profile else None,
        "user": entry.user,
        "item": entry.item,
        "calories": entry.calories,
        "protein": entry.protein,
        "category": entry.category,
    }


def _serialize_stats(
    snapshot: StatsSnapshot, users: UserDirectory
) -> dict[str, object]:
    return {
        "user": snapshot.user,
        "totalCals": snapshot.total_calories_today,
        "totalProtein": snapshot.total_protein_today,
        "lastWeight": snapshot.last_weight,
        "recentLogs": [
            _serialize_entry(entry, users) for entry in snapshot.recent_entries
        ],
        "chartData": {
            "labels": snapshot.chart.labels,
            "values": snapshot.chart.values,
        },
        "weightHistory": [
            {"x": reading.date, "y": reading.weight}
            for reading in snapshot.weight_history
        ],
        "dailyGoal": snapshot.daily_goal,
        "percentOfGoal": snapshot.percent_of_goal,
    }
