"""Google Sheets repository for meal and weight logs."""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import TypeVar
from uuid import uuid4
from zoneinfo import ZoneInfo

import gspread
from google.auth.exceptions import GoogleAuthError

from calorie_tracker.config import Settings, parse_service_account_info
from calorie_tracker.domain.errors import StoreError, StoreReadError, StoreWriteError
from calorie_tracker.domain.models import LogEntry, WeightEntry
from calorie_tracker.domain.users import UserDirectory
from calorie_tracker.services.bucketing import day_key
from calorie_tracker.services.log_store import SheetRepository

GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]
LOG_HEADER = [
    "ID",
    "Timestamp",
    "Date",
    "User",
    "Item",
    "Calories",
    "Protein",
    "Category",
]
WEIGHT_HEADER = ["Date", "User", "Weight"]
_SHEET_ERRORS = (gspread.exceptions.GSpreadException, GoogleAuthError, OSError)

T = TypeVar("T")


@dataclass
class GoogleSheetsRepository(SheetRepository):
    """gspread implementation of the spreadsheet store.

    Rows are read and written by column name, so sheets created before the
    ``ID`` and ``Timestamp`` columns existed keep working; the missing columns
    are added to the right of the existing header on first use. Sheet access
    is serialized because a delete is a read followed by a positional
    ``delete_rows``.
    """

    client: gspread.Client
    spreadsheet_id: str
    users: UserDirectory
    log_title: str = "Sheet1"
    weight_title: str = "Sheet2"
    _worksheets: dict[str, gspread.Worksheet] = field(
        default_factory=dict, init=False
    )
    _headers: dict[str, list[str]] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    @classmethod
    def create(
        cls, settings: Settings, users: UserDirectory
    ) -> "GoogleSheetsRepository":
        """Create a repository from service account settings."""
        info = parse_service_account_info(settings.google_service_account_json)
        if info is not None:
            client = gspread.service_account_from_dict(info, scopes=GOOGLE_SCOPES)
        else:
            client = gspread.service_account(
                filename=settings.google_service_account_file, scopes=GOOGLE_SCOPES
            )
        return cls(
            client=client,
            spreadsheet_id=str(settings.spreadsheet_id),
            users=users,
            log_title=settings.log_worksheet,
            weight_title=settings.weight_worksheet,
        )

    def append_log(self, entry: LogEntry) -> None:
        """Append a log entry row."""
        values = {
            "ID": entry.id,
            "Timestamp": entry.timestamp.astimezone(UTC).isoformat(),
            "Date": self._day(entry),
            "User": entry.user,
            "Item": entry.item,
            "Calories": entry.calories,
            "Protein": entry.protein,
            "Category": entry.category,
        }
        self._append(self.log_title, LOG_HEADER, values)

    def delete_log(self, entry: LogEntry, tolerance_seconds: int) -> bool:
        """Delete the first row matching an entry."""

        def _delete() -> bool:
            worksheet = self._worksheet(self.log_title, LOG_HEADER)
            row_number = find_log_row(
                worksheet.get_all_records(),
                entry,
                tolerance_seconds,
                day=self._day(entry),
            )
            if row_number is None:
                return False
            worksheet.delete_rows(row_number)
            return True

        with self._lock:
            return _guard(StoreWriteError, _delete)

    def list_logs(self) -> list[LogEntry]:
        """Return all parseable log rows."""
        records = self._records(self.log_title, LOG_HEADER)
        entries = []
        for record in records:
            entry = self._parse_log(record)
            if entry is not None:
                entries.append(entry)
        return entries

    def append_weight(self, entry: WeightEntry) -> None:
        """Append a weight row."""
        values = {"Date": entry.date, "User": entry.user, "Weight": entry.weight}
        self._append(self.weight_title, WEIGHT_HEADER, values)

    def list_weights(self) -> list[WeightEntry]:
        """Return all parseable weight rows."""
        records = self._records(self.weight_title, WEIGHT_HEADER)
        weights = []
        for record in records:
            weight = _to_float(record.get("Weight"))
            user = str(record.get("User") or "").strip()
            if weight <= 0 or not user:
                continue
            weights.append(
                WeightEntry(
                    date=str(record.get("Date") or ""), user=user, weight=weight
                )
            )
        return weights

    def _append(
        self, title: str, header: list[str], values: dict[str, object]
    ) -> None:
        def _write() -> None:
            worksheet = self._worksheet(title, header)
            row = [values.get(name, "") for name in self._headers[title]]
            worksheet.append_row(row, value_input_option="RAW")

        with self._lock:
            _guard(StoreWriteError, _write)

    def _records(self, title: str, header: list[str]) -> list[dict[str, object]]:
        with self._lock:
            return _guard(
                StoreReadError,
                lambda: self._worksheet(title, header).get_all_records(),
            )

    def _worksheet(self, title: str, header: list[str]) -> gspread.Worksheet:
        worksheet = self._worksheets.get(title)
        if worksheet is not None:
            return worksheet
        spreadsheet = self.client.open_by_key(self.spreadsheet_id)
        try:
            worksheet = spreadsheet.worksheet(title)
        except gspread.exceptions.WorksheetNotFound:
            worksheet = spreadsheet.add_worksheet(
                title=title, rows=1000, cols=len(header)
            )
        self._headers[title] = _ensure_header(worksheet, header)
        self._worksheets[title] = worksheet
        return worksheet

    def _day(self, entry: LogEntry) -> str:
        profile = self.users.get(entry.user)
        if profile is None:
            return entry.timestamp.astimezone(UTC).date().isoformat()
        return day_key(entry.timestamp, profile)

    def _parse_log(self, record: dict[str, object]) -> LogEntry | None:
        user = str(record.get("User") or "").strip()
        if not user:
            return None
        timestamp = _parse_timestamp(record.get("Timestamp"))
        if timestamp is None:
            timestamp = self._start_of_day(record.get("Date"), user)
        if timestamp is None:
            return None
        return LogEntry(
            # Rows without an ID get a session-only handle; deletes match them
            # by content, never by position.
            id=str(record.get("ID") or uuid4().hex),
            timestamp=timestamp,
            user=user,
            item=str(record.get("Item") or ""),
            calories=_to_float(record.get("Calories")),
            protein=_to_float(record.get("Protein")),
            category=str(record.get("Category") or ""),
        )

    def _start_of_day(self, raw: object, user: str) -> datetime | None:
        try:
            day = date.fromisoformat(str(raw))
        except ValueError:
            return None
        profile = self.users.get(user)
        tz = ZoneInfo(profile.timezone) if profile else UTC
        return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def find_log_row(
    records: list[dict[str, object]],
    entry: LogEntry,
    tolerance_seconds: int,
    day: str | None = None,
) -> int | None:
    """Return the sheet row number holding an entry, if any.

    Rows carrying an ID match on it exactly. Rows without an ID match on user,
    item and calories, plus either a timestamp inside the tolerance window or,
    for date-only rows, the same ``Date`` as ``day``. Indistinguishable rows
    resolve to the first one.
    """
    for index, record in enumerate(records):
        row_id = str(record.get("ID") or "")
        if row_id:
            if row_id == entry.id:
                return index + 2
            continue
        if str(record.get("User") or "").strip().lower() != entry.user.lower():
            continue
        if str(record.get("Item") or "") != entry.item:
            continue
        if _to_float(record.get("Calories")) != entry.calories:
            continue
        timestamp = _parse_timestamp(record.get("Timestamp"))
        if timestamp is None:
            if day is not None and str(record.get("Date") or "") == day:
                return index + 2
            continue
        if abs((timestamp - entry.timestamp).total_seconds()) <= tolerance_seconds:
            return index + 2
    return None


def _ensure_header(worksheet: gspread.Worksheet, header: list[str]) -> list[str]:
    """Return the sheet's header, adding any columns it lacks."""
    existing = [str(name) for name in worksheet.row_values(1)]
    if not existing:
        worksheet.append_row(header, value_input_option="RAW")
        return list(header)
    missing = [name for name in header if name not in existing]
    if not missing:
        return existing
    needed = len(existing) + len(missing)
    if worksheet.col_count < needed:
        worksheet.add_cols(needed - worksheet.col_count)
    for offset, name in enumerate(missing, start=len(existing) + 1):
        worksheet.update_cell(1, offset, name)
    return existing + missing


def _guard(error: type[StoreError], action: Callable[[], T]) -> T:
    try:
        return action()
    except _SHEET_ERRORS as exc:
        raise error(f"{error.message} ({type(exc).__name__})") from exc


def _parse_timestamp(raw: object) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _to_float(value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
