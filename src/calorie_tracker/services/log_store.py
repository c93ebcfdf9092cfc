"""In-memory log store with best-effort spreadsheet write-through."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from calorie_tracker.domain.errors import StoreReadError, StoreWriteError
from calorie_tracker.domain.models import LogEntry, WeightEntry

logger = logging.getLogger(__name__)


class SheetRepository(Protocol):
    """Persistence interface for the external spreadsheet."""

    def append_log(self, entry: LogEntry) -> None:
        """Append a log entry row."""

    def delete_log(self, entry: LogEntry, tolerance_seconds: int) -> bool:
        """Delete the row matching an entry and return whether one was found."""

    def list_logs(self) -> list[LogEntry]:
        """Return all log entries stored in the spreadsheet."""

    def append_weight(self, entry: WeightEntry) -> None:
        """Append a weight row."""

    def list_weights(self) -> list[WeightEntry]:
        """Return all weight entries stored in the spreadsheet."""


@dataclass
class LogStore:
    """Process-wide view of meal and weight logs.

    The in-memory collections are the source of truth once loaded. Each
    mutation is mirrored to the spreadsheet at most once; mirror failures are
    logged and never undo the in-memory change.
    """

    repository: SheetRepository | None = None
    delete_tolerance_seconds: int = 120
    _entries: dict[str, list[LogEntry]] = field(default_factory=dict, init=False)
    _weights: dict[str, list[WeightEntry]] = field(default_factory=dict, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def append(self, entry: LogEntry) -> None:
        """Add an entry and mirror it to the spreadsheet."""
        async with self._lock:
            self._entries.setdefault(_key(entry.user), []).append(entry)
        if self.repository is None:
            return
        try:
            await asyncio.to_thread(self.repository.append_log, entry)
        except StoreWriteError:
            logger.exception(
                "Spreadsheet append failed",
                extra={"entry_id": entry.id, "user": entry.user},
            )

    async def delete_by_id(self, user: str, entry_id: str) -> LogEntry | None:
        """Remove an entry by id; return it, or None when absent."""
        async with self._lock:
            entries = self._entries.get(_key(user), [])
            removed = None
            for index, entry in enumerate(entries):
                if entry.id == entry_id:
                    removed = entries.pop(index)
                    break
        if removed is None or self.repository is None:
            return removed
        try:
            found = await asyncio.to_thread(
                self.repository.delete_log, removed, self.delete_tolerance_seconds
            )
        except StoreWriteError:
            logger.exception(
                "Spreadsheet delete failed",
                extra={"entry_id": entry_id, "user": user},
            )
            return removed
        if not found:
            logger.warning(
                "No spreadsheet row matched deleted entry",
                extra={"entry_id": entry_id, "user": user},
            )
        return removed

    def entries_for_user(self, user: str) -> list[LogEntry]:
        """Return a copy of a user's entries in append order."""
        return list(self._entries.get(_key(user), []))

    async def append_weight(self, entry: WeightEntry) -> None:
        """Add a weight reading and mirror it to the spreadsheet."""
        async with self._lock:
            self._weights.setdefault(_key(entry.user), []).append(entry)
        if self.repository is None:
            return
        try:
            await asyncio.to_thread(self.repository.append_weight, entry)
        except StoreWriteError:
            logger.exception(
                "Spreadsheet weight append failed", extra={"user": entry.user}
            )

    def weights_for_user(self, user: str) -> list[WeightEntry]:
        """Return a copy of a user's weight readings in append order."""
        return list(self._weights.get(_key(user), []))

    def last_weight_for_user(self, user: str) -> float | None:
        """Return the most recently appended weight for a user."""
        weights = self._weights.get(_key(user))
        if not weights:
            return None
        return weights[-1].weight

    async def load_from_external_store(self) -> None:
        """Replace the in-memory view with the spreadsheet contents."""
        if self.repository is None:
            logger.info("No spreadsheet configured; using memory-only storage")
            return
        try:
            logs = await asyncio.to_thread(self.repository.list_logs)
            weights = await asyncio.to_thread(self.repository.list_weights)
        except StoreReadError:
            logger.exception("Failed to load logs from spreadsheet")
            return
        entries: dict[str, list[LogEntry]] = {}
        for entry in logs:
            entries.setdefault(_key(entry.user), []).append(entry)
        readings: dict[str, list[WeightEntry]] = {}
        for reading in weights:
            readings.setdefault(_key(reading.user), []).append(reading)
        async with self._lock:
            self._entries = entries
            self._weights = readings
        logger.info(
            "Loaded logs from spreadsheet",
            extra={"log_count": len(logs), "weight_count": len(weights)},
        )


def _key(user: str) -> str:
    return user.strip().lower()
