"""Series and exception stores for simplecal.

The ``SeriesStore`` and ``ExceptionStore`` protocols describe what the
expansion and mutation code needs from persistence. ``EventStore`` is an
in-memory implementation of both; ``JsonEventStore`` persists the same data to
a JSON file with atomic writes. Stores are passed explicitly to the code that
uses them; there is no module-level storage handle.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from .recur_exceptions import (
    ExceptionConflictError,
    ExceptionNotFoundError,
    SeriesNotFoundError,
)
from .recur_models import EventException, Series

logger = logging.getLogger(__name__)


class SeriesStore(Protocol):
    """Source and sink of series records."""

    def list_all(self, calendar_id: Optional[str] = None) -> list[Series]: ...

    def get_by_id(self, series_id: str) -> Optional[Series]: ...

    def save(self, series: Series) -> Series: ...

    def delete(self, series_id: str) -> None: ...

    def find_exceptions_of(self, series_id: str) -> list[EventException]: ...


class ExceptionStore(Protocol):
    """Source and sink of exception records."""

    def add(self, exception: EventException) -> EventException: ...

    def delete(self, exception_id: str) -> None: ...

    def list_all(self) -> list[EventException]: ...


class InMemoryExceptionStore:
    """Dict-backed exception store enforcing one exception per (series, day)."""

    def __init__(
        self,
        lock: Optional[threading.RLock] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._lock = lock or threading.RLock()
        self._on_change = on_change
        self._records: dict[str, EventException] = {}

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def add(self, exception: EventException) -> EventException:
        """Insert a new exception.

        Raises:
            ExceptionConflictError: If the series already has an exception for
                the same original occurrence day
            ValueError: If the exception id is already taken
        """
        with self._lock:
            if exception.id in self._records:
                raise ValueError(f"Exception id already exists: {exception.id}")
            for existing in self._records.values():
                if (
                    existing.series_id == exception.series_id
                    and existing.original_date == exception.original_date
                ):
                    logger.warning(
                        "Rejecting duplicate exception for series %s on %s (existing %s)",
                        exception.series_id,
                        exception.original_date,
                        existing.id,
                    )
                    raise ExceptionConflictError(exception.series_id, exception.original_date)
            self._records[exception.id] = exception
            self._changed()
        return exception

    def delete(self, exception_id: str) -> None:
        """Remove an exception.

        Raises:
            ExceptionNotFoundError: If the id is unknown
        """
        with self._lock:
            if self._records.pop(exception_id, None) is None:
                raise ExceptionNotFoundError(exception_id)
            self._changed()

    def get_by_id(self, exception_id: str) -> Optional[EventException]:
        with self._lock:
            return self._records.get(exception_id)

    def list_all(self) -> list[EventException]:
        with self._lock:
            return list(self._records.values())

    def find_by_series(self, series_id: str) -> list[EventException]:
        """Return the exceptions of one series ordered by original occurrence."""
        with self._lock:
            found = [e for e in self._records.values() if e.series_id == series_id]
        return sorted(found, key=lambda e: e.original_start)

    def replace_all(self, records: list[EventException]) -> None:
        """Replace the whole contents (used when loading from disk)."""
        with self._lock:
            self._records = {record.id: record for record in records}


class InMemorySeriesStore:
    """Dict-backed series store; exception lookups go to the paired exception store."""

    def __init__(
        self,
        exceptions: InMemoryExceptionStore,
        lock: Optional[threading.RLock] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._exceptions = exceptions
        self._lock = lock or threading.RLock()
        self._on_change = on_change
        self._records: dict[str, Series] = {}

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def list_all(self, calendar_id: Optional[str] = None) -> list[Series]:
        """Return series in insertion order, optionally only those of one calendar."""
        with self._lock:
            records = list(self._records.values())
        if calendar_id is None:
            return records
        return [s for s in records if s.calendar_id == calendar_id]

    def get_by_id(self, series_id: str) -> Optional[Series]:
        with self._lock:
            return self._records.get(series_id)

    def save(self, series: Series) -> Series:
        """Insert or fully replace a series."""
        with self._lock:
            self._records[series.id] = series
            self._changed()
        return series

    def delete(self, series_id: str) -> None:
        """Remove a series; its exceptions are left for the caller to delete.

        Raises:
            SeriesNotFoundError: If the id is unknown
        """
        with self._lock:
            if self._records.pop(series_id, None) is None:
                raise SeriesNotFoundError(series_id)
            self._changed()

    def find_exceptions_of(self, series_id: str) -> list[EventException]:
        return self._exceptions.find_by_series(series_id)

    def replace_all(self, records: list[Series]) -> None:
        """Replace the whole contents (used when loading from disk)."""
        with self._lock:
            self._records = {record.id: record for record in records}


class EventStore:
    """In-memory store pairing a series store with its exception store."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.exceptions = InMemoryExceptionStore(lock=self._lock, on_change=self._on_change)
        self.series = InMemorySeriesStore(
            self.exceptions, lock=self._lock, on_change=self._on_change
        )

    def _on_change(self) -> None:
        """Hook invoked after every mutation."""


class JsonEventStore(EventStore):
    """Event store persisted to a JSON file.

    The on-disk format is ``{"series": [...], "exceptions": [...]}`` with
    datetimes as ISO-8601 strings. Every mutation rewrites the file atomically.
    """

    def __init__(self, path: str | Path) -> None:
        """Create a store backed by ``path``, loading it if it exists."""
        super().__init__()
        self._path = Path(path)
        self._loading = False
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Load records from disk; unreadable files load as an empty store.

        Malformed individual records are skipped with a warning.
        """
        with self._lock:
            self._loading = True
            try:
                series, exceptions = self._read()
                self.series.replace_all(series)
                self.exceptions.replace_all(exceptions)
            finally:
                self._loading = False
            logger.debug(
                "Loaded event store %s (%d series, %d exceptions)",
                self._path,
                len(series),
                len(exceptions),
            )

    def _read(self) -> tuple[list[Series], list[EventException]]:
        if not self._path.exists():
            logger.debug("Event store file not found; starting empty: %s", self._path)
            return [], []

        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, dict):
                raise ValueError("event store JSON root must be an object")  # noqa: TRY004
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read event store %s: %s", self._path, exc)
            return [], []

        series: list[Series] = []
        for raw in data.get("series", []):
            try:
                series.append(Series.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping malformed series record in %s: %s", self._path, exc)
        exceptions: list[EventException] = []
        for raw in data.get("exceptions", []):
            try:
                exceptions.append(EventException.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping malformed exception record in %s: %s", self._path, exc)
        return series, exceptions

    def _on_change(self) -> None:
        if not self._loading:
            self._persist()

    def _persist(self) -> None:
        """Persist current records to disk atomically.

        Writes to a temporary file in the same directory then replaces the
        target.
        """
        data = {
            "series": [s.model_dump(mode="json") for s in self.series.list_all()],
            "exceptions": [e.model_dump(mode="json") for e in self.exceptions.list_all()],
        }

        dirpath = self._path.parent
        dirpath.mkdir(parents=True, exist_ok=True)
        tmp_path: Optional[Path] = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=dirpath, delete=False, encoding="utf-8"
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump(data, tf, ensure_ascii=False, indent=2)
                tf.flush()
                with contextlib.suppress(OSError):
                    os.fsync(tf.fileno())
            tmp_path.replace(self._path)
        except OSError:
            logger.exception("Failed to persist event store to %s", self._path)
            if tmp_path is not None and tmp_path.exists():
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise
