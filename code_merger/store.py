"""
Volatile record storage with time-based expiry.

Responsibilities:
- keep uploaded file records keyed by their id
- evict records older than a TTL, on demand (sweep) or periodically
  (ExpirySweeper)

Nothing here survives a restart.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Protocol, Tuple, Union

from .models import FileRecord

logger = logging.getLogger(__name__)

Duration = Union[timedelta, float, int]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_timedelta(value: Duration) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)


class RecordStore(Protocol):
    def insert(self, file_id: str, record: FileRecord) -> None: ...

    def lookup(self, file_id: str) -> Tuple[Optional[FileRecord], bool]: ...

    def delete(self, file_id: str) -> None: ...

    def sweep(self, max_age: Duration, now: Optional[datetime] = None) -> int: ...


class MemoryRecordStore:
    """
    Plain dict guarded by a single lock.

    Records are immutable, so a reader either sees a whole record or none.
    Insert overwrites on id collision (last writer wins) and deleting an
    absent id is a no-op.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._records: Dict[str, FileRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def insert(self, file_id: str, record: FileRecord) -> None:
        with self._lock:
            self._records[file_id] = record

    def lookup(self, file_id: str) -> Tuple[Optional[FileRecord], bool]:
        with self._lock:
            record = self._records.get(file_id)
        return record, record is not None

    def delete(self, file_id: str) -> None:
        with self._lock:
            self._records.pop(file_id, None)

    def sweep(self, max_age: Duration, now: Optional[datetime] = None) -> int:
        """Remove every record whose age is strictly greater than max_age."""
        max_age = _as_timedelta(max_age)
        if now is None:
            now = self._clock()

        with self._lock:
            expired = [
                file_id
                for file_id, record in self._records.items()
                if now - record.uploaded_at > max_age
            ]
            for file_id in expired:
                del self._records[file_id]

        if expired:
            logger.info("Swept %d expired file(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, file_id: str) -> bool:
        _, found = self.lookup(file_id)
        return found


class ExpirySweeper:
    """
    Background thread calling store.sweep(ttl) every interval until stopped.
    """

    def __init__(self, store: RecordStore, ttl: Duration, interval: Duration):
        self.store = store
        self.ttl = _as_timedelta(ttl)
        self.interval = _as_timedelta(interval).total_seconds()
        if self.interval <= 0:
            raise ValueError("sweep interval must be positive")

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="record-expiry", daemon=True
        )
        self._thread.start()
        logger.info(
            "Started record expiry (ttl=%ss, interval=%ss)",
            self.ttl.total_seconds(),
            self.interval,
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Stopped record expiry")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.store.sweep(self.ttl)
            except Exception:
                logger.exception("Error during expiry sweep")


def start_background_expiry(
    store: RecordStore, ttl: Duration, interval: Duration
) -> ExpirySweeper:
    sweeper = ExpirySweeper(store, ttl, interval)
    sweeper.start()
    return sweeper
