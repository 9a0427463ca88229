"""
Ingest and retrieval pipelines, and the FileService facade the HTTP layer
talks to.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import BinaryContentRejected, EncodingUnrecognized, RecordNotFound
from .merge import merge_files
from .models import FileRecord, MergeItem
from .normalize import decode_to_utf8, guess_encoding
from .rules import CANONICAL_ENCODING, LEGACY_ENCODINGS
from .store import Duration, ExpirySweeper, RecordStore, start_background_expiry, utc_now
from .validate import is_text, validate_total_size, validate_upload

logger = logging.getLogger(__name__)


def new_file_id() -> str:
    return uuid.uuid4().hex


class IngestPipeline:
    """normalize -> validate -> generate id -> store"""

    def __init__(
        self,
        store: RecordStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_file_id,
        encodings: Sequence[str] = LEGACY_ENCODINGS,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.encodings = tuple(encodings)

    def ingest(self, filename: str, raw: bytes) -> str:
        text, encoding = decode_to_utf8(raw, self.encodings)
        if encoding is None:
            guess = guess_encoding(raw)
            logger.warning("Rejected %s: unrecognized encoding (best guess: %s)", filename, guess)
            details = f"{filename}: unable to convert content to UTF-8"
            if guess:
                details += f" (looks like {guess})"
            raise EncodingUnrecognized(details)

        if not is_text(text):
            logger.warning("Rejected %s: binary content", filename)
            raise BinaryContentRejected(f"{filename}: file appears to be binary")

        file_id = self.id_factory()
        record = FileRecord(
            id=file_id,
            filename=filename,
            content=text,
            uploaded_at=self.clock(),
            size=len(text.encode(CANONICAL_ENCODING)),
        )
        self.store.insert(file_id, record)
        logger.info("Stored %s as %s (%s, %d bytes)", filename, file_id, encoding, record.size)
        return file_id


class RetrievalPipeline:
    def __init__(self, store: RecordStore):
        self.store = store

    def lookup(self, file_id: str) -> FileRecord:
        record, found = self.store.lookup(file_id)
        if not found:
            raise RecordNotFound(file_id)
        return record

    def retrieve(
        self, file_ids: Sequence[str], renames: Optional[Mapping[str, str]] = None
    ) -> List[MergeItem]:
        """
        Look up every id in order. The first missing id fails the whole
        batch; renames are keyed by the original filename.
        """
        renames = renames or {}
        items = []
        for file_id in file_ids:
            record = self.lookup(file_id)
            filename = renames.get(record.filename, record.filename)
            items.append(MergeItem(filename=filename, content=record.content))
        logger.debug("Retrieved %d file(s)", len(items))
        return items


class FileService:
    def __init__(
        self,
        store: RecordStore,
        max_file_size: int,
        max_total_size: int,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_file_id,
    ):
        self.store = store
        self.max_file_size = max_file_size
        self.max_total_size = max_total_size
        self.ingest_pipeline = IngestPipeline(store, clock=clock, id_factory=id_factory)
        self.retrieval_pipeline = RetrievalPipeline(store)
        self._sweeper: Optional[ExpirySweeper] = None

    def ingest(self, filename: str, raw: bytes) -> str:
        validate_upload(filename, raw, self.max_file_size)
        return self.ingest_pipeline.ingest(filename, raw)

    def ingest_many(self, files: Sequence[Tuple[str, bytes]]) -> List[str]:
        """Store a batch of uploads, or none of them."""
        validate_total_size((len(raw) for _, raw in files), self.max_total_size)

        file_ids: List[str] = []
        try:
            for filename, raw in files:
                file_ids.append(self.ingest(filename, raw))
        except Exception:
            for file_id in file_ids:
                self.store.delete(file_id)
            raise
        return file_ids

    def lookup(self, file_id: str) -> FileRecord:
        return self.retrieval_pipeline.lookup(file_id)

    def retrieve(
        self, file_ids: Sequence[str], renames: Optional[Dict[str, str]] = None
    ) -> List[MergeItem]:
        return self.retrieval_pipeline.retrieve(file_ids, renames)

    def merge(self, items: Sequence[MergeItem]) -> bytes:
        return merge_files(items)

    def start_background_expiry(self, ttl: Duration, interval: Duration) -> ExpirySweeper:
        self.stop_background_expiry()
        self._sweeper = start_background_expiry(self.store, ttl, interval)
        return self._sweeper

    def stop_background_expiry(self) -> None:
        if self._sweeper is not None:
            self._sweeper.stop()
            self._sweeper = None
