"""
Temporary storage for CSV upload previews.

Holds each analyzed batch under a one-time token until it is committed.
Entries expire after a TTL and the cache is capped; the oldest entry goes
first when the cap is reached. Single-process, in-memory.
"""
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog

from models.csv_import import ParsedRow, PreviewSummary, UploadType
from exceptions import PreviewNotFoundError, PreviewTypeMismatchError

logger = structlog.get_logger(__name__)

DEFAULT_TTL_MINUTES = 30
DEFAULT_MAX_ENTRIES = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PreviewEntry:
    """An analyzed upload waiting for commit. Never modified after creation."""
    token: str
    upload_type: UploadType
    columns: list[str]
    rows: list[ParsedRow]
    summary: PreviewSummary
    created_at: datetime

    @property
    def error_rows(self) -> list[ParsedRow]:
        return [row for row in self.rows if row.is_error]


class PreviewCache:
    """
    Token -> PreviewEntry map.

    Token lifecycle: absent -> stored (preview) -> consumed (commit) -> absent.
    """

    def __init__(
        self,
        ttl_minutes: int = DEFAULT_TTL_MINUTES,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._ttl = timedelta(minutes=ttl_minutes)
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, PreviewEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def store(
        self,
        upload_type: UploadType,
        columns: list[str],
        rows: list[ParsedRow],
        summary: PreviewSummary,
    ) -> PreviewEntry:
        """Store an analyzed batch under a fresh token."""
        entry = PreviewEntry(
            token=str(uuid.uuid4()),
            upload_type=upload_type,
            columns=list(columns),
            rows=rows,
            summary=summary,
            created_at=self._clock(),
        )
        with self._lock:
            self._cleanup_expired()
            while len(self._entries) >= self._max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.info("csv_preview_evicted", preview_id=oldest, reason="capacity")
            self._entries[entry.token] = entry
        return entry

    def get(self, token: str) -> Optional[PreviewEntry]:
        """Look at a preview without consuming it. None if expired/not found."""
        with self._lock:
            self._cleanup_expired()
            return self._entries.get(token)

    def consume(self, token: Optional[str], upload_type: UploadType) -> PreviewEntry:
        """
        Remove and return a preview for commit.

        A type mismatch leaves the preview in place.

        Raises:
            PreviewNotFoundError: Token unknown, already consumed or expired
            PreviewTypeMismatchError: Token was issued for another upload type
        """
        with self._lock:
            self._cleanup_expired()
            entry = self._entries.get(token) if token else None
            if entry is None:
                raise PreviewNotFoundError(token)
            if entry.upload_type != upload_type:
                raise PreviewTypeMismatchError(token, entry.upload_type.value, upload_type.value)
            del self._entries[token]
            return entry

    def _cleanup_expired(self) -> None:
        """Remove all expired entries. Caller holds the lock."""
        cutoff = self._clock() - self._ttl
        expired = [token for token, entry in self._entries.items() if entry.created_at < cutoff]
        for token in expired:
            del self._entries[token]
        if expired:
            logger.info("csv_preview_evicted", count=len(expired), reason="expired")
