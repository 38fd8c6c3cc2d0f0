"""
Background processing of committed CSV imports.

A single asyncio worker drains a FIFO queue, so exactly one job is ever in
`processing`. Rows are applied one at a time, in order, with a short pause
between rows so API requests (status polls included) keep being served.

A row that fails to apply is recorded in the job's error list and the job
carries on. Failed rows are not retried.
"""

import asyncio
import threading
import uuid
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import structlog

from models.csv_import import (
    JobStatus,
    JobStatusResponse,
    ParsedRow,
    PreviewSummary,
    UploadType,
)
from services.preview_cache_service import PreviewEntry

logger = structlog.get_logger(__name__)

DEFAULT_START_DELAY_SECONDS = 0.01
DEFAULT_ROW_INTERVAL_SECONDS = 0.015
DEFAULT_RETENTION = 500

UNKNOWN_APPLY_ERROR = "Unknown error while applying the row"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ImportJob:
    """
    A committed batch and its progress.

    errors starts with the rows rejected at preview time and grows with
    rows that fail when applied.
    """
    id: str
    upload_type: UploadType
    columns: list[str]
    rows: list[ParsedRow]
    summary: PreviewSummary
    errors: list[ParsedRow] = field(default_factory=list)
    status: JobStatus = JobStatus.PENDING
    processed: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_preview(cls, entry: PreviewEntry) -> "ImportJob":
        return cls(
            id=str(uuid.uuid4()),
            upload_type=entry.upload_type,
            columns=list(entry.columns),
            rows=entry.rows,
            summary=entry.summary,
            errors=entry.error_rows,
        )

    @property
    def total(self) -> int:
        return len(self.rows)

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def to_response(self) -> JobStatusResponse:
        return JobStatusResponse(
            id=self.id,
            type=self.upload_type,
            status=self.status,
            total=self.total,
            processed=self.processed,
            summary=self.summary,
            error_count=len(self.errors),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class ImportJobStore:
    """
    Job id -> ImportJob.

    Keeps at most `retention` jobs; when full, the oldest finished jobs are
    dropped. Pending and processing jobs are never dropped.
    """

    def __init__(self, retention: int = DEFAULT_RETENTION):
        self._retention = retention
        self._jobs: dict[str, ImportJob] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def add(self, job: ImportJob) -> None:
        with self._lock:
            self._jobs[job.id] = job
            overflow = len(self._jobs) - self._retention
            if overflow > 0:
                finished = [j.id for j in self._jobs.values() if j.status.is_terminal]
                for job_id in finished[:overflow]:
                    del self._jobs[job_id]
                    logger.debug("csv_job_evicted", job_id=job_id)

    def get(self, job_id: str) -> Optional[ImportJob]:
        with self._lock:
            return self._jobs.get(job_id)


class RowApplier:
    """Writes one accepted row to the store for its upload type."""

    def __init__(self, product_service, stock_service, movement_service):
        self._handlers: dict[UploadType, Callable[[Any], Any]] = {
            UploadType.PRODUCTS: product_service.upsert,
            UploadType.INITIAL_STOCK: stock_service.upsert,
            UploadType.MOVEMENTS: movement_service.append,
        }

    def apply(self, upload_type: UploadType, row: ParsedRow) -> None:
        if row.is_error or row.payload is None:
            return
        if row.payload.kind != upload_type.value:
            raise ValueError(
                f"{row.payload.kind} payload cannot be applied to a {upload_type.value} import"
            )
        self._handlers[upload_type](row.payload)


class ImportJobQueue:
    """
    FIFO of committed jobs with a single worker task.

    The worker starts on first enqueue (or explicitly via start()) inside
    the running event loop and lives until stop().
    """

    def __init__(
        self,
        applier: RowApplier,
        store: Optional[ImportJobStore] = None,
        start_delay_seconds: float = DEFAULT_START_DELAY_SECONDS,
        row_interval_seconds: float = DEFAULT_ROW_INTERVAL_SECONDS,
    ):
        self._applier = applier
        self.store = store or ImportJobStore()
        self._start_delay = start_delay_seconds
        self._row_interval = row_interval_seconds
        self._queue: asyncio.Queue[ImportJob] = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._active_job_id: Optional[str] = None

    @property
    def active_job_id(self) -> Optional[str]:
        return self._active_job_id

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker if it is not running. Needs a running event loop."""
        if self.running:
            return
        self._worker = asyncio.get_running_loop().create_task(
            self._run(), name="csv-import-worker"
        )
        logger.info("csv_job_worker_started")

    async def stop(self) -> None:
        """Cancel the worker. Queued jobs stay pending."""
        if self._worker is None:
            return
        self._worker.cancel()
        with suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        logger.info("csv_job_worker_stopped")

    def enqueue(self, job: ImportJob) -> None:
        """Register a pending job and queue it behind any earlier jobs."""
        self.store.add(job)
        self.start()
        self._queue.put_nowait(job)
        logger.info(
            "csv_job_queued",
            job_id=job.id,
            upload_type=job.upload_type.value,
            total=job.total,
            queued=self._queue.qsize(),
        )

    async def join(self) -> None:
        """Wait until every queued job has reached a terminal state."""
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            self._active_job_id = job.id
            try:
                await self._process(job)
            finally:
                self._active_job_id = None
                self._queue.task_done()

    async def _process(self, job: ImportJob) -> None:
        await asyncio.sleep(self._start_delay)
        job.status = JobStatus.PROCESSING
        job.touch()
        logger.info("csv_job_started", job_id=job.id, upload_type=job.upload_type.value, total=job.total)

        try:
            for position, row in enumerate(job.rows):
                await self._apply_row(job, row)
                job.processed = position + 1
                job.touch()
                await asyncio.sleep(self._row_interval)
        except Exception as e:
            job.status = JobStatus.FAILED
            job.touch()
            logger.error(
                "csv_job_failed",
                job_id=job.id,
                processed=job.processed,
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        job.status = JobStatus.COMPLETED
        job.touch()
        logger.info(
            "csv_job_completed",
            job_id=job.id,
            upload_type=job.upload_type.value,
            total=job.total,
            errors=len(job.errors),
        )

    async def _apply_row(self, job: ImportJob, row: ParsedRow) -> None:
        # Rows rejected at preview were copied into job.errors at commit
        if row.is_error or row.payload is None:
            return
        try:
            await asyncio.to_thread(self._applier.apply, job.upload_type, row)
        except Exception as e:
            message = getattr(e, "message", None) or str(e) or UNKNOWN_APPLY_ERROR
            job.errors.append(row.as_failure(message))
            logger.warning(
                "csv_row_apply_failed",
                job_id=job.id,
                line_number=row.line_number,
                error=message,
                error_type=type(e).__name__,
            )
