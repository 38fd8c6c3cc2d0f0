"""
CSV bulk import service.

Two-stage protocol:
    1. preview: tokenize, check headers, classify every row against a
       snapshot of the catalogs, cache the result under a one-time token
    2. commit: consume the token and queue the cached rows as an ImportJob

Preview never writes to a store. Commit only queues; rows are written by
the job worker.
"""

from typing import Optional

import structlog

from config import settings
from config.catalogs import PARTNERS, WAREHOUSES
from exceptions import (
    AppError,
    CsvEmptyContentError,
    CsvMissingHeadersError,
    CsvParseError,
    ImportJobNotFoundError,
)
from models.csv_import import PreviewResponse, PreviewRowError, UploadType
from parsers.csv_parser import parse_csv
from parsers.csv_row_parser import ReferenceSnapshot, analyze_rows, summarize_rows
from parsers.csv_schemas import validate_headers
from services.csv_report_service import build_error_csv, build_template
from services.import_job_service import (
    ImportJob,
    ImportJobQueue,
    ImportJobStore,
    RowApplier,
)
from services.movement_service import get_movement_service
from services.preview_cache_service import PreviewCache
from services.product_service import get_product_service
from services.stock_service import get_stock_service

logger = structlog.get_logger(__name__)

DEFAULT_ERROR_SAMPLE = 20


class CsvImportService:
    """
    Preview/commit entry point for CSV uploads.

    Owns no global state: the preview cache and job queue are passed in.
    """

    def __init__(
        self,
        product_service,
        stock_service,
        preview_cache: PreviewCache,
        job_queue: ImportJobQueue,
        error_sample: int = DEFAULT_ERROR_SAMPLE,
        warehouses=None,
        partners=None,
    ):
        self.product_service = product_service
        self.stock_service = stock_service
        self.preview_cache = preview_cache
        self.job_queue = job_queue
        self.error_sample = error_sample
        self.warehouses = dict(warehouses if warehouses is not None else WAREHOUSES)
        self.partners = frozenset(partners if partners is not None else PARTNERS)

    # ===================
    # PREVIEW
    # ===================

    def preview(self, upload_type: UploadType, content: Optional[str]) -> PreviewResponse:
        """
        Analyze an upload without writing anything.

        Args:
            upload_type: Upload type
            content: Raw CSV text, header row first

        Returns:
            PreviewResponse with the token, the summary and the first
            `error_sample` error rows

        Raises:
            CsvEmptyContentError: Content is missing or blank
            CsvParseError: No non-blank row could be read
            CsvMissingHeadersError: Required columns are absent
            DatabaseError: Catalog lookup failed
        """
        try:
            columns, data_rows = self._read_table(upload_type, content)
        except AppError as e:
            logger.warning(
                "csv_preview_rejected",
                upload_type=upload_type.value,
                code=e.code,
            )
            raise

        snapshot = self._snapshot(upload_type, columns, data_rows)
        rows = analyze_rows(upload_type, columns, data_rows, snapshot)
        summary = summarize_rows(rows)
        entry = self.preview_cache.store(upload_type, columns, rows, summary)

        logger.info(
            "csv_preview_created",
            preview_id=entry.token,
            upload_type=upload_type.value,
            total=summary.total,
            new=summary.new_count,
            update=summary.update_count,
            errors=summary.error_count,
        )

        return PreviewResponse(
            preview_id=entry.token,
            type=upload_type,
            columns=columns,
            summary=summary,
            errors=[
                PreviewRowError(row_number=row.line_number, messages=row.messages)
                for row in entry.error_rows[: self.error_sample]
            ],
        )

    def _read_table(
        self,
        upload_type: UploadType,
        content: Optional[str],
    ) -> tuple[list[str], list[list[str]]]:
        """Split content into header columns and data rows."""
        if not content or not content.strip():
            raise CsvEmptyContentError()

        table = parse_csv(content)
        if not table:
            raise CsvParseError()

        header, *data_rows = table
        columns = [column.strip() for column in header]
        missing = validate_headers(upload_type, columns)
        if missing:
            raise CsvMissingHeadersError(missing)

        return columns, data_rows

    def _snapshot(
        self,
        upload_type: UploadType,
        columns: list[str],
        data_rows: list[list[str]],
    ) -> ReferenceSnapshot:
        """Reference data for the SKUs in this upload."""
        skus: list[str] = []
        if "sku" in columns:
            position = columns.index("sku")
            skus = [
                cells[position].strip()
                for cells in data_rows
                if position < len(cells) and cells[position].strip()
            ]

        product_skus = self.product_service.get_existing_skus(skus) if skus else set()
        stock_keys = set()
        if upload_type == UploadType.INITIAL_STOCK and skus:
            stock_keys = self.stock_service.get_existing_keys(skus)

        return ReferenceSnapshot(
            product_skus=frozenset(product_skus),
            stock_keys=frozenset(stock_keys),
            warehouses=self.warehouses,
            partners=self.partners,
        )

    # ===================
    # COMMIT
    # ===================

    def commit(self, upload_type: UploadType, preview_id: Optional[str]) -> ImportJob:
        """
        Turn a preview into a queued ImportJob.

        The preview is consumed; committing the same token twice fails.
        Rows rejected at preview go straight into the job's error list.

        Raises:
            PreviewNotFoundError: Unknown, consumed or expired token
            PreviewTypeMismatchError: Token belongs to another upload type
        """
        try:
            entry = self.preview_cache.consume(preview_id, upload_type)
        except AppError as e:
            logger.warning(
                "csv_commit_rejected",
                preview_id=preview_id,
                upload_type=upload_type.value,
                code=e.code,
            )
            raise

        job = ImportJob.from_preview(entry)
        self.job_queue.enqueue(job)

        logger.info(
            "csv_commit_accepted",
            preview_id=entry.token,
            job_id=job.id,
            upload_type=upload_type.value,
            total=job.total,
            errors=len(job.errors),
        )
        return job

    # ===================
    # JOBS & DOWNLOADS
    # ===================

    def get_job(self, job_id: str) -> ImportJob:
        """
        Raises:
            ImportJobNotFoundError: If the job is unknown (or was evicted)
        """
        job = self.job_queue.store.get(job_id)
        if job is None:
            raise ImportJobNotFoundError(job_id)
        return job

    def errors_csv(self, job_id: str) -> Optional[str]:
        """Error report for a job; None when the job has no errors."""
        return build_error_csv(self.get_job(job_id))

    def template(self, upload_type: UploadType) -> str:
        return build_template(upload_type)

    async def start(self) -> None:
        self.job_queue.start()

    async def stop(self) -> None:
        await self.job_queue.stop()


_service: Optional[CsvImportService] = None


def get_csv_import_service() -> CsvImportService:
    """Get or create the CSV import service singleton."""
    global _service
    if _service is None:
        applier = RowApplier(
            get_product_service(),
            get_stock_service(),
            get_movement_service(),
        )
        _service = CsvImportService(
            product_service=get_product_service(),
            stock_service=get_stock_service(),
            preview_cache=PreviewCache(
                ttl_minutes=settings.csv_preview_ttl_minutes,
                max_entries=settings.csv_preview_max_entries,
            ),
            job_queue=ImportJobQueue(
                applier,
                store=ImportJobStore(retention=settings.csv_job_retention),
                start_delay_seconds=settings.csv_job_start_delay_seconds,
                row_interval_seconds=settings.csv_job_row_interval_seconds,
            ),
            error_sample=settings.csv_preview_error_sample,
        )
    return _service
