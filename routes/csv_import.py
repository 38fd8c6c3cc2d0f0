"""
CSV bulk import API routes.

POST /api/csv/upload?type=...          preview or commit an upload
GET  /api/csv/jobs/{job_id}            job progress
GET  /api/csv/jobs/{job_id}/errors     error report (CSV, 204 when empty)
GET  /api/csv/template?type=...        blank template with a sample row

Error responses use the standard error envelope.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from exceptions import AppError
from models.csv_import import JobEnvelope, UploadRequest
from parsers.csv_schemas import resolve_upload_type
from services.csv_import_service import CsvImportService, get_csv_import_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/csv", tags=["CSV Import"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def csv_attachment(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ===================
# ROUTES
# ===================

@router.post("/upload")
async def upload_csv(
    body: Optional[UploadRequest] = None,
    type: Optional[str] = Query(None, description="products, initial_stock or movements"),
    service: CsvImportService = Depends(get_csv_import_service),
):
    """
    Preview or commit a CSV upload.

    stage=preview (default, or any stage other than commit): analyze `content`
    and return a previewId with the row summary and the first error rows.
    Nothing is written.

    stage=commit: queue the rows of `previewId` as an import job.
    """
    try:
        upload_type = resolve_upload_type(type)
        request = body or UploadRequest()

        if request.stage == "commit":
            job = service.commit(upload_type, request.preview_id)
            return JobEnvelope(job=job.to_response())

        return service.preview(upload_type, request.content)

    except Exception as e:
        return handle_error(e)


@router.get("/jobs/{job_id}", response_model=JobEnvelope)
async def get_job(
    job_id: str,
    service: CsvImportService = Depends(get_csv_import_service),
):
    """Get the progress of an import job."""
    try:
        return JobEnvelope(job=service.get_job(job_id).to_response())
    except Exception as e:
        return handle_error(e)


@router.get("/jobs/{job_id}/errors")
async def download_job_errors(
    job_id: str,
    service: CsvImportService = Depends(get_csv_import_service),
):
    """
    Download the failed rows of a job as CSV.

    Returns 204 when the job has no errors.
    """
    try:
        job = service.get_job(job_id)
        content = service.errors_csv(job_id)
        if content is None:
            return Response(status_code=204)
        return csv_attachment(content, f"{job.upload_type.value}-errors-{job.id}.csv")
    except Exception as e:
        return handle_error(e)


@router.get("/template")
async def download_template(
    type: Optional[str] = Query(None, description="products, initial_stock or movements"),
    service: CsvImportService = Depends(get_csv_import_service),
):
    """Download the CSV template of an upload type."""
    try:
        upload_type = resolve_upload_type(type)
        return csv_attachment(service.template(upload_type), f"{upload_type.value}-template.csv")
    except Exception as e:
        return handle_error(e)
