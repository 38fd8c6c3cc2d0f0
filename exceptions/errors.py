"""
Custom exception classes for the application.

Every error carries a stable code, a human-readable message, an HTTP status
and optional details. Routes turn them into the standard error envelope.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PREVIEW_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class BadRequestError(AppError):
    """Request rejected before any work was done (400)."""

    def __init__(
        self,
        message: str,
        code: str = "BAD_REQUEST",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CSV UPLOAD ERRORS
# ===================

class UnsupportedUploadTypeError(BadRequestError):
    """Upload type query parameter missing or unknown."""

    def __init__(self, provided: Optional[str], valid: list[str]):
        super().__init__(
            code="CSV_UNSUPPORTED_TYPE",
            message=f"Unsupported CSV type. Expected one of: {', '.join(valid)}",
            details={"provided": provided, "valid": valid}
        )


class CsvEmptyContentError(BadRequestError):
    """Uploaded CSV body is empty."""

    def __init__(self):
        super().__init__(
            code="CSV_EMPTY_CONTENT",
            message="CSV content to upload is empty"
        )


class CsvParseError(BadRequestError):
    """No usable rows could be read from the upload."""

    def __init__(self, message: str = "No valid CSV data found"):
        super().__init__(
            code="CSV_PARSE_ERROR",
            message=message
        )


class CsvMissingHeadersError(BadRequestError):
    """Required columns are absent from the header row."""

    def __init__(self, missing: list[str]):
        super().__init__(
            code="CSV_MISSING_HEADERS",
            message="CSV header is missing required columns",
            details={
                "missing": [f"{column} is required" for column in missing],
                "columns": missing,
            }
        )


# ===================
# COMMIT PROTOCOL ERRORS
# ===================

class PreviewNotFoundError(BadRequestError):
    """Preview token unknown, already committed, or expired."""

    def __init__(self, preview_id: Optional[str]):
        super().__init__(
            code="PREVIEW_NOT_FOUND",
            message="Invalid previewId",
            details={"preview_id": preview_id}
        )


class PreviewTypeMismatchError(BadRequestError):
    """Preview token was issued for a different upload type."""

    def __init__(self, preview_id: str, expected: str, requested: str):
        super().__init__(
            code="PREVIEW_TYPE_MISMATCH",
            message="Requested type does not match the preview type",
            details={
                "preview_id": preview_id,
                "preview_type": expected,
                "requested_type": requested,
            }
        )


# ===================
# IMPORT JOB ERRORS
# ===================

class ImportJobNotFoundError(NotFoundError):
    """Import job not found."""

    def __init__(self, job_id: str):
        super().__init__(
            resource="Import job",
            identifier=job_id,
            code="IMPORT_JOB_NOT_FOUND"
        )
