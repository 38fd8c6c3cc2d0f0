"""
CSV bulk import models.

Covers the analyzed row, the preview summary and the request/response
payloads of the /api/csv routes.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Optional, Union

from pydantic import BaseModel, Field

from models.base import CamelSchema
from models.inventory import InitialStockPayload, MovementPayload
from models.product import ProductPayload


class UploadType(str, Enum):
    """Kind of CSV upload; selects the schema, classifier and applier."""
    PRODUCTS = "products"
    INITIAL_STOCK = "initial_stock"
    MOVEMENTS = "movements"


class RowAction(str, Enum):
    """What committing a row will do."""
    CREATE = "create"
    UPDATE = "update"
    ERROR = "error"


class JobStatus(str, Enum):
    """Import job lifecycle: pending -> processing -> completed | failed."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Tagged by `kind`, which always equals the UploadType value of the row.
ImportPayload = Annotated[
    Union[ProductPayload, InitialStockPayload, MovementPayload],
    Field(discriminator="kind"),
]


class ParsedRow(BaseModel):
    """
    One analyzed data row.

    messages is non-empty iff action is ERROR; payload is set iff it is not.
    raw always keeps the original cells for the error report.
    """

    index: int = Field(..., ge=0, description="0-based position among data rows")
    line_number: int = Field(..., ge=2, description="1-based line, header is line 1")
    action: RowAction
    raw: dict[str, str]
    messages: list[str] = Field(default_factory=list)
    payload: Optional[ImportPayload] = None

    @property
    def is_error(self) -> bool:
        return self.action == RowAction.ERROR

    def as_failure(self, message: str) -> "ParsedRow":
        """Copy of this row turned into an error carrying a single message."""
        return self.model_copy(update={
            "action": RowAction.ERROR,
            "messages": [message],
            "payload": None,
        })


class PreviewSummary(CamelSchema):
    """Row counts of a preview; total == new_count + update_count + error_count."""

    total: int = 0
    new_count: int = 0
    update_count: int = 0
    error_count: int = 0


# ===================
# API PAYLOADS
# ===================

class UploadRequest(CamelSchema):
    """
    Body of POST /api/csv/upload.

    stage=commit needs preview_id; any other stage is a preview and needs content.
    """

    stage: str = "preview"
    content: Optional[str] = None
    preview_id: Optional[str] = None


class PreviewRowError(CamelSchema):
    """Validation failures of one row, as shown in the preview."""

    row_number: int
    messages: list[str]


class PreviewResponse(CamelSchema):
    """Result of the preview stage."""

    preview_id: str
    type: UploadType
    columns: list[str]
    summary: PreviewSummary
    errors: list[PreviewRowError]


class JobStatusResponse(CamelSchema):
    """Public view of an import job."""

    id: str
    type: UploadType
    status: JobStatus
    total: int
    processed: int
    summary: PreviewSummary
    error_count: int
    created_at: datetime
    updated_at: datetime


class JobEnvelope(CamelSchema):
    """Wrapper used by the commit and job status endpoints."""

    job: JobStatusResponse
