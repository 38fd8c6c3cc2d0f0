"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, CamelSchema
from models.product import (
    AbcGrade,
    XyzGrade,
    ProductPayload,
    validate_product_payload,
)
from models.inventory import (
    MovementType,
    InitialStockPayload,
    MovementPayload,
)
from models.csv_import import (
    UploadType,
    RowAction,
    JobStatus,
    ImportPayload,
    ParsedRow,
    PreviewSummary,
    UploadRequest,
    PreviewRowError,
    PreviewResponse,
    JobStatusResponse,
    JobEnvelope,
)

__all__ = [
    # Base
    "BaseSchema",
    "CamelSchema",

    # Product
    "AbcGrade",
    "XyzGrade",
    "ProductPayload",
    "validate_product_payload",

    # Inventory
    "MovementType",
    "InitialStockPayload",
    "MovementPayload",

    # CSV import
    "UploadType",
    "RowAction",
    "JobStatus",
    "ImportPayload",
    "ParsedRow",
    "PreviewSummary",
    "UploadRequest",
    "PreviewRowError",
    "PreviewResponse",
    "JobStatusResponse",
    "JobEnvelope",
]
