"""
Business logic services.

Each service handles one domain area.
"""

from services.product_service import ProductService, get_product_service
from services.stock_service import StockService, get_stock_service
from services.movement_service import MovementService, get_movement_service
from services.preview_cache_service import PreviewCache, PreviewEntry
from services.import_job_service import (
    ImportJob,
    ImportJobStore,
    ImportJobQueue,
    RowApplier,
)
from services.csv_import_service import CsvImportService, get_csv_import_service

__all__ = [
    "ProductService",
    "get_product_service",
    "StockService",
    "get_stock_service",
    "MovementService",
    "get_movement_service",
    "PreviewCache",
    "PreviewEntry",
    "ImportJob",
    "ImportJobStore",
    "ImportJobQueue",
    "RowApplier",
    "CsvImportService",
    "get_csv_import_service",
]
