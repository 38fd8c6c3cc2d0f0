"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.csv_import import router as csv_import_router

__all__ = [
    "csv_import_router",
]
