"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    BadRequestError,
    DatabaseError,

    # CSV upload
    UnsupportedUploadTypeError,
    CsvEmptyContentError,
    CsvParseError,
    CsvMissingHeadersError,

    # Commit protocol
    PreviewNotFoundError,
    PreviewTypeMismatchError,

    # Import jobs
    ImportJobNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "BadRequestError",
    "DatabaseError",

    # CSV upload
    "UnsupportedUploadTypeError",
    "CsvEmptyContentError",
    "CsvParseError",
    "CsvMissingHeadersError",

    # Commit protocol
    "PreviewNotFoundError",
    "PreviewTypeMismatchError",

    # Import jobs
    "ImportJobNotFoundError",
]
