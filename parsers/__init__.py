"""
CSV upload parsers: tokenizer, column schemas and row analysis.
"""

from parsers.csv_parser import parse_csv, rows_to_records
from parsers.csv_schemas import (
    SCHEMAS,
    UploadSchema,
    resolve_upload_type,
    validate_headers,
)
from parsers.csv_row_parser import (
    ReferenceSnapshot,
    analyze_row,
    analyze_rows,
    summarize_rows,
)

__all__ = [
    "parse_csv",
    "rows_to_records",
    "SCHEMAS",
    "UploadSchema",
    "resolve_upload_type",
    "validate_headers",
    "ReferenceSnapshot",
    "analyze_row",
    "analyze_rows",
    "summarize_rows",
]
