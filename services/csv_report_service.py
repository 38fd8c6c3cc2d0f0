"""
CSV rendering for downloads: upload templates and job error reports.
"""

import re
from datetime import date
from typing import Iterable, Optional, Sequence

from models.csv_import import UploadType
from parsers.csv_schemas import get_schema

_NEEDS_QUOTES = re.compile(r'[",\r\n]')

ERROR_REPORT_COLUMNS = ["rowNumber", "messages"]
MESSAGE_SEPARATOR = "; "


def escape_csv_value(value: Optional[str]) -> str:
    """Quote a cell if it holds a comma, quote or line break."""
    text = "" if value is None else str(value)
    if _NEEDS_QUOTES.search(text):
        return '"' + text.replace('"', '""') + '"'
    return text


def stringify_csv(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """
    Render a header and rows as CSV text.

    Lines are joined with '\\n' and there is no trailing newline. With no
    rows, only the header line is returned.
    """
    lines = [",".join(escape_csv_value(header) for header in headers)]
    lines.extend(",".join(escape_csv_value(cell) for cell in row) for row in rows)
    return "\n".join(lines)


def build_template(upload_type: UploadType, today: Optional[date] = None) -> str:
    """
    Header row plus one sample row for an upload type.

    The movements sample is dated today.
    """
    schema = get_schema(upload_type)
    columns = list(schema.columns)
    sample = dict(schema.sample_row)
    if "occurredAt" in sample and not sample["occurredAt"]:
        sample["occurredAt"] = (today or date.today()).isoformat()

    return stringify_csv(columns, [[sample.get(column, "") for column in columns]])


def build_error_csv(job) -> Optional[str]:
    """
    Error report of a job: one line per failed row.

    Columns are rowNumber, messages, then the job's upload columns with the
    row's original cells.

    Returns:
        CSV text, or None when the job has no errors
    """
    if not job.errors:
        return None

    headers = ERROR_REPORT_COLUMNS + list(job.columns)
    rows = [
        [str(row.line_number), MESSAGE_SEPARATOR.join(row.messages)]
        + [row.raw.get(column, "") for column in job.columns]
        for row in job.errors
    ]
    return stringify_csv(headers, rows)
