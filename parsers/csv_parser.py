"""
CSV tokenizer for dashboard uploads.

Uploads arrive as raw text pasted or read in the browser, so the tokenizer
works on a string rather than a file. It never raises; it returns the rows
it could read.
"""

from typing import Iterable


def parse_csv(text: str) -> list[list[str]]:
    """
    Split CSV text into rows of trimmed cells.

    Rules:
        - '"' toggles quoting; '""' inside quotes is a literal quote
        - ',' outside quotes ends a cell
        - '\\n', '\\r' or '\\r\\n' outside quotes ends a row
        - anything else (commas and line breaks included, when quoted) is cell text
        - a trailing row without a line break is kept
        - blank lines (a single empty cell) are dropped; delimiter-only rows are kept

    Args:
        text: Raw CSV content

    Returns:
        List of rows, each a list of trimmed cell strings
    """
    rows: list[list[str]] = []
    row: list[str] = []
    cell: list[str] = []
    in_quotes = False

    i = 0
    length = len(text)
    while i < length:
        char = text[i]

        if char == '"':
            if in_quotes and i + 1 < length and text[i + 1] == '"':
                cell.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            row.append("".join(cell))
            cell = []
        elif char in "\r\n" and not in_quotes:
            if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            row.append("".join(cell))
            rows.append(row)
            row = []
            cell = []
        else:
            cell.append(char)

        i += 1

    if row or cell:
        row.append("".join(cell))
        rows.append(row)

    trimmed = ([value.strip() for value in r] for r in rows)
    return [r for r in trimmed if len(r) > 1 or r[0]]


def rows_to_records(columns: list[str], cells: Iterable[str]) -> dict[str, str]:
    """
    Map one data row onto the header columns.

    Short rows are padded with empty strings; extra cells are ignored.
    """
    values = list(cells)
    return {
        column: values[position] if position < len(values) else ""
        for position, column in enumerate(columns)
    }
