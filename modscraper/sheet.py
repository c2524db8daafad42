"""
Spreadsheet cells -> rows.

A sheet is handled as a flat mapping of cell address ("C12") to value,
the same shape spreadsheet libraries expose when dumping a worksheet.
Rows come back indexed by their sheet row number, so index 0 (and any
row without cells) is None.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from modscraper.errors import ValidationError


# Keys starting with this are sheet metadata, not cell addresses
METADATA_PREFIX = "!"

# How many leading row slots must stay below the data column count
HEADER_SCAN_ROWS = 6

_ADDRESS_RE = re.compile(r"^([A-Z]+)(\d+)$")

RawRow = Dict[str, Any]


def column_index(column: str) -> int:
    """
    Spreadsheet column letters -> 1-based index (A=1, Z=26, AA=27).
    """
    index = 0
    for char in column:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


def extract_rows(cells: Mapping[str, Any]) -> List[Optional[RawRow]]:
    """
    Group address-keyed cells into rows of {column letters: value}.
    """
    rows: List[Optional[RawRow]] = []
    for address, value in cells.items():
        if address.startswith(METADATA_PREFIX):
            continue
        match = _ADDRESS_RE.match(address.upper())
        if not match:
            raise ValidationError(f"not a cell address: {address!r}")
        column, row_number = match.group(1), int(match.group(2))

        if row_number >= len(rows):
            rows.extend([None] * (row_number + 1 - len(rows)))
        if rows[row_number] is None:
            rows[row_number] = {}
        rows[row_number][column] = value

    # Columns in sheet order, whatever order the cells arrived in
    return [
        None if row is None else {col: row[col] for col in sorted(row, key=column_index)}
        for row in rows
    ]


def modal_column_count(rows: List[Optional[RawRow]]) -> int:
    """
    Most frequent number of populated columns among existing rows.
    Ties go to the count seen first.
    """
    counts = Counter(len(row) for row in rows if row is not None)
    if not counts:
        raise ValidationError("sheet has no rows")
    return counts.most_common(1)[0][0]


def select_data_rows(rows: List[Optional[RawRow]]) -> List[RawRow]:
    """
    Keep the rows that look like table rows (header included).

    A table row has exactly the modal number of columns; titles above the
    table and footers below it have fewer. If one of the first few rows
    already reaches that count the guess is unreliable, so give up instead.
    """
    data_length = modal_column_count(rows)

    for row in rows[:HEADER_SCAN_ROWS]:
        if row is None:
            continue
        if len(row) >= data_length:
            raise ValidationError(f"row has exceeded normal range, found {len(row)}")

    return [row for row in rows if row is not None and len(row) == data_length]


def cells_from_worksheet(worksheet: Any) -> Dict[str, Any]:
    """
    Flatten an openpyxl worksheet into {address: value}, skipping empty cells.
    """
    cells: Dict[str, Any] = {}
    for row in worksheet.iter_rows():
        for cell in row:
            if cell.value is None:
                continue
            cells[cell.coordinate] = cell.value
    return cells
