"""
Helpers for spreadsheet A1 notation.

Columns use bijective base-26 letters (A=1 ... Z=26, AA=27, AB=28 ...).
Rows are 1-based. A range is `Sheet!A1:B2`, `Sheet!A:J` or `Sheet!J7`.
"""

import re
from dataclasses import dataclass
from typing import Optional

_CELL_RE = re.compile(r"^([A-Za-z]*)(\d*)$")
_PLAIN_SHEET_RE = re.compile(r"^[A-Za-z0-9_]+$")


def column_letter(index: int) -> str:
    """Convert a 1-based column index to letters."""
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def column_index(letters: str) -> int:
    """Convert column letters to a 1-based index."""
    if not letters or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")
    index = 0
    for char in letters.upper():
        index = index * 26 + (ord(char) - 64)
    return index


@dataclass(frozen=True)
class CellRange:
    sheet: str
    start_column: Optional[int] = None
    start_row: Optional[int] = None
    end_column: Optional[int] = None
    end_row: Optional[int] = None


def _parse_cell(ref: str) -> tuple[Optional[int], Optional[int]]:
    match = _CELL_RE.match(ref)
    if not match or not ref:
        raise ValueError(f"Invalid cell reference: {ref!r}")
    letters, digits = match.groups()
    return (
        column_index(letters) if letters else None,
        int(digits) if digits else None,
    )


def split_range(range_name: str) -> tuple[str, str]:
    """'Events!A:J' -> ('Events', 'A:J'). A bare sheet name has no cell part."""
    sheet, sep, cells = range_name.rpartition("!")
    if not sep:
        return range_name, ""
    if len(sheet) >= 2 and sheet[0] == sheet[-1] == "'":
        sheet = sheet[1:-1].replace("''", "'")
    return sheet, cells


def parse_range(range_name: str) -> CellRange:
    sheet, cells = split_range(range_name)
    if not cells:
        return CellRange(sheet=sheet)

    start, _, end = cells.partition(":")
    start_column, start_row = _parse_cell(start)
    if end:
        end_column, end_row = _parse_cell(end)
    else:
        end_column, end_row = start_column, start_row
    return CellRange(sheet, start_column, start_row, end_column, end_row)


def sheet_name(range_name: str) -> str:
    return split_range(range_name)[0]


def quote_sheet_name(sheet: str) -> str:
    """Sheet names with spaces or punctuation must be quoted; ' doubles inside quotes."""
    if _PLAIN_SHEET_RE.match(sheet):
        return sheet
    escaped = sheet.replace("'", "''")
    return f"'{escaped}'"


def cell_address(range_name: str, row: int, column: str) -> str:
    """Address of a single cell on the same sheet as `range_name`."""
    return f"{quote_sheet_name(sheet_name(range_name))}!{column.upper()}{row}"
