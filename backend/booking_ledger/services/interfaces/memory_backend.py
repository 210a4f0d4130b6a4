"""
In-memory grid backend.
Mirrors the Sheets values API closely enough for tests and local runs.
"""

from typing import Any, Optional

from booking_ledger.services.interfaces.grid_backend import GridBackend
from booking_ledger.utils.a1_notation import parse_range


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def _trim(row: list[str]) -> list[str]:
    end = len(row)
    while end and row[end - 1] == "":
        end -= 1
    return row[:end]


class InMemoryGridBackend(GridBackend):
    """
    Grids keyed by (spreadsheet_id, sheet name).

    Use when:
    - Running tests without Google credentials
    - Local development (ROW_STORE_BACKEND=memory)
    """

    def __init__(self):
        self._sheets: dict[tuple[str, str], list[list[Any]]] = {}

    def seed(self, spreadsheet_id: str, sheet: str, rows: list[list[Any]]):
        """Replace a sheet's contents, header row included."""
        self._sheets[(spreadsheet_id, sheet)] = [list(row) for row in rows]

    def rows(self, spreadsheet_id: str, sheet: str) -> list[list[Any]]:
        """Raw stored rows, for assertions."""
        return self._sheets.get((spreadsheet_id, sheet), [])

    def _grid(self, spreadsheet_id: str, sheet: str) -> list[list[Any]]:
        return self._sheets.setdefault((spreadsheet_id, sheet), [])

    async def get_values(self, spreadsheet_id: str, range_name: str) -> list[list[str]]:
        cells = parse_range(range_name)
        grid = self._grid(spreadsheet_id, cells.sheet)

        first_row = (cells.start_row or 1) - 1
        last_row = cells.end_row or len(grid)
        first_col = (cells.start_column or 1) - 1
        last_col: Optional[int] = cells.end_column

        values = [
            _trim([_cell_text(v) for v in row[first_col:last_col]])
            for row in grid[first_row:last_row]
        ]
        while values and not values[-1]:
            values.pop()
        return values

    async def update_values(self, spreadsheet_id: str, range_name: str, values: list[list[Any]]):
        cells = parse_range(range_name)
        grid = self._grid(spreadsheet_id, cells.sheet)
        top = (cells.start_row or 1) - 1
        left = (cells.start_column or 1) - 1

        for offset, new_row in enumerate(values):
            while len(grid) <= top + offset:
                grid.append([])
            row = grid[top + offset]
            needed = left + len(new_row)
            if len(row) < needed:
                row.extend([""] * (needed - len(row)))
            row[left:needed] = new_row

    async def append_values(self, spreadsheet_id: str, range_name: str, values: list[list[Any]]):
        cells = parse_range(range_name)
        grid = self._grid(spreadsheet_id, cells.sheet)
        while grid and not _trim([_cell_text(v) for v in grid[-1]]):
            grid.pop()
        grid.extend(list(row) for row in values)
