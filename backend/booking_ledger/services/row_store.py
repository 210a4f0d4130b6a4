"""
Row store adapter over a sheet-like grid.

Row 0 of every range is the header; columns are addressed by header name
and written back by A1 column letter. Lookups are first-match linear scans
with exact string equality (no trimming, no case folding).
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from booking_ledger.core.errors import ColumnNotFound, ConfigurationError
from booking_ledger.core.logging import get_logger
from booking_ledger.services.interfaces.grid_backend import GridBackend
from booking_ledger.utils.a1_notation import cell_address, column_letter

logger = get_logger(__name__)


def cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def resolve_column(header: Sequence[str], column_name: str, sheet_range: str) -> int:
    try:
        return list(header).index(column_name)
    except ValueError:
        raise ColumnNotFound(column_name, sheet_range) from None


@dataclass
class RowMatch:
    row_number: int  # 1-based sheet row
    values: list[str]
    header: list[str]
    sheet_range: str = ""

    def get(self, column: str) -> Optional[str]:
        """Cell value by header name; None when the column or cell is absent."""
        if column not in self.header:
            return None
        index = self.header.index(column)
        return self.values[index] if index < len(self.values) else None

    def column_letter(self, column: str) -> str:
        return column_letter(resolve_column(self.header, column, self.sheet_range) + 1)


def find_in_grid(
    grid: list[list[str]],
    sheet_range: str,
    column_name: str,
    target_value: str,
) -> Optional[RowMatch]:
    """Scan an already-read grid. Shared by single reads and batched joins."""
    if not grid:
        return None
    header = list(grid[0])
    index = resolve_column(header, column_name, sheet_range)
    for offset, row in enumerate(grid[1:], start=2):
        if index < len(row) and row[index] == target_value:
            return RowMatch(row_number=offset, values=list(row), header=header, sheet_range=sheet_range)
    return None


class RowStore:
    """One spreadsheet document, addressed by A1 ranges."""

    def __init__(self, backend: GridBackend, spreadsheet_id: str):
        self.backend = backend
        self.spreadsheet_id = spreadsheet_id

    async def read_grid(self, sheet_range: str) -> list[list[str]]:
        return await self.backend.get_values(self.spreadsheet_id, sheet_range)

    async def find_row_by_column_value(
        self,
        sheet_range: str,
        column_name: str,
        target_value: str,
    ) -> Optional[RowMatch]:
        grid = await self.read_grid(sheet_range)
        return find_in_grid(grid, sheet_range, column_name, target_value)

    async def find_first(
        self,
        sheet_range: str,
        column_name: str,
        candidates: Sequence[str],
    ) -> Optional[RowMatch]:
        """Try each candidate key in order against a single read of the grid."""
        grid = await self.read_grid(sheet_range)
        for candidate in candidates:
            match = find_in_grid(grid, sheet_range, column_name, candidate)
            if match:
                return match
        return None

    async def read_cell(self, sheet_range: str, row_number: int, column: str) -> Optional[str]:
        values = await self.backend.get_values(
            self.spreadsheet_id, cell_address(sheet_range, row_number, column)
        )
        if values and values[0]:
            return values[0][0]
        return None

    async def update_cell(self, sheet_range: str, row_number: int, column: str, value: Any):
        address = cell_address(sheet_range, row_number, column)
        await self.backend.update_values(self.spreadsheet_id, address, [[value]])
        logger.debug("cell_updated", address=address)

    async def compare_and_set_cell(
        self,
        sheet_range: str,
        row_number: int,
        column: str,
        expected: Any,
        value: Any,
    ) -> bool:
        """
        Write `value` only if the cell still holds `expected`.

        Sheets has no conditional write, so this re-reads the single cell
        immediately before writing. The remaining window is one round trip.
        """
        current = await self.read_cell(sheet_range, row_number, column)
        if cell_text(current) != cell_text(expected):
            logger.info(
                "cell_compare_failed",
                address=cell_address(sheet_range, row_number, column),
                expected=cell_text(expected),
                actual=cell_text(current),
            )
            return False
        await self.update_cell(sheet_range, row_number, column, value)
        return True

    async def append_row(self, sheet_range: str, row_values: list[Any]):
        await self.backend.append_values(self.spreadsheet_id, sheet_range, [row_values])

    async def verify_header(self, sheet_range: str, columns: Sequence[str]):
        grid = await self.backend.get_values(self.spreadsheet_id, sheet_range)
        header = list(grid[0]) if grid else []
        for column in columns:
            if column not in header:
                raise ColumnNotFound(column, sheet_range)
        if header[: len(columns)] != list(columns):
            raise ConfigurationError(
                f"Header of {sheet_range} must start with: {', '.join(columns)}"
            )
