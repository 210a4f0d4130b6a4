"""
Grid backend interface.
Allows swapping the spreadsheet transport without changing the row store.
"""

from abc import ABC, abstractmethod
from typing import Any


class GridBackend(ABC):
    """
    Interface for sheet-like value stores addressed in A1 notation.

    Implementations:
    - GoogleSheetsBackend: Google Sheets v4 values API
    - InMemoryGridBackend: process-local grids for tests and local runs

    Values are returned the way the Sheets API returns formatted values:
    every cell as a string, trailing empty cells and rows omitted.
    """

    @abstractmethod
    async def get_values(self, spreadsheet_id: str, range_name: str) -> list[list[str]]:
        """
        Read a range.

        Args:
            spreadsheet_id: Document holding the sheet
            range_name: A1 range, e.g. "Events!A:J" or "Events!J7"

        Returns:
            Rows of cell strings (possibly ragged, possibly empty)
        """
        pass

    @abstractmethod
    async def update_values(self, spreadsheet_id: str, range_name: str, values: list[list[Any]]):
        """
        Overwrite the block of cells starting at the top-left of `range_name`.

        Raises:
            WriteError: if the store rejects the write
        """
        pass

    @abstractmethod
    async def append_values(self, spreadsheet_id: str, range_name: str, values: list[list[Any]]):
        """
        Append rows after the last non-empty row of the sheet in `range_name`.

        Raises:
            WriteError: if the store rejects the write
        """
        pass
