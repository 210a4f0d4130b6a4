"""
Tests for spots_remaining updates, including concurrent-writer scenarios.
"""

import pytest

from booking_ledger.core.errors import ConcurrentUpdateError, RowNotFound, WriteError
from booking_ledger.services.capacity_service import (
    decrement_capacity,
    decrement_capacity_best_effort,
    parse_spots,
)
from booking_ledger.services.interfaces.memory_backend import InMemoryGridBackend
from booking_ledger.services.ledger import build_ledger
from conftest import EVENT_HEADER, EVENT_ROWS, SHEET_ID, spots_remaining


class RacingBackend(InMemoryGridBackend):
    """Another writer decrements the counter just before our compare step."""

    def __init__(self, races: int):
        super().__init__()
        self.races = races

    async def get_values(self, spreadsheet_id, range_name):
        if range_name == "Events!J2" and self.races > 0:
            self.races -= 1
            row = self._grid(spreadsheet_id, "Events")[1]
            row[9] = str(int(row[9]) - 1)
        return await super().get_values(spreadsheet_id, range_name)


class ReadOnlyBackend(InMemoryGridBackend):
    async def update_values(self, spreadsheet_id, range_name, values):
        raise WriteError(f"Failed to update {range_name}")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("5", 5), (0, 0), ("abc", 0), (None, 0), ("", 0), (" 7 ", 7), ("3.0", 3), ("-2", -2),
        ("inf", 0), ("Infinity", 0), ("-inf", 0), ("1e400", 0), ("nan", 0),
    ],
)
def test_parse_spots(value, expected):
    assert parse_spots(value) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("current, expected", [(0, 0), ("abc", 0), (None, 0), ("3", 2), ("inf", 0), ("1e400", 0)])
async def test_decrement_never_goes_negative(backend, ledger, current, expected):
    """Non-numeric and missing counters count as zero; the floor is zero."""
    row = ["EVT-X", "Floor test", "", "", "", "", "", "", "10"]
    if current is not None:
        row.append(current)
    backend.seed(SHEET_ID, "Events", [EVENT_HEADER, row])

    new_count = await decrement_capacity(ledger, "EVT-X")

    assert new_count == expected
    assert spots_remaining(backend, "EVT-X") == expected


@pytest.mark.asyncio
async def test_decrement_writes_back_to_same_row(backend, ledger):
    assert await decrement_capacity(ledger, "NBRH001") == 4
    assert spots_remaining(backend, "NBRH001") == 4
    # Other events untouched
    assert spots_remaining(backend, "NBRH002") == "0"
    assert spots_remaining(backend, "NBRH003") == "3"


@pytest.mark.asyncio
async def test_decrement_unknown_event_raises(ledger):
    with pytest.raises(RowNotFound):
        await decrement_capacity(ledger, "NBRH404")


@pytest.mark.asyncio
async def test_decrement_retries_after_concurrent_write(settings):
    """
    Both writers start from 5. The other one lands first (5 -> 4);
    our compare fails, we re-read 4 and write 3. No decrement is lost.
    """
    backend = RacingBackend(races=1)
    backend.seed(SHEET_ID, "Events", [EVENT_HEADER, *EVENT_ROWS])
    ledger = build_ledger(backend, settings)

    new_count = await decrement_capacity(ledger, "NBRH001")

    assert new_count == 3
    assert spots_remaining(backend, "NBRH001") == 3


@pytest.mark.asyncio
async def test_decrement_gives_up_after_max_attempts(settings):
    backend = RacingBackend(races=10)
    backend.seed(SHEET_ID, "Events", [EVENT_HEADER, *EVENT_ROWS])
    ledger = build_ledger(backend, settings)

    with pytest.raises(ConcurrentUpdateError) as exc:
        await decrement_capacity(ledger, "NBRH001", max_attempts=3)
    assert exc.value.status_code == 409
    assert backend.races == 7


@pytest.mark.asyncio
async def test_best_effort_swallows_write_error(settings):
    backend = ReadOnlyBackend()
    backend.seed(SHEET_ID, "Events", [EVENT_HEADER, *EVENT_ROWS])
    ledger = build_ledger(backend, settings)

    assert await decrement_capacity_best_effort(ledger, "NBRH001") is None
    assert spots_remaining(backend, "NBRH001") == "5"


@pytest.mark.asyncio
async def test_best_effort_swallows_missing_event(ledger):
    assert await decrement_capacity_best_effort(ledger, "NBRH404") is None


@pytest.mark.asyncio
async def test_best_effort_returns_new_count(ledger):
    assert await decrement_capacity_best_effort(ledger, "NBRH003") == 2


@pytest.mark.asyncio
async def test_best_effort_handles_overflowing_counter(backend, ledger):
    backend.seed(SHEET_ID, "Events", [EVENT_HEADER, ["EVT-INF", "Typo", "", "", "", "", "", "", "10", "Infinity"]])

    assert await decrement_capacity_best_effort(ledger, "EVT-INF") == 0
    assert spots_remaining(backend, "EVT-INF") == 0
