"""
Tests for A1 column letters and range parsing.
"""

import pytest

from booking_ledger.utils.a1_notation import (
    cell_address,
    column_index,
    column_letter,
    parse_range,
    sheet_name,
)


@pytest.mark.parametrize(
    "index, letters",
    [(1, "A"), (10, "J"), (13, "M"), (26, "Z"), (27, "AA"), (28, "AB"), (52, "AZ"), (702, "ZZ"), (703, "AAA")],
)
def test_column_letter(index, letters):
    assert column_letter(index) == letters
    assert column_index(letters) == index


def test_column_index_is_case_insensitive():
    assert column_index("ab") == 28


@pytest.mark.parametrize("bad", [0, -3])
def test_column_letter_rejects_non_positive(bad):
    with pytest.raises(ValueError):
        column_letter(bad)


def test_parse_whole_column_range():
    cells = parse_range("Events!A:J")
    assert cells.sheet == "Events"
    assert (cells.start_column, cells.end_column) == (1, 10)
    assert cells.start_row is None and cells.end_row is None


def test_parse_single_cell():
    cells = parse_range("Events!J7")
    assert (cells.start_column, cells.start_row) == (10, 7)
    assert (cells.end_column, cells.end_row) == (10, 7)


def test_parse_bounded_block_and_quoted_sheet():
    cells = parse_range("'Booking Log'!A2:P10")
    assert cells.sheet == "Booking Log"
    assert (cells.start_column, cells.start_row, cells.end_column, cells.end_row) == (1, 2, 16, 10)


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        parse_range("Events!7J")


def test_cell_address_uses_range_sheet():
    assert sheet_name("Sessions!A:AV") == "Sessions"
    assert cell_address("Sessions!A:AV", 12, "m") == "Sessions!M12"


@pytest.mark.parametrize(
    "range_name, address",
    [
        ("'Booking Log'!A:P", "'Booking Log'!J7"),
        ("'Owner''s Events'!A:J", "'Owner''s Events'!J7"),
        ("'Events'!A:J", "Events!J7"),
    ],
)
def test_cell_address_quotes_sheet_names(range_name, address):
    assert cell_address(range_name, 7, "J") == address


def test_quoted_address_parses_back_to_sheet():
    cells = parse_range(cell_address("'Owner''s Events'!A:J", 7, "J"))
    assert cells.sheet == "Owner's Events"
    assert (cells.start_column, cells.start_row) == (10, 7)
