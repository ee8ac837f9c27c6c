"""
Tests for seat key normalization.
"""

import pytest

from seat_reservation.domain import SeatKey, normalize_seat, normalize_seats
from seat_reservation.domain.errors import InvalidRequestError, InvalidSeatFormatError
from seat_reservation.domain.seat_key import row_from_letters, row_label


@pytest.mark.parametrize(
    "raw",
    [
        "C7", "c7", "C-7", "c_7", "C 7", "3:7", "3-7", "3_7", " 3:7 ", "R3C7", "r3c7",
        {"row": 3, "column": 7}, {"row": "C", "col": 7}, {"row": "3", "column": "7"},
        (3, 7), [3, 7], SeatKey(3, 7),
    ],
)
def test_equivalent_forms_normalize_to_same_key(raw):
    assert normalize_seat(raw) == SeatKey(3, 7)


def test_flat_index_uses_seats_per_row():
    assert normalize_seat(1, seats_per_row=10) == SeatKey(1, 1)
    assert normalize_seat(10, seats_per_row=10) == SeatKey(1, 10)
    assert normalize_seat("11", seats_per_row=10) == SeatKey(2, 1)


def test_flat_index_without_layout_is_rejected():
    with pytest.raises(InvalidSeatFormatError):
        normalize_seat(5)


def test_multi_letter_rows():
    assert normalize_seat("AA12") == SeatKey(27, 12)
    assert row_label(27) == "AA"
    assert row_from_letters("z") == 26


def test_canonical_and_label_forms():
    key = SeatKey(2, 5)
    assert str(key) == "2:5"
    assert key.label == "B5"
    assert SeatKey.from_canonical(str(key)) == key
    assert normalize_seat(key.label) == key


@pytest.mark.parametrize(
    "raw",
    ["", "   ", "??", "A", "7A", "0:3", "3:0", "A0", "R0C1", "1:2:3", True, None, 3.5, {"row": 1}, (1, 2, 3), "A١"],
)
def test_unparseable_seats_raise(raw):
    with pytest.raises(InvalidSeatFormatError):
        normalize_seat(raw, seats_per_row=10)


def test_keys_are_ordered_row_then_column():
    keys = [SeatKey(2, 1), SeatKey(1, 3), SeatKey(1, 2)]
    assert sorted(keys) == [SeatKey(1, 2), SeatKey(1, 3), SeatKey(2, 1)]


def test_normalize_seats_preserves_order():
    assert normalize_seats(["B1", "1:2"], seats_per_row=4) == [SeatKey(2, 1), SeatKey(1, 2)]


def test_normalize_seats_rejects_empty_list():
    with pytest.raises(InvalidRequestError):
        normalize_seats([])


def test_normalize_seats_rejects_duplicates_across_forms():
    with pytest.raises(InvalidRequestError):
        normalize_seats(["A1", "1:1"])


def test_normalize_seats_enforces_limit():
    with pytest.raises(InvalidRequestError):
        normalize_seats(["A1", "A2", "A3"], max_seats=2)
