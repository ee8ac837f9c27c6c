"""
Seat key model and the normalizer that produces it.

Every seat identifier entering the system goes through `normalize_seat`
exactly once, at the boundary. Past that point only `SeatKey` values are
passed around; nothing downstream inspects raw seat strings.

Accepted shapes:
  - SeatKey instances (returned unchanged)
  - {"row": 3, "column": 7} / {"row": "C", "col": 7} mappings
  - (3, 7) pairs
  - letter labels: "A1", "aa12", "B-4", "c_10", "D 2"  (A=1 ... Z=26, AA=27)
  - delimited numeric pairs: "3:7", "3-7", "3_7"
  - row/column notation: "R3C7"
  - flat 1-based indices (7, "7"), resolved with the showtime's seats_per_row
"""

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from seat_reservation.domain.errors import InvalidRequestError, InvalidSeatFormatError

_PAIR_RE = re.compile(r"^([0-9]+)\s*[:_-]\s*([0-9]+)$")
_LABEL_RE = re.compile(r"^([A-Za-z]+)\s*[-_ ]?\s*([0-9]+)$")
_ROW_COL_RE = re.compile(r"^[Rr]\s*([0-9]+)\s*[Cc]\s*([0-9]+)$")
_INDEX_RE = re.compile(r"^[0-9]+$")


@dataclass(frozen=True, order=True)
class SeatKey:
    """Canonical (row, column) identity of a seat within one showtime."""

    row: int
    column: int

    def __post_init__(self) -> None:
        if self.row < 1 or self.column < 1:
            raise InvalidSeatFormatError((self.row, self.column), "row and column must be >= 1")

    def __str__(self) -> str:
        return f"{self.row}:{self.column}"

    @property
    def label(self) -> str:
        return f"{row_label(self.row)}{self.column}"

    @classmethod
    def from_canonical(cls, value: str) -> "SeatKey":
        """Rebuild a key from its own serialized "row:column" form."""
        row, _, column = value.partition(":")
        return cls(int(row), int(column))


def row_label(row: int) -> str:
    """1 -> A, 26 -> Z, 27 -> AA."""
    label = ""
    n = row
    while n > 0:
        n, rem = divmod(n - 1, 26)
        label = chr(65 + rem) + label
    return label


def row_from_letters(letters: str) -> int:
    """A -> 1, Z -> 26, AA -> 27."""
    value = 0
    for ch in letters.upper():
        if not "A" <= ch <= "Z":
            raise InvalidSeatFormatError(letters, "row letters must be A-Z")
        value = value * 26 + (ord(ch) - 64)
    return value


def _from_index(index: int, seats_per_row: Optional[int], raw: object) -> SeatKey:
    if not seats_per_row:
        raise InvalidSeatFormatError(raw, "flat seat index needs a known seats_per_row")
    if index < 1:
        raise InvalidSeatFormatError(raw, "flat seat index must be >= 1")
    row, column = divmod(index - 1, seats_per_row)
    return SeatKey(row + 1, column + 1)


def _coordinate(value: object, raw: object, letters_ok: bool = False) -> int:
    if isinstance(value, bool):
        raise InvalidSeatFormatError(raw, "boolean is not a seat coordinate")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return int(text)
        if letters_ok and text.isascii() and text.isalpha():
            return row_from_letters(text)
    raise InvalidSeatFormatError(raw, "row and column must be positive integers")


def _from_pair(row: object, column: object, raw: object) -> SeatKey:
    r = _coordinate(row, raw, letters_ok=True)
    c = _coordinate(column, raw)
    if r < 1 or c < 1:
        raise InvalidSeatFormatError(raw, "row and column must be >= 1")
    return SeatKey(r, c)


def _from_string(raw: str, seats_per_row: Optional[int]) -> SeatKey:
    text = raw.strip()
    if not text:
        raise InvalidSeatFormatError(raw, "empty seat identifier")

    if _INDEX_RE.match(text):
        return _from_index(int(text), seats_per_row, raw)

    match = _PAIR_RE.match(text) or _ROW_COL_RE.match(text)
    if match:
        return _from_pair(int(match.group(1)), int(match.group(2)), raw)

    match = _LABEL_RE.match(text)
    if match:
        return _from_pair(row_from_letters(match.group(1)), int(match.group(2)), raw)

    raise InvalidSeatFormatError(raw)


def normalize_seat(raw: object, seats_per_row: Optional[int] = None) -> SeatKey:
    """Parse any accepted seat identifier into a SeatKey.

    Raises:
        InvalidSeatFormatError: the identifier is not one of the accepted
            shapes, or it denotes a row/column below 1.
    """
    if isinstance(raw, SeatKey):
        return raw
    if isinstance(raw, bool):
        raise InvalidSeatFormatError(raw, "boolean is not a seat identifier")
    if isinstance(raw, int):
        return _from_index(raw, seats_per_row, raw)
    if isinstance(raw, str):
        return _from_string(raw, seats_per_row)
    if isinstance(raw, Mapping):
        column = raw.get("column", raw.get("col"))
        if raw.get("row") is None or column is None:
            raise InvalidSeatFormatError(raw, "mapping needs 'row' and 'column'")
        return _from_pair(raw["row"], column, raw)
    if isinstance(raw, (tuple, list)) and len(raw) == 2:
        return _from_pair(raw[0], raw[1], raw)
    raise InvalidSeatFormatError(raw)


def normalize_seats(
    raws: Iterable[object],
    seats_per_row: Optional[int] = None,
    max_seats: Optional[int] = None,
) -> list[SeatKey]:
    """Normalize a request's seat list, preserving order.

    The list must be non-empty and name each physical seat once, whatever
    representation was used for it.
    """
    keys = [normalize_seat(raw, seats_per_row) for raw in raws]
    if not keys:
        raise InvalidRequestError("At least one seat is required")
    if max_seats is not None and len(keys) > max_seats:
        raise InvalidRequestError(f"At most {max_seats} seats per request")

    seen: set[SeatKey] = set()
    duplicates = []
    for key in keys:
        if key in seen:
            duplicates.append(str(key))
        seen.add(key)
    if duplicates:
        raise InvalidRequestError(f"Duplicate seats in request: {', '.join(duplicates)}")
    return keys
