from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_CELL_RE = re.compile(r"^(?P<col>[A-Z]+)(?P<row>\d*)$")


def column_index(letters: str) -> int:
    """'A' -> 0, 'Z' -> 25, 'AA' -> 26."""
    index = 0
    for ch in letters:
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index - 1


def column_letter(index: int) -> str:
    """0 -> 'A', 26 -> 'AA'."""
    if index < 0:
        raise ValueError("column index cannot be negative")
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


@dataclass(frozen=True)
class CellRange:
    """
    Parsed A1 range. Columns are zero-based, rows one-based and inclusive.
    end_row None means open-ended ("A2:F" reads to the last row).
    """
    start_col: int
    end_col: int
    start_row: int
    end_row: Optional[int]

    @classmethod
    def parse(cls, ref: str) -> "CellRange":
        text = ref.strip().upper()
        if "!" in text:
            raise ValueError(f"range must not include a table name: {ref!r}")
        first, _, second = text.partition(":")
        m1 = _CELL_RE.match(first)
        m2 = _CELL_RE.match(second) if second else m1
        if not m1 or not m2:
            raise ValueError(f"invalid range: {ref!r}")

        start_col = column_index(m1.group("col"))
        end_col = column_index(m2.group("col"))
        start_row = int(m1.group("row")) if m1.group("row") else 1
        if second:
            end_row = int(m2.group("row")) if m2.group("row") else None
        else:
            end_row = start_row

        if end_col < start_col or (end_row is not None and end_row < start_row) or start_row < 1:
            raise ValueError(f"invalid range: {ref!r}")
        return cls(start_col=start_col, end_col=end_col, start_row=start_row, end_row=end_row)

    @property
    def width(self) -> int:
        return self.end_col - self.start_col + 1


def row_range(row_number: int, width: int, start_col: int = 0) -> str:
    """A1 range covering one whole record row, e.g. row_range(5, 6) -> 'A5:F5'."""
    return (
        f"{column_letter(start_col)}{row_number}:"
        f"{column_letter(start_col + width - 1)}{row_number}"
    )


def cell(row_number: int, col: int) -> str:
    return f"{column_letter(col)}{row_number}"
