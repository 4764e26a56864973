# Overview: Contract for the key-range addressed table store that holds every ledger.

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

"""
Tabular store contract

- A store holds named tables; row 1 of every table is its header row.
- Ranges use A1 notation without the table prefix ("A2:F", "B7", "A2:A").
- Every call is a separate round-trip and may fail on its own with
  StoreError. A failed call has no effect; nothing spans calls.
- Rows read back are lists of cell values with trailing empty cells and
  trailing empty rows dropped.
"""

Row = Sequence[Any]


class StoreError(RuntimeError):
    """Remote store call failed (network, quota, missing table)."""

    def __init__(self, message: str, *, table: str | None = None):
        super().__init__(message)
        self.table = table


@runtime_checkable
class TabularStore(Protocol):
    def list_tables(self) -> set[str]:
        ...

    def create_table(self, name: str, header: Row) -> None:
        ...

    def read_range(self, table: str, range_spec: str) -> list[list[Any]]:
        ...

    def append_rows(self, table: str, rows: Sequence[Row]) -> None:
        ...

    def overwrite_range(self, table: str, range_spec: str, rows: Sequence[Row]) -> None:
        ...

    def delete_row(self, table: str, index: int) -> None:
        """Delete the row at a zero-based index (0 is the header row)."""
        ...
