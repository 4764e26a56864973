# Overview: Partition repository shared by the sales and transactions ledgers.

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Generic, Iterable, Iterator, Optional, Protocol, Sequence, TypeVar

from ..tabular import TabularStore, cell, column_letter, row_range
from ..validation import ConflictError, NotFoundError
from .partition_service import PartitionKey, ensure_partition, partition_exists

"""
Ledger Repository Invariants (authoritative)

- A partition is loaded wholesale; each record remembers the partition it
  was read from and its 1-based position among the data rows.
- save/remove address a record by (partition, position) and never move it:
  a record whose date is edited into another month stays where it is.
- Before writing, the identifier cell at the stored position is re-read.
  If it no longer holds the record's id (another writer inserted or deleted
  rows since the load) ConflictError is raised and nothing is written.
- After remove, positions of later records in the same loaded partition
  are shifted locally, mirroring the store's row shift.
"""

logger = logging.getLogger(__name__)


class LedgerRecord(Protocol):
    id: str
    partition: Optional[str]
    position: Optional[int]
    WIDTH: int

    def to_row(self) -> list: ...


R = TypeVar("R", bound=LedgerRecord)


def _last_column(width: int) -> str:
    return column_letter(width - 1)


def read_ids(store: TabularStore, name: str) -> list[str]:
    """Identifier column of a partition, header excluded (missing partition -> [])."""
    if not partition_exists(store, name):
        return []
    return [str(row[0]).strip() if row else "" for row in store.read_range(name, "A2:A")]


class LedgerPartition(Generic[R]):
    """
    In-memory view of one partition, returned by load_partition and used to
    write records back. Replaces module-level "currently loaded" arrays.
    """

    def __init__(self, store: TabularStore, name: str, record_type, records: list[R], exists: bool):
        self.store = store
        self.name = name
        self.record_type = record_type
        self.records = records
        self.exists = exists

    def __iter__(self) -> Iterator[R]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def find(self, record_id: str) -> Optional[R]:
        return next((r for r in self.records if r.id == record_id), None)

    def get(self, record_id: str) -> R:
        record = self.find(record_id)
        if record is None:
            raise NotFoundError(f"{record_id} not found in {self.name}")
        return record

    def save(self, record: R) -> R:
        save_record(self.store, record)
        self._replace(record)
        return record

    def remove(self, record: R) -> None:
        remove_record(self.store, record)
        if record.partition != self.name:
            return
        self.records = [r for r in self.records if r.id != record.id or r.position != record.position]
        for other in self.records:
            if other.position is not None and other.position > record.position:
                other.position -= 1

    def reload(self) -> "LedgerPartition[R]":
        return load_partition_by_name(self.store, self.name, self.record_type)

    def _replace(self, record: R) -> None:
        if record.partition != self.name:
            return
        for i, existing in enumerate(self.records):
            if existing.position == record.position:
                self.records[i] = record
                return


def load_partition_by_name(store: TabularStore, name: str, record_type) -> LedgerPartition:
    if not partition_exists(store, name):
        return LedgerPartition(store, name, record_type, [], exists=False)

    rows = store.read_range(name, f"A2:{_last_column(record_type.WIDTH)}")
    records = []
    for index, row in enumerate(rows):
        if not row or not str(row[0]).strip():
            continue
        records.append(record_type.from_row(row, partition=name, position=index + 1))
    return LedgerPartition(store, name, record_type, records, exists=True)


def load_partition(store: TabularStore, base: str, when: date | datetime, record_type) -> LedgerPartition:
    """Load the partition of `base` holding the month of `when`; a missing month is empty."""
    return load_partition_by_name(store, PartitionKey.for_date(base, when).name, record_type)


def _check_position(store: TabularStore, record: LedgerRecord) -> int:
    if not record.partition or not record.position:
        raise NotFoundError(f"{record.id} has no stored position; load it from its partition first")

    row_number = record.position + 1
    current = store.read_range(record.partition, f"A{row_number}")
    current_id = str(current[0][0]).strip() if current and current[0] else ""
    if current_id != record.id:
        raise ConflictError(
            f"Row {row_number} of {record.partition} no longer holds {record.id}; reload and retry"
        )
    return row_number


def save_record(store: TabularStore, record: LedgerRecord) -> None:
    """Overwrite the record's row in place, in the partition it was loaded from."""
    row_number = _check_position(store, record)
    store.overwrite_range(record.partition, row_range(row_number, record.WIDTH), [record.to_row()])


def save_cell(store: TabularStore, record: LedgerRecord, column: int) -> None:
    """Overwrite a single cell of the record's row; the other cells keep their stored text."""
    row_number = _check_position(store, record)
    store.overwrite_range(record.partition, cell(row_number, column), [[record.to_row()[column]]])


def remove_record(store: TabularStore, record: LedgerRecord) -> None:
    _check_position(store, record)
    # zero-based index: header is 0, first data row (position 1) is 1
    store.delete_row(record.partition, record.position)
    logger.info("Deleted %s from %s row %d", record.id, record.partition, record.position + 1)


def append_record(
    store: TabularStore,
    base: str,
    header: Sequence,
    record: R,
    when: date | datetime,
    existing_ids: Sequence[str] | None = None,
) -> R:
    """
    Resolve + ensure the partition for `when`, then append the record.

    The returned record carries its partition and position. existing_ids,
    when given, must be the partition's id column as read just before.
    """
    name = PartitionKey.for_date(base, when).name
    ensure_partition(store, name, header)
    if existing_ids is None:
        existing_ids = read_ids(store, name)

    store.append_rows(name, [record.to_row()])
    record.partition = name
    record.position = len(existing_ids) + 1
    return record


def _hint_names(base: str, hints: Iterable) -> Iterator[str]:
    seen = set()
    for hint in hints:
        if hint is None:
            continue
        name = hint if isinstance(hint, str) else PartitionKey.for_date(base, hint).name
        if name not in seen:
            seen.add(name)
            yield name


def search_partitions(
    store: TabularStore,
    base: str,
    record_type,
    hints: Iterable,
    match: Callable[[R], bool],
) -> Optional[R]:
    """
    First record satisfying match in the partitions named by hints.

    hints are dates, datetimes or partition names, tried in order; each
    partition is read at most once and missing partitions are skipped.
    """
    for name in _hint_names(base, hints):
        partition = load_partition_by_name(store, name, record_type)
        found = next((r for r in partition if match(r)), None)
        if found is not None:
            return found
    return None
