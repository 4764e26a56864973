# Overview: Service-layer operations for monthly ledger partitions.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from ..tabular import TabularStore
from ..time_utils import parse_ledger_date

"""
Partition Invariants (authoritative)

- A partition is one table per (base ledger, year, month), named
  "<base>_<MM>_<YYYY>" with a zero-padded month.
- The name is a pure function of the calendar month of a date: the day,
  the time of day and how the date was rendered never change it.
- ensure_partition is idempotent: it only creates a table (with its header
  row) when the store does not list it yet.
- An unused month is valid; readers treat a missing partition as empty.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class PartitionKey:
    base: str
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"month out of range: {self.month}")

    @property
    def name(self) -> str:
        return f"{self.base}_{self.month:02d}_{self.year}"

    @classmethod
    def for_date(cls, base: str, when) -> "PartitionKey":
        day = parse_ledger_date(when)
        return cls(base=base, year=day.year, month=day.month)

    @classmethod
    def parse(cls, name: str) -> "PartitionKey | None":
        """Inverse of .name; returns None for tables that are not partitions."""
        match = re.match(r"^(?P<base>.+)_(?P<month>\d{2})_(?P<year>\d{4})$", name)
        if not match:
            return None
        month = int(match.group("month"))
        if not 1 <= month <= 12:
            return None
        return cls(base=match.group("base"), year=int(match.group("year")), month=month)

    def sibling(self, base: str) -> "PartitionKey":
        """Same month in another ledger (Sales_10_2026 -> Transactions_10_2026)."""
        return PartitionKey(base=base, year=self.year, month=self.month)


def resolve_partition_name(base: str, when) -> str:
    return PartitionKey.for_date(base, when).name


def ensure_partition(store: TabularStore, name: str, header: Sequence) -> bool:
    """
    Make sure a partition table exists. Returns True if it was created.

    Safe to call repeatedly (idempotent).
    """
    if name in store.list_tables():
        return False

    store.create_table(name, list(header))
    logger.info("Created partition %s", name)
    return True


def partition_exists(store: TabularStore, name: str) -> bool:
    return name in store.list_tables()


def list_partitions(store: TabularStore, base: str) -> list[PartitionKey]:
    """Existing partitions of one ledger, newest month first."""
    keys = []
    for name in store.list_tables():
        key = PartitionKey.parse(name)
        if key and key.base == base:
            keys.append(key)
    return sorted(keys, key=lambda k: (k.year, k.month), reverse=True)
