# Overview: Service-layer operations for moving legacy flat ledgers into monthly partitions.

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable

from ..config import LedgerNames
from ..models import Sale, Transaction
from ..models.records import SALE_HEADER, TRANSACTION_HEADER
from ..tabular import TabularStore
from ..time_utils import DateParseError, parse_ledger_date, parse_ledger_datetime
from .ledger_service import read_ids
from .partition_service import PartitionKey, ensure_partition, partition_exists

"""
Migration Invariants (authoritative)

- The legacy ledgers are the unpartitioned base tables ("Sales",
  "Transactions"); they are read, never modified.
- Each row goes to the partition of its own date. A row whose date does not
  parse is skipped and counted; it never stops the batch.
- Within a partition an identifier is appended at most once: ids already in
  the partition and repeats inside the legacy table are both dropped.
  Re-running the migration therefore appends nothing.
- Partitions are migrated one after the other, not atomically. A failure
  stops the run and leaves earlier partitions migrated; a re-run completes it.
- Rows are rewritten through the record codec on the way, so dates come out
  in the written form and migrated transactions get their link column.
"""

logger = logging.getLogger(__name__)

# legacy tables have six columns (no link column on transactions)
LEGACY_RANGE = "A2:F"


class MigrationError(ValueError):
    """Raised when a migration cannot start."""


@dataclass
class LedgerMigration:
    base: str
    read: int = 0
    appended: dict[str, int] = field(default_factory=dict)
    duplicates: int = 0
    skipped: int = 0
    skipped_ids: list[str] = field(default_factory=list)

    @property
    def appended_total(self) -> int:
        return sum(self.appended.values())

    def to_dict(self) -> dict:
        return {
            "base": self.base,
            "read": self.read,
            "appended": dict(self.appended),
            "appended_total": self.appended_total,
            "duplicates": self.duplicates,
            "skipped": self.skipped,
            "skipped_ids": list(self.skipped_ids),
        }


@dataclass
class MigrationResult:
    ledgers: list[LedgerMigration] = field(default_factory=list)

    @property
    def appended_total(self) -> int:
        return sum(l.appended_total for l in self.ledgers)

    @property
    def skipped(self) -> int:
        return sum(l.skipped for l in self.ledgers)

    def to_dict(self) -> dict:
        return {
            "ledgers": [l.to_dict() for l in self.ledgers],
            "appended_total": self.appended_total,
            "skipped": self.skipped,
        }


def _sale_day(row: list):
    return parse_ledger_datetime(row[1] if len(row) > 1 else None)


def _transaction_day(row: list):
    return parse_ledger_date(row[1] if len(row) > 1 else None)


def migrate_ledger(
    store: TabularStore,
    base: str,
    header: list,
    record_type,
    row_date: Callable[[list], object],
) -> LedgerMigration:
    """Bucket one legacy table by month and append the rows each partition lacks."""
    outcome = LedgerMigration(base=base)
    if not partition_exists(store, base):
        logger.info("No legacy %s table; nothing to migrate", base)
        return outcome

    rows = store.read_range(base, LEGACY_RANGE)
    groups: dict[str, list[list]] = defaultdict(list)
    for row in rows:
        if not row or not str(row[0]).strip():
            continue
        outcome.read += 1
        try:
            when = row_date(row)
        except DateParseError as exc:
            outcome.skipped += 1
            outcome.skipped_ids.append(str(row[0]))
            logger.warning("Skipping %s row %s: %s", base, row[0], exc)
            continue
        groups[PartitionKey.for_date(base, when).name].append(row)

    for name in sorted(groups, key=lambda n: PartitionKey.parse(n)):
        ensure_partition(store, name, header)
        seen = set(read_ids(store, name))

        new_rows = []
        for row in groups[name]:
            record_id = str(row[0]).strip()
            if record_id in seen:
                outcome.duplicates += 1
                continue
            seen.add(record_id)
            new_rows.append(record_type.from_row(row).to_row())

        if new_rows:
            store.append_rows(name, new_rows)
        outcome.appended[name] = len(new_rows)
        logger.info("Migrated %d rows to %s", len(new_rows), name)

    if outcome.skipped:
        logger.warning("%d %s rows had no usable date and were skipped", outcome.skipped, base)
    return outcome


def migrate(store: TabularStore, names: LedgerNames) -> MigrationResult:
    """Partition both legacy ledgers. Safe to run again."""
    if PartitionKey.parse(names.sales) or PartitionKey.parse(names.transactions):
        raise MigrationError("base ledger names must not look like partition names")

    result = MigrationResult()
    result.ledgers.append(migrate_ledger(store, names.sales, SALE_HEADER, Sale, _sale_day))
    result.ledgers.append(
        migrate_ledger(store, names.transactions, TRANSACTION_HEADER, Transaction, _transaction_day)
    )
    logger.info(
        "Migration finished: %d rows appended, %d skipped", result.appended_total, result.skipped
    )
    return result
