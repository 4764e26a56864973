# Overview: Service-layer operations for the cash-flow transactions ledger.

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from ..models import Transaction
from ..models.records import DIRECTIONS, INCOME, TRANSACTION_HEADER, sale_note
from ..tabular import TabularStore
from ..time_utils import in_period, now as local_now, parse_ledger_date
from ..validation import ValidationError, require_text
from .identifier_service import new_record_id
from .ledger_service import LedgerPartition, append_record, load_partition, read_ids, search_partitions
from .partition_service import PartitionKey, ensure_partition

"""
Transactions Invariants (authoritative)

- direction is "income" or "expense"; amount is > 0; description is required.
- Sale-derived transactions are always income, carry linked_sale_id and
  keep the "Đơn: <saleId>" note so older readers still find the sale.
- Manual transactions have no link.
"""


def _validate(direction: str, description, amount: int) -> str:
    if direction not in DIRECTIONS:
        raise ValidationError(f"direction must be one of {', '.join(DIRECTIONS)}")
    description = require_text(description, "description")
    if amount is None or amount <= 0:
        raise ValidationError("amount must be greater than zero")
    return description


def load_transactions(store: TabularStore, base: str, when: date | datetime) -> LedgerPartition[Transaction]:
    return load_partition(store, base, when, Transaction)


def add_transaction(
    store: TabularStore,
    base: str,
    *,
    direction: str,
    description: str,
    amount: int,
    note: str = "",
    on: date | None = None,
    linked_sale_id: str | None = None,
    id_prefix: str = "GD",
) -> Transaction:
    description = _validate(direction, description, amount)
    on = parse_ledger_date(on) if on is not None else local_now().date()

    name = PartitionKey.for_date(base, on).name
    ensure_partition(store, name, TRANSACTION_HEADER)
    taken = read_ids(store, name)

    transaction = Transaction(
        id=new_record_id(id_prefix, set(taken)),
        on=on,
        direction=direction,
        description=description,
        amount=amount,
        note=(note or "").strip(),
        linked_sale_id=linked_sale_id,
    )
    return append_record(store, base, TRANSACTION_HEADER, transaction, on, existing_ids=taken)


def add_sale_income(
    store: TabularStore,
    base: str,
    *,
    sale_id: str,
    description: str,
    amount: int,
    on: date,
    id_prefix: str = "GD",
) -> Transaction:
    """Income entry derived from a sale, linked both ways (column and note)."""
    return add_transaction(
        store,
        base,
        direction=INCOME,
        description=description,
        amount=amount,
        note=sale_note(sale_id),
        on=on,
        linked_sale_id=sale_id,
        id_prefix=id_prefix,
    )


def update_transaction(
    partition: LedgerPartition[Transaction],
    transaction_id: str,
    *,
    description=None,
    amount: int | None = None,
    note=None,
    on=None,
) -> Transaction:
    transaction = partition.get(transaction_id)
    changes = {}
    if description is not None:
        changes["description"] = description
    if amount is not None:
        changes["amount"] = amount
    if note is not None:
        changes["note"] = str(note).strip()
    if on is not None:
        changes["on"] = parse_ledger_date(on)
    if not changes:
        return transaction

    updated = transaction.with_changes(**changes)
    updated.description = _validate(updated.direction, updated.description, updated.amount)
    return partition.save(updated)


def delete_transaction(partition: LedgerPartition[Transaction], transaction_id: str) -> Transaction:
    transaction = partition.get(transaction_id)
    partition.remove(transaction)
    return transaction


def find_by_sale(
    store: TabularStore,
    base: str,
    sale_id: str,
    hints: Iterable,
) -> Optional[Transaction]:
    """Find the transaction linked to a sale, trying the partitions named by hints."""
    return search_partitions(store, base, Transaction, hints, lambda t: t.linked_sale_id == sale_id)


def find_transaction(store: TabularStore, base: str, transaction_id: str, hints: Iterable) -> Optional[Transaction]:
    return search_partitions(store, base, Transaction, hints, lambda t: t.id == transaction_id)


def summarize(transactions: Iterable[Transaction]) -> dict:
    income = 0
    expense = 0
    for t in transactions:
        if t.direction == INCOME:
            income += t.amount
        else:
            expense += t.amount
    return {"income": income, "expense": expense, "balance": income - expense}


def filter_by_period(transactions: Iterable[Transaction], period: str, today: date | None = None) -> list[Transaction]:
    today = today or local_now().date()
    return [t for t in transactions if in_period(t.on, period, today)]
