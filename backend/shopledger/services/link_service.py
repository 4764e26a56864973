"""
Link Service - keeps a sale and its income transaction on the same date

A sale and the income transaction derived from it are separate rows in
separate ledgers. The transaction names its sale in linked_sale_id (rows
written before that column existed carry it only as "Đơn: <saleId>" in the
note, which the record codec reads back into the same field).

Editing the date of either record rewrites the other:
- sale timestamp -> transaction date = date part of the new timestamp
- transaction date -> sale timestamp = new date + the sale's old time of day

Both records keep their row and partition, and only their date cell is
rewritten. The two writes are not atomic:
if the second one fails, the first stays, a warning is logged and the
result reports the divergence instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time
from typing import Iterable, Optional

from ..config import LedgerNames
from ..models import Sale, Transaction
from ..tabular import StoreError, TabularStore
from ..time_utils import parse_ledger_date, parse_ledger_datetime
from ..validation import ConflictError, NotFoundError
from .ledger_service import save_cell
from .partition_service import PartitionKey
from .sales_service import find_sale
from .transactions_service import find_by_sale, find_transaction

logger = logging.getLogger(__name__)


@dataclass
class LinkResult:
    sale: Optional[Sale]
    transaction: Optional[Transaction]
    # set when the paired record exists but could not be rewritten
    diverged: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict() if self.sale else None,
            "transaction": self.transaction.to_dict() if self.transaction else None,
            "diverged": self.diverged,
            "error": self.error,
        }


def _sibling(partition: Optional[str], base: str) -> Optional[str]:
    key = PartitionKey.parse(partition) if partition else None
    return key.sibling(base).name if key else None


def update_sale_timestamp(
    store: TabularStore,
    names: LedgerNames,
    sale_id: str,
    new_datetime,
    *,
    hints: Iterable = (),
) -> LinkResult:
    """
    Set a sale's timestamp, then move its linked transaction to the same day.

    hints name the partitions to search for the sale (dates or partition
    names, usually the month being viewed).
    """
    new_dt = parse_ledger_datetime(new_datetime)
    sale = find_sale(store, names.sales, sale_id, hints)
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found")

    old_dt = sale.sold_at
    updated_sale = sale.with_changes(sold_at=new_dt)
    save_cell(store, updated_sale, Sale.DATE_COLUMN)

    transaction = find_by_sale(
        store,
        names.transactions,
        sale.id,
        [_sibling(sale.partition, names.transactions), old_dt, new_dt],
    )
    if transaction is None:
        return LinkResult(sale=updated_sale, transaction=None)

    if transaction.on == new_dt.date():
        return LinkResult(sale=updated_sale, transaction=transaction)

    updated_tx = transaction.with_changes(on=new_dt.date())
    try:
        save_cell(store, updated_tx, Transaction.DATE_COLUMN)
    except (StoreError, ConflictError) as exc:
        logger.warning(
            "Sale %s moved to %s but linked transaction %s kept %s: %s",
            sale.id, new_dt, transaction.id, transaction.on, exc,
        )
        return LinkResult(sale=updated_sale, transaction=transaction, diverged=True, error=str(exc))

    return LinkResult(sale=updated_sale, transaction=updated_tx)


def update_transaction_date(
    store: TabularStore,
    names: LedgerNames,
    transaction_id: str,
    new_date,
    *,
    hints: Iterable = (),
) -> LinkResult:
    """
    Set a transaction's date; if it was derived from a sale, move the sale to
    the same day keeping its time of day (midnight if it had none).
    """
    new_day = parse_ledger_date(new_date)
    transaction = find_transaction(store, names.transactions, transaction_id, hints)
    if transaction is None:
        raise NotFoundError(f"Transaction {transaction_id} not found")

    old_day = transaction.on
    updated_tx = transaction.with_changes(on=new_day)
    save_cell(store, updated_tx, Transaction.DATE_COLUMN)

    sale_id = transaction.linked_sale_id
    if not sale_id:
        return LinkResult(sale=None, transaction=updated_tx)

    sale = find_sale(
        store,
        names.sales,
        sale_id,
        [_sibling(transaction.partition, names.sales), old_day, new_day],
    )
    if sale is None:
        logger.warning("Transaction %s links sale %s, which was not found", transaction.id, sale_id)
        return LinkResult(sale=None, transaction=updated_tx)

    time_of_day = sale.sold_at.time() if sale.sold_at else time()
    updated_sale = sale.with_changes(sold_at=datetime.combine(new_day, time_of_day))
    try:
        save_cell(store, updated_sale, Sale.DATE_COLUMN)
    except (StoreError, ConflictError) as exc:
        logger.warning(
            "Transaction %s moved to %s but linked sale %s kept %s: %s",
            transaction.id, new_day, sale.id, sale.sold_at, exc,
        )
        return LinkResult(sale=sale, transaction=updated_tx, diverged=True, error=str(exc))

    return LinkResult(sale=updated_sale, transaction=updated_tx)
