"""
Sales Ledger Service - monthly partitions of completed sales

A Sale row is written once by checkout (or manual entry) into the partition
of its sale date, edited in place afterwards and deleted explicitly. Totals
are never recomputed on edit: total and profit are fixed when the sale is
recorded from its lines.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional

from ..models import Sale
from ..models.records import SALE_HEADER
from ..sale_details import parse_details, render_details, render_fragment
from ..tabular import TabularStore
from ..time_utils import now as local_now, parse_ledger_datetime
from ..validation import NotFoundError, ValidationError, require_text
from .identifier_service import new_record_id
from .ledger_service import LedgerPartition, append_record, load_partition, read_ids, search_partitions
from .partition_service import PartitionKey, ensure_partition

logger = logging.getLogger(__name__)


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def load_sales(store: TabularStore, base: str, when: date | datetime) -> LedgerPartition[Sale]:
    return load_partition(store, base, when, Sale)


def record_sale(
    store: TabularStore,
    base: str,
    *,
    details: str,
    total: int,
    profit: int,
    note: str = "",
    sold_at: datetime | None = None,
    id_prefix: str = "DH",
) -> Sale:
    """Append a Sale row to the partition of sold_at with an id free in that partition."""
    sold_at = sold_at or local_now()
    if not details:
        raise ValidationError("details is required")
    if total < 0:
        raise ValidationError("total cannot be negative")

    name = PartitionKey.for_date(base, sold_at).name
    ensure_partition(store, name, SALE_HEADER)
    taken = read_ids(store, name)

    sale = Sale(
        id=new_record_id(id_prefix, set(taken)),
        sold_at=sold_at,
        details=details,
        total=total,
        profit=profit,
        note=(note or "").strip(),
    )
    append_record(store, base, SALE_HEADER, sale, sold_at, existing_ids=taken)
    logger.info("Recorded sale %s in %s (total=%d)", sale.id, sale.partition, sale.total)
    return sale


def create_manual_sale(
    store: TabularStore,
    base: str,
    catalog,
    *,
    details: str,
    sold_at: datetime | None = None,
    note: str = "",
    id_prefix: str = "DH",
) -> Sale:
    """
    Record a sale typed in by hand ("Tea x2, Cake @15000 x1").

    Each fragment must name a catalog product; its cost and (unless
    overridden with @price) list price give the totals.
    """
    fragments = parse_details(require_text(details, "details"))
    if not fragments:
        raise ValidationError("details is required")

    total = 0
    profit = 0
    rendered = []
    unknown = []
    for fragment in fragments:
        product = catalog.find_by_name(fragment.name)
        if product is None:
            unknown.append(fragment.name)
            continue
        price = product.price if fragment.price is None else fragment.price
        total += price * fragment.quantity
        profit += (price - product.cost) * fragment.quantity
        rendered.append(render_fragment(product.name, fragment.quantity, price, product.price))

    if unknown:
        raise SaleError("Unknown products in sale details", details={"names": unknown})

    return record_sale(
        store,
        base,
        details=render_details(rendered),
        total=total,
        profit=profit,
        note=note,
        sold_at=sold_at,
        id_prefix=id_prefix,
    )


def update_sale(
    partition: LedgerPartition[Sale],
    sale_id: str,
    *,
    note: str | None = None,
    sold_at=None,
) -> Sale:
    """
    Edit a sale's note and/or timestamp in place.

    A new timestamp in another month does not move the row; it stays in the
    partition it was loaded from.
    """
    sale = partition.get(sale_id)
    changes = {}
    if note is not None:
        changes["note"] = str(note).strip()
    if sold_at is not None:
        changes["sold_at"] = parse_ledger_datetime(sold_at)
    if not changes:
        return sale
    return partition.save(sale.with_changes(**changes))


def delete_sale(partition: LedgerPartition[Sale], sale_id: str) -> Sale:
    sale = partition.get(sale_id)
    partition.remove(sale)
    return sale


def find_sale(store: TabularStore, base: str, sale_id: str, hints: Iterable) -> Optional[Sale]:
    """Look a sale up by id in the partitions named by hints (dates or partition names)."""
    return search_partitions(store, base, Sale, hints, lambda s: s.id == sale_id)


def get_sale(store: TabularStore, base: str, sale_id: str, hints: Iterable) -> Sale:
    sale = find_sale(store, base, sale_id, hints)
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found")
    return sale

