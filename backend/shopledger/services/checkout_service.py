"""
Checkout Service - commits a cart as Sale + stock decrements + income Transaction

WHY: The three writes land in three separate tables of a remote store with
no transaction spanning them. Checkout therefore runs as a small saga:

1. Validate (non-empty cart, stock still available) - nothing written yet.
2. Append the Sale row. From here on the sale is persisted and is never
   rolled back.
3. Decrement stock per line, each step retried on store failures.
4. Append the linked income Transaction, retried; before each attempt the
   partition is checked for a transaction already linked to the sale so a
   retry never books the income twice.
5. Clear the cart.

If step 3 or 4 still fails after retries, CheckoutIncompleteError carries a
CheckoutReport naming what was done and what is pending. The cart is left
as it was; resume_checkout(report) finishes only the pending steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..config import LedgerNames
from ..models import Cart, CartLine, InsufficientStockError, Sale, Transaction
from ..tabular import StoreError, TabularStore
from ..time_utils import now as local_now
from ..validation import ConflictError, NotFoundError
from .concurrency import DEFAULT_ATTEMPTS, DEFAULT_BACKOFF, run_with_retry
from .products_service import Catalog, adjust_stock, load_catalog
from .sales_service import record_sale
from .transactions_service import add_sale_income, find_by_sale

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Raised for checkout operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class CheckoutIncompleteError(CheckoutError):
    """The sale was persisted but a later step could not be completed."""
    def __init__(self, message: str, report: "CheckoutReport"):
        super().__init__(message, details=report.to_dict())
        self.report = report


@dataclass
class CheckoutReport:
    sale: Sale
    lines: list[CartLine]
    stock_done: list[str] = field(default_factory=list)
    transaction: Optional[Transaction] = None
    last_error: Optional[str] = None

    @property
    def stock_pending(self) -> list[CartLine]:
        return [l for l in self.lines if l.code not in self.stock_done]

    @property
    def complete(self) -> bool:
        return not self.stock_pending and self.transaction is not None

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale.id,
            "sale_partition": self.sale.partition,
            "stock_done": list(self.stock_done),
            "stock_pending": [l.code for l in self.stock_pending],
            "transaction_id": self.transaction.id if self.transaction else None,
            "complete": self.complete,
            "last_error": self.last_error,
        }


def _validate_on_hand(catalog: Catalog, lines: list[CartLine]) -> None:
    insufficient = []
    for line in lines:
        product = catalog.find(line.code)
        on_hand = product.stock if product else 0
        if on_hand < line.quantity:
            insufficient.append({
                "code": line.code,
                "requested_quantity": line.quantity,
                "on_hand": on_hand,
            })

    if insufficient:
        raise CheckoutError(
            "Insufficient inventory to complete sale",
            details={"items": insufficient},
        )


def checkout(
    store: TabularStore,
    names: LedgerNames,
    cart: Cart,
    *,
    note: str = "",
    now: datetime | None = None,
    attempts: int = DEFAULT_ATTEMPTS,
    backoff_base: float = DEFAULT_BACKOFF,
) -> Sale:
    """
    Commit the cart. Returns the persisted Sale; the cart is emptied.

    Raises CheckoutError before anything is written (empty cart, stock gone),
    StoreError if the sale row itself could not be written (nothing
    persisted), or CheckoutIncompleteError after the sale was persisted.
    """
    if cart.is_empty:
        raise CheckoutError("Cart is empty")

    lines = cart.lines
    catalog = load_catalog(store, names.products)
    _validate_on_hand(catalog, lines)

    total, profit = cart.totals()
    if total <= 0:
        # the income transaction needs a positive amount
        raise CheckoutError("Cart total must be greater than zero")

    sale = record_sale(
        store,
        names.sales,
        details=cart.details(),
        total=total,
        profit=profit,
        note=note,
        sold_at=now or local_now(),
        id_prefix=names.sale_prefix,
    )

    report = CheckoutReport(sale=sale, lines=lines)
    _finish(store, names, catalog, report, attempts=attempts, backoff_base=backoff_base)

    cart.clear()
    logger.info("Checkout committed sale %s (total=%d, profit=%d)", sale.id, sale.total, sale.profit)
    return sale


def resume_checkout(
    store: TabularStore,
    names: LedgerNames,
    report: CheckoutReport,
    *,
    cart: Cart | None = None,
    attempts: int = DEFAULT_ATTEMPTS,
    backoff_base: float = DEFAULT_BACKOFF,
) -> CheckoutReport:
    """Complete the pending steps of an interrupted checkout; clears the cart on success."""
    if not report.complete:
        catalog = load_catalog(store, names.products)
        _finish(store, names, catalog, report, attempts=attempts, backoff_base=backoff_base)

    if cart is not None:
        cart.clear()
    logger.info("Checkout of sale %s resumed and completed", report.sale.id)
    return report


def _finish(
    store: TabularStore,
    names: LedgerNames,
    catalog: Catalog,
    report: CheckoutReport,
    *,
    attempts: int,
    backoff_base: float,
) -> None:
    sale = report.sale
    try:
        for line in report.stock_pending:
            run_with_retry(
                lambda line=line: adjust_stock(catalog, line.code, -line.quantity),
                attempts=attempts,
                backoff_base=backoff_base,
                label=f"stock decrement {line.code}",
            )
            report.stock_done.append(line.code)

        if report.transaction is None:
            report.transaction = run_with_retry(
                lambda: _book_income(store, names, report),
                attempts=attempts,
                backoff_base=backoff_base,
                label=f"income for {sale.id}",
            )
    except (StoreError, InsufficientStockError, ConflictError, NotFoundError) as exc:
        report.last_error = str(exc)
        logger.error(
            "Checkout of sale %s is incomplete and needs reconciliation: %s",
            sale.id,
            report.to_dict(),
        )
        raise CheckoutIncompleteError(f"Sale {sale.id} saved but checkout is incomplete", report) from exc


def _book_income(store: TabularStore, names: LedgerNames, report: CheckoutReport) -> Transaction:
    sale = report.sale
    on = sale.sold_at.date()
    existing = find_by_sale(store, names.transactions, sale.id, [on])
    if existing is not None:
        return existing
    return add_sale_income(
        store,
        names.transactions,
        sale_id=sale.id,
        description=", ".join(l.name for l in report.lines),
        amount=sale.total,
        on=on,
        id_prefix=names.transaction_prefix,
    )
