# Overview: Service-layer operations for the product catalog table.

from __future__ import annotations

import logging
from typing import Optional

from ..models import InsufficientStockError, Product
from ..models.records import PRODUCT_HEADER
from ..sale_details import check_item_name
from ..tabular import TabularStore, cell, column_letter, row_range
from ..time_utils import format_ledger_date, now
from ..validation import ConflictError, NotFoundError, ValidationError, require_text
from .identifier_service import next_product_code
from .partition_service import ensure_partition

"""
Catalog Invariants (authoritative)

- The catalog is a single unpartitioned table; product code is unique.
- Stock is an integer >= 0 and only changes through adjust_stock.
- Product names render unambiguously in sale details (see check_item_name).
- Stock adjustments re-read the product row before writing so that a
  decrement never drives stock below zero, even if the loaded view is old.
"""

logger = logging.getLogger(__name__)

STOCK_COLUMN = 5


class Catalog:
    """Loaded view of the products table."""

    def __init__(self, store: TabularStore, table: str, products: list[Product]):
        self.store = store
        self.table = table
        self.products = products

    def __iter__(self):
        return iter(self.products)

    def __len__(self) -> int:
        return len(self.products)

    def find(self, code: str) -> Optional[Product]:
        return next((p for p in self.products if p.code == code), None)

    def get(self, code: str) -> Product:
        product = self.find(code)
        if product is None:
            raise NotFoundError(f"Product {code} not found")
        return product

    def find_by_name(self, name: str) -> Optional[Product]:
        return next((p for p in self.products if p.name == name), None)

    def codes(self) -> list[str]:
        return [p.code for p in self.products]

    def low_stock(self, threshold: int = 5) -> list[Product]:
        return [p for p in self.products if 0 < p.stock <= threshold]

    def out_of_stock(self) -> list[Product]:
        return [p for p in self.products if p.stock == 0]


def ensure_catalog(store: TabularStore, table: str) -> bool:
    return ensure_partition(store, table, PRODUCT_HEADER)


def load_catalog(store: TabularStore, table: str) -> Catalog:
    if table not in store.list_tables():
        return Catalog(store, table, [])

    rows = store.read_range(table, f"A2:{column_letter(len(PRODUCT_HEADER) - 1)}")
    products = [
        Product.from_row(row, position=index + 1)
        for index, row in enumerate(rows)
        if row and str(row[0]).strip()
    ]
    return Catalog(store, table, products)


def _validate(name, cost: int, price: int, stock: int) -> str:
    name = check_item_name(require_text(name, "name"))
    if cost < 0 or price < 0:
        raise ValidationError("cost and price cannot be negative")
    if stock < 0:
        raise ValidationError("stock cannot be negative")
    return name


def add_product(
    catalog: Catalog,
    *,
    name: str,
    cost: int,
    price: int,
    stock: int,
    code: str | None = None,
    code_prefix: str = "SP",
) -> Product:
    name = _validate(name, cost, price, stock)
    code = (code or "").strip() or next_product_code(code_prefix, catalog.codes())
    if catalog.find(code):
        raise ConflictError(f"Product code {code} already exists")

    ensure_catalog(catalog.store, catalog.table)
    product = Product(
        code=code,
        name=name,
        cost=cost,
        price=price,
        stock=stock,
        created=format_ledger_date(now()),
        position=len(catalog.products) + 1,
    )
    catalog.store.append_rows(catalog.table, [product.to_row()])
    catalog.products.append(product)
    return product


def duplicate_product(catalog: Catalog, code: str, *, code_prefix: str = "SP") -> Product:
    source = catalog.get(code)
    return add_product(
        catalog,
        name=f"{source.name} (Copy)",
        cost=source.cost,
        price=source.price,
        stock=source.stock,
        code_prefix=code_prefix,
    )


def _check_row(catalog: Catalog, product: Product) -> tuple[int, Product]:
    """Re-read the product's row; returns (sheet row number, stored product)."""
    if not product.position:
        raise NotFoundError(f"Product {product.code} has no stored position")
    row_number = product.position + 1
    current = catalog.store.read_range(catalog.table, row_range(row_number, len(PRODUCT_HEADER)))
    if not current or not current[0] or str(current[0][0]) != product.code:
        raise ConflictError(f"Row {row_number} of {catalog.table} no longer holds {product.code}; reload and retry")
    return row_number, Product.from_row(current[0], position=product.position)


def update_product(catalog: Catalog, code: str, *, name=None, cost=None, price=None, stock=None) -> Product:
    product = catalog.get(code)
    updated = Product(
        code=product.code,
        name=product.name if name is None else name,
        cost=product.cost if cost is None else cost,
        price=product.price if price is None else price,
        stock=product.stock if stock is None else stock,
        created=product.created,
        position=product.position,
    )
    updated.name = _validate(updated.name, updated.cost, updated.price, updated.stock)

    row_number, _ = _check_row(catalog, product)
    catalog.store.overwrite_range(catalog.table, row_range(row_number, len(PRODUCT_HEADER)), [updated.to_row()])
    catalog.products[catalog.products.index(product)] = updated
    return updated


def delete_product(catalog: Catalog, code: str) -> None:
    product = catalog.get(code)
    _check_row(catalog, product)
    catalog.store.delete_row(catalog.table, product.position)
    catalog.products.remove(product)
    for other in catalog.products:
        if other.position and other.position > product.position:
            other.position -= 1


def adjust_stock(catalog: Catalog, code: str, delta: int) -> Product:
    """
    Apply a stock delta (negative for sales) against the stored count.

    Raises InsufficientStockError if the result would be
    negative; nothing is written in that case.
    """
    product = catalog.get(code)
    row_number, stored = _check_row(catalog, product)

    new_stock = stored.stock + delta
    if new_stock < 0:
        raise InsufficientStockError(
            f"Not enough {product.name} in stock ({stored.stock} left, {-delta} requested)",
            code=code, requested=-delta, available=stored.stock,
        )

    catalog.store.overwrite_range(catalog.table, cell(row_number, STOCK_COLUMN), [[new_stock]])
    product.stock = new_stock
    logger.debug("Stock of %s adjusted by %d to %d", code, delta, new_stock)
    return product
