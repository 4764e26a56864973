from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Optional

from ..time_utils import (
    DateParseError,
    format_ledger_date,
    format_ledger_datetime,
    parse_ledger_date,
    parse_ledger_datetime,
    to_iso,
)
from ..validation import cell_number, cell_text

"""
Ledger records and their fixed column layouts.

position is the 1-based offset of a record among the data rows of its
partition (the header row is not counted), so the sheet row number is
position + 1 and the zero-based delete index is position.

Sale row:        [id, datetime, details, total, profit, note]
Transaction row: [id, date, direction, description, amount, note, linked_sale_id]
Product row:     [code, name, cost, price, profit, stock, created]
"""

SALE_HEADER = ["Mã đơn", "Ngày giờ", "Chi tiết", "Tổng tiền", "Lợi nhuận", "Ghi chú"]
TRANSACTION_HEADER = ["ID", "Ngày", "Loại", "Mô tả", "Số tiền", "Ghi chú", "Mã đơn liên kết"]
PRODUCT_HEADER = ["Mã SP", "Tên SP", "Giá nhập", "Giá bán", "Lãi", "Tồn kho", "Ngày tạo"]

INCOME = "income"
EXPENSE = "expense"
DIRECTIONS = (INCOME, EXPENSE)

# Sale-derived transactions carry "Đơn: <saleId>" in their note
SALE_NOTE_PREFIX = "Đơn: "
_SALE_NOTE_RE = re.compile(r"Đơn:\s*([A-Za-z]*\d+)")


def sale_note(sale_id: str) -> str:
    return f"{SALE_NOTE_PREFIX}{sale_id}"


def sale_id_from_note(note: str) -> Optional[str]:
    if not note:
        return None
    match = _SALE_NOTE_RE.search(note)
    return match.group(1) if match else None


@dataclass
class Product:
    code: str
    name: str
    cost: int
    price: int
    stock: int
    created: str = ""
    position: Optional[int] = None

    @property
    def profit(self) -> int:
        return self.price - self.cost

    WIDTH = len(PRODUCT_HEADER)

    @classmethod
    def from_row(cls, row: list, position: int) -> "Product":
        return cls(
            code=cell_text(row, 0),
            name=cell_text(row, 1),
            cost=cell_number(row[2] if len(row) > 2 else None),
            price=cell_number(row[3] if len(row) > 3 else None),
            stock=max(cell_number(row[5] if len(row) > 5 else None), 0),
            created=cell_text(row, 6),
            position=position,
        )

    def to_row(self) -> list[Any]:
        return [self.code, self.name, self.cost, self.price, self.profit, self.stock, self.created]

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "cost": self.cost,
            "price": self.price,
            "profit": self.profit,
            "stock": self.stock,
            "created": self.created,
        }


@dataclass
class Sale:
    id: str
    sold_at: Optional[datetime]
    details: str
    total: int
    profit: int
    note: str = ""
    partition: Optional[str] = None
    position: Optional[int] = None
    # Original cell text, kept when it does not parse so a save writes it back untouched
    datetime_text: str = field(default="", repr=False)

    WIDTH = len(SALE_HEADER)
    DATE_COLUMN = 1

    @classmethod
    def from_row(cls, row: list, *, partition: str | None = None, position: int | None = None) -> "Sale":
        raw = cell_text(row, 1)
        try:
            sold_at = parse_ledger_datetime(raw)
        except DateParseError:
            sold_at = None
        return cls(
            id=cell_text(row, 0).strip(),
            sold_at=sold_at,
            details=cell_text(row, 2),
            total=cell_number(row[3] if len(row) > 3 else None),
            profit=cell_number(row[4] if len(row) > 4 else None),
            note=cell_text(row, 5),
            partition=partition,
            position=position,
            datetime_text=raw,
        )

    def to_row(self) -> list[Any]:
        stamp = format_ledger_datetime(self.sold_at) if self.sold_at else self.datetime_text
        return [self.id, stamp, self.details, self.total, self.profit, self.note]

    def with_changes(self, **changes) -> "Sale":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sold_at": to_iso(self.sold_at),
            "datetime": self.to_row()[1],
            "details": self.details,
            "total": self.total,
            "profit": self.profit,
            "note": self.note,
            "partition": self.partition,
            "position": self.position,
        }


@dataclass
class Transaction:
    id: str
    on: Optional[date]
    direction: str
    description: str
    amount: int
    note: str = ""
    linked_sale_id: Optional[str] = None
    partition: Optional[str] = None
    position: Optional[int] = None
    date_text: str = field(default="", repr=False)

    WIDTH = len(TRANSACTION_HEADER)
    DATE_COLUMN = 1

    @classmethod
    def from_row(cls, row: list, *, partition: str | None = None, position: int | None = None) -> "Transaction":
        raw = cell_text(row, 1)
        try:
            on = parse_ledger_date(raw)
        except DateParseError:
            on = None
        note = cell_text(row, 5)
        # Rows written before the link column existed only carry the note convention
        linked = cell_text(row, 6).strip() or sale_id_from_note(note)
        return cls(
            id=cell_text(row, 0).strip(),
            on=on,
            direction=cell_text(row, 2),
            description=cell_text(row, 3),
            amount=cell_number(row[4] if len(row) > 4 else None),
            note=note,
            linked_sale_id=linked or None,
            partition=partition,
            position=position,
            date_text=raw,
        )

    def to_row(self) -> list[Any]:
        stamp = format_ledger_date(self.on) if self.on else self.date_text
        return [
            self.id,
            stamp,
            self.direction,
            self.description,
            self.amount,
            self.note,
            self.linked_sale_id or "",
        ]

    def with_changes(self, **changes) -> "Transaction":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.to_row()[1],
            "on": self.on.isoformat() if self.on else None,
            "direction": self.direction,
            "description": self.description,
            "amount": self.amount,
            "note": self.note,
            "linked_sale_id": self.linked_sale_id,
            "partition": self.partition,
            "position": self.position,
        }
