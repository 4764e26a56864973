from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..sale_details import render_details, render_fragment
from ..validation import NotFoundError, ValidationError
from .records import Product


class InsufficientStockError(ValidationError):
    """Raised when a cart change would exceed the stock available for a line."""

    def __init__(self, message: str, *, code: str, requested: int, available: int):
        super().__init__(message)
        self.details = {"code": code, "requested_quantity": requested, "on_hand": available}


@dataclass
class CartLine:
    code: str
    name: str
    cost: int
    price: int
    original_price: int
    quantity: int
    max_stock: int

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    @property
    def line_profit(self) -> int:
        return (self.price - self.cost) * self.quantity

    def detail_fragment(self) -> str:
        return render_fragment(self.name, self.quantity, self.price, self.original_price)


class Cart:
    """
    Sale in progress. Lives only in memory; emptied by checkout or clear().

    Every rejected change leaves the cart exactly as it was.
    """

    def __init__(self) -> None:
        self._lines: list[CartLine] = []

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def line(self, code: str) -> Optional[CartLine]:
        return next((l for l in self._lines if l.code == code), None)

    def _require_line(self, code: str) -> CartLine:
        line = self.line(code)
        if line is None:
            raise NotFoundError(f"Product {code} is not in the cart")
        return line

    def add(self, product: Product) -> CartLine:
        """Add one unit at list price, capped by the stock seen when the line was created."""
        if product.stock <= 0:
            raise InsufficientStockError(
                f"{product.name} is out of stock",
                code=product.code, requested=1, available=0,
            )

        existing = self.line(product.code)
        if existing:
            if existing.quantity >= existing.max_stock:
                raise InsufficientStockError(
                    f"Not enough {existing.name} in stock",
                    code=existing.code,
                    requested=existing.quantity + 1,
                    available=existing.max_stock,
                )
            existing.quantity += 1
            return existing

        line = CartLine(
            code=product.code,
            name=product.name,
            cost=product.cost,
            price=product.price,
            original_price=product.price,
            quantity=1,
            max_stock=product.stock,
        )
        self._lines.append(line)
        return line

    def set_quantity(self, code: str, delta: int) -> Optional[CartLine]:
        """Adjust by delta; a result of zero or less removes the line and returns None."""
        line = self._require_line(code)
        new_qty = line.quantity + delta

        if new_qty <= 0:
            self.remove(code)
            return None

        if new_qty > line.max_stock:
            raise InsufficientStockError(
                f"Not enough {line.name} in stock",
                code=code, requested=new_qty, available=line.max_stock,
            )

        line.quantity = new_qty
        return line

    def set_price(self, code: str, new_price: int) -> CartLine:
        """Per-sale price override; original_price is kept to flag it in the details."""
        line = self._require_line(code)
        if new_price < 0:
            raise ValidationError("price cannot be negative")
        line.price = new_price
        return line

    def remove(self, code: str) -> None:
        self._lines = [l for l in self._lines if l.code != code]

    def clear(self) -> None:
        self._lines = []

    def totals(self) -> tuple[int, int]:
        total = sum(l.line_total for l in self._lines)
        profit = sum(l.line_profit for l in self._lines)
        return total, profit

    def details(self) -> str:
        return render_details(l.detail_fragment() for l in self._lines)
