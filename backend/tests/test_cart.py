# Overview: Pytest coverage for the in-memory cart.

import pytest

from shopledger.models import Cart, InsufficientStockError, Product
from shopledger.validation import NotFoundError, ValidationError


def _product(code="A", name="A", cost=600, price=1000, stock=3):
    return Product(code=code, name=name, cost=cost, price=price, stock=stock)


class TestCartQuantities:
    def test_add_increments_up_to_stock(self):
        cart = Cart()
        product = _product(stock=2)
        cart.add(product)
        cart.add(product)

        with pytest.raises(InsufficientStockError) as exc:
            cart.add(product)

        assert cart.line("A").quantity == 2
        assert exc.value.details["on_hand"] == 2

    def test_out_of_stock_never_added(self):
        cart = Cart()
        with pytest.raises(InsufficientStockError):
            cart.add(_product(stock=0))
        assert cart.is_empty

    def test_ceiling_is_stock_at_add_time(self):
        cart = Cart()
        product = _product(stock=2)
        cart.add(product)
        product.stock = 50
        cart.add(product)
        with pytest.raises(InsufficientStockError):
            cart.add(product)

    def test_set_quantity_to_zero_removes_line(self):
        cart = Cart()
        cart.add(_product())
        assert cart.set_quantity("A", -1) is None
        assert cart.is_empty

    def test_set_quantity_above_ceiling_leaves_cart(self):
        cart = Cart()
        cart.add(_product(stock=3))
        with pytest.raises(InsufficientStockError):
            cart.set_quantity("A", 5)
        assert cart.line("A").quantity == 1

    def test_unknown_line(self):
        with pytest.raises(NotFoundError):
            Cart().set_quantity("Z", 1)


class TestCartTotals:
    def test_totals_recomputed_from_lines(self):
        cart = Cart()
        cart.add(_product("A", "Tea", 600, 1000, 5))
        cart.add(_product("B", "Cake", 2000, 3500, 5))
        cart.set_quantity("A", 2)
        cart.set_price("B", 3000)

        assert cart.totals() == (3 * 1000 + 3000, 3 * 400 + 1000)
        assert cart.details() == "Tea x3, Cake @3000 x1"

        cart.remove("A")
        assert cart.totals() == (3000, 1000)

    def test_price_back_to_list_drops_suffix(self):
        cart = Cart()
        cart.add(_product())
        cart.set_price("A", 900)
        cart.set_price("A", 1000)
        assert cart.details() == "A x1"

    def test_negative_price_rejected(self):
        cart = Cart()
        cart.add(_product())
        with pytest.raises(ValidationError):
            cart.set_price("A", -1)
        assert cart.line("A").price == 1000

    def test_clear(self):
        cart = Cart()
        cart.add(_product())
        cart.clear()
        assert cart.totals() == (0, 0)
        assert cart.details() == ""
