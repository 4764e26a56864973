from .tables import StoreTable, StoreRow
from .records import Product, Sale, Transaction
from .cart import Cart, CartLine, InsufficientStockError

__all__ = [
    'StoreTable', 'StoreRow',
    'Product', 'Sale', 'Transaction',
    'Cart', 'CartLine', 'InsufficientStockError',
]
