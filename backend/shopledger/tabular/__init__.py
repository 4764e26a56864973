from .base import TabularStore, StoreError
from .ranges import CellRange, cell, column_letter, row_range
from .sql_store import SqlTableStore

__all__ = ["TabularStore", "StoreError", "CellRange", "cell", "column_letter", "row_range", "SqlTableStore"]
