# backend/shopledger/config.py
from __future__ import annotations
import os
from dataclasses import dataclass


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Local tabular store lives in backend/instance/shopledger.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Base ledger names; monthly partitions are "<base>_<MM>_<YYYY>"
    SALES_TABLE = os.environ.get("SALES_TABLE", "Sales")
    TRANSACTIONS_TABLE = os.environ.get("TRANSACTIONS_TABLE", "Transactions")
    PRODUCTS_TABLE = os.environ.get("PRODUCTS_TABLE", "Products")

    SALE_ID_PREFIX = "DH"
    TRANSACTION_ID_PREFIX = "GD"
    PRODUCT_CODE_PREFIX = "SP"

    # Remote store calls inside checkout are retried this many times
    STORE_RETRY_ATTEMPTS = int(os.environ.get("STORE_RETRY_ATTEMPTS", "3"))
    STORE_RETRY_BACKOFF = float(os.environ.get("STORE_RETRY_BACKOFF", "0.1"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class LedgerNames:
    """Base table names and id prefixes, as the services need them."""
    sales: str = "Sales"
    transactions: str = "Transactions"
    products: str = "Products"
    sale_prefix: str = "DH"
    transaction_prefix: str = "GD"
    product_prefix: str = "SP"

    @classmethod
    def from_config(cls, config) -> "LedgerNames":
        return cls(
            sales=config.get("SALES_TABLE", cls.sales),
            transactions=config.get("TRANSACTIONS_TABLE", cls.transactions),
            products=config.get("PRODUCTS_TABLE", cls.products),
            sale_prefix=config.get("SALE_ID_PREFIX", cls.sale_prefix),
            transaction_prefix=config.get("TRANSACTION_ID_PREFIX", cls.transaction_prefix),
            product_prefix=config.get("PRODUCT_CODE_PREFIX", cls.product_prefix),
        )
