"""
Pytest fixtures for shop ledger tests.

Provides an app on an in-memory database, a clean tabular store per test,
and FlakyStore, a store wrapper that fails chosen calls to exercise the
partial-failure paths of checkout and the cross-reference propagator.
"""

from datetime import datetime

import pytest

from shopledger import create_app
from shopledger.config import LedgerNames
from shopledger.extensions import db
from shopledger.models import StoreRow, StoreTable
from shopledger.services.products_service import add_product, load_catalog
from shopledger.tabular import SqlTableStore, StoreError

NOW = datetime(2026, 10, 19, 14, 30, 5)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'STORE_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty store tables for each test."""
    with app.app_context():
        db.session.query(StoreRow).delete()
        db.session.query(StoreTable).delete()
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    return SqlTableStore(db_session)


@pytest.fixture(scope='function')
def now():
    """Fixed checkout time: 19/10/2026 14:30:05."""
    return NOW


@pytest.fixture(scope='function')
def names():
    return LedgerNames()


@pytest.fixture(scope='function')
def product_a(store, names):
    """Product "A": cost 600, price 1000, 10 in stock."""
    catalog = load_catalog(store, names.products)
    return add_product(catalog, name="A", cost=600, price=1000, stock=10, code="A")


class FlakyStore:
    """
    Delegating TabularStore that raises StoreError for matching calls.

    fail("append_rows", table_prefix="Transactions", times=2) makes the next
    two append_rows calls on a Transactions table fail before reaching the
    wrapped store, so a failed call has no effect.
    """

    def __init__(self, inner):
        self.inner = inner
        self.rules = []
        self.calls = []

    def fail(self, method, *, table_prefix="", times=1):
        self.rules.append({"method": method, "prefix": table_prefix, "remaining": times})
        return self

    def _check(self, method, table):
        self.calls.append((method, table))
        for rule in self.rules:
            if rule["method"] == method and table.startswith(rule["prefix"]) and rule["remaining"] > 0:
                rule["remaining"] -= 1
                raise StoreError(f"injected {method} failure", table=table)

    def list_tables(self):
        return self.inner.list_tables()

    def create_table(self, name, header):
        self._check("create_table", name)
        return self.inner.create_table(name, header)

    def read_range(self, table, range_spec):
        self._check("read_range", table)
        return self.inner.read_range(table, range_spec)

    def append_rows(self, table, rows):
        self._check("append_rows", table)
        return self.inner.append_rows(table, rows)

    def overwrite_range(self, table, range_spec, rows):
        self._check("overwrite_range", table)
        return self.inner.overwrite_range(table, range_spec, rows)

    def delete_row(self, table, index):
        self._check("delete_row", table)
        return self.inner.delete_row(table, index)


@pytest.fixture(scope='function')
def flaky(store):
    return FlakyStore(store)
