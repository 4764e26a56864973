# Overview: Pytest coverage for moving legacy flat ledgers into monthly partitions.

from datetime import datetime

import pytest

from shopledger.config import LedgerNames
from shopledger.models import Sale
from shopledger.models.records import SALE_HEADER
from shopledger.services.ledger_service import load_partition_by_name, read_ids
from shopledger.services.migration_service import MigrationError, migrate
from shopledger.services.sales_service import record_sale

LEGACY_TRANSACTION_HEADER = ["ID", "Ngày", "Loại", "Mô tả", "Số tiền", "Ghi chú"]


def _legacy_sales(store, rows):
    store.create_table("Sales", SALE_HEADER)
    store.append_rows("Sales", rows)


class TestMigrateSales:
    def test_duplicates_appended_once_across_reruns(self, store, names):
        _legacy_sales(store, [
            ["X1", "3/10/2026, 09:00:00", "A x1", 1000, 400, ""],
            ["X2", "4/10/2026, 10:00:00", "A x2", 2000, 800, ""],
            ["X1", "3/10/2026, 09:00:00", "A x1", 1000, 400, ""],
        ])

        first = migrate(store, names)
        second = migrate(store, names)

        assert read_ids(store, "Sales_10_2026") == ["X1", "X2"]
        sales_first, sales_second = first.ledgers[0], second.ledgers[0]
        assert sales_first.appended == {"Sales_10_2026": 2}
        assert sales_first.duplicates == 1
        assert sales_second.appended == {"Sales_10_2026": 0}
        assert sales_second.duplicates == 3

    def test_padded_id_appended_once_across_reruns(self, store, names):
        _legacy_sales(store, [["X1 ", "3/10/2026, 09:00:00", "A x1", 1000, 400, ""]])

        migrate(store, names)
        second = migrate(store, names)

        assert read_ids(store, "Sales_10_2026") == ["X1"]
        assert second.ledgers[0].appended == {"Sales_10_2026": 0}
        assert second.ledgers[0].duplicates == 1

    def test_rows_bucketed_by_month(self, store, names):
        _legacy_sales(store, [
            ["S1", "30/9/2026 23:59", "A x1", 1000, 400, ""],
            ["S2", "10:30:15 1/10/2026", "A x1", 1000, 400, "late"],
            ["S3", "2026-10-02T08:00:00", "A x1", 1000, 400, ""],
        ])

        result = migrate(store, names)

        assert result.appended_total == 3
        assert read_ids(store, "Sales_09_2026") == ["S1"]
        assert read_ids(store, "Sales_10_2026") == ["S2", "S3"]
        s2 = load_partition_by_name(store, "Sales_10_2026", Sale).get("S2")
        assert s2.sold_at == datetime(2026, 10, 1, 10, 30, 15)
        assert s2.note == "late"

    def test_unparseable_dates_skipped_and_counted(self, store, names):
        _legacy_sales(store, [
            ["S1", "not a date", "A x1", 1000, 400, ""],
            ["S2", "1/1/1970", "A x1", 1000, 400, ""],
            ["S3", "", "A x1", 1000, 400, ""],
            ["S4", "5/10/2026", "A x1", 1000, 400, ""],
        ])

        result = migrate(store, names)

        sales = result.ledgers[0]
        assert sales.read == 4
        assert sales.skipped == 3
        assert sales.skipped_ids == ["S1", "S2", "S3"]
        assert read_ids(store, "Sales_10_2026") == ["S4"]
        assert result.skipped == 3

    def test_partition_with_existing_rows(self, store, names, now):
        existing = record_sale(store, names.sales, details="A x1", total=1000, profit=400, sold_at=now)
        _legacy_sales(store, [
            [existing.id, "19/10/2026, 14:30:05", "A x1", 1000, 400, ""],
            ["OLD1", "18/10/2026, 10:00:00", "A x1", 1000, 400, ""],
        ])

        migrate(store, names)

        assert read_ids(store, "Sales_10_2026") == [existing.id, "OLD1"]

    def test_legacy_table_left_untouched(self, store, names):
        rows = [["X1", "3/10/2026", "A x1", 1000, 400, "n"]]
        _legacy_sales(store, rows)
        migrate(store, names)
        assert store.read_range("Sales", "A2:F") == rows


class TestMigrateTransactions:
    def test_link_column_filled_from_note(self, store, names):
        store.create_table("Transactions", LEGACY_TRANSACTION_HEADER)
        store.append_rows("Transactions", [
            ["GD1", "19/10/2026", "income", "A", 2000, "Đơn: X1"],
            ["GD2", "20/10/2026", "expense", "Ice", 500, ""],
            ["GD3", "bad", "expense", "Ice", 500, ""],
        ])

        result = migrate(store, names)

        transactions = result.ledgers[1]
        assert transactions.appended == {"Transactions_10_2026": 2}
        assert transactions.skipped == 1
        assert store.read_range("Transactions_10_2026", "A2:G") == [
            ["GD1", "19/10/2026", "income", "A", 2000, "Đơn: X1", "X1"],
            ["GD2", "20/10/2026", "expense", "Ice", 500],
        ]


class TestMigrateEdges:
    def test_nothing_to_migrate(self, store, names):
        result = migrate(store, names)
        assert result.appended_total == 0
        assert result.skipped == 0
        assert store.list_tables() == set()

    def test_base_name_that_looks_like_partition(self, store):
        with pytest.raises(MigrationError):
            migrate(store, LedgerNames(sales="Sales_10_2026"))
