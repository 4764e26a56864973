# Overview: Pytest coverage for partition name resolution and partition bootstrap.

from datetime import date, datetime

import pytest

from shopledger.models.records import SALE_HEADER
from shopledger.services.partition_service import (
    PartitionKey,
    ensure_partition,
    list_partitions,
    resolve_partition_name,
)
from shopledger.time_utils import DateParseError


class TestResolve:
    def test_name_format(self):
        assert resolve_partition_name("Sales", date(2026, 3, 5)) == "Sales_03_2026"
        assert resolve_partition_name("Transactions", date(2026, 12, 31)) == "Transactions_12_2026"

    @pytest.mark.parametrize("when", [
        date(2026, 10, 1),
        date(2026, 10, 31),
        datetime(2026, 10, 19, 23, 59, 59),
        "19/10/2026",
        "19/10/2026, 14:30:05",
        "14:30:05 19/10/2026",
        "2026-10-19",
    ])
    def test_same_month_same_name(self, when):
        assert resolve_partition_name("Sales", when) == "Sales_10_2026"

    def test_distinct_months_distinct_names(self):
        names = {
            resolve_partition_name("Sales", date(year, month, 1))
            for year in (2025, 2026)
            for month in range(1, 13)
        }
        assert len(names) == 24

    def test_unparseable_date_rejected(self):
        with pytest.raises(DateParseError):
            resolve_partition_name("Sales", "32/10/2026")

    def test_parse_is_inverse_of_name(self):
        key = PartitionKey.for_date("Sales", date(2026, 7, 4))
        assert PartitionKey.parse(key.name) == key
        assert PartitionKey.parse("Products") is None
        assert PartitionKey.parse("Sales_13_2026") is None

    def test_base_may_contain_underscores(self):
        key = PartitionKey.parse("Shop_Sales_02_2026")
        assert (key.base, key.month, key.year) == ("Shop_Sales", 2, 2026)

    def test_sibling_keeps_month(self):
        key = PartitionKey.parse("Sales_10_2026")
        assert key.sibling("Transactions").name == "Transactions_10_2026"


class TestEnsure:
    def test_idempotent(self, store):
        assert ensure_partition(store, "Sales_10_2026", SALE_HEADER) is True
        assert ensure_partition(store, "Sales_10_2026", SALE_HEADER) is False
        assert store.read_range("Sales_10_2026", "A1:F1") == [SALE_HEADER]

    def test_list_newest_first(self, store):
        for name in ("Sales_09_2026", "Sales_01_2027", "Sales_10_2026", "Transactions_10_2026", "Sales"):
            ensure_partition(store, name, SALE_HEADER)

        assert [k.name for k in list_partitions(store, "Sales")] == [
            "Sales_01_2027",
            "Sales_10_2026",
            "Sales_09_2026",
        ]
