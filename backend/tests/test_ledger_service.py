# Overview: Pytest coverage for the sales and transactions ledger repositories.

from datetime import date, datetime

import pytest

from shopledger.models import Sale, Transaction
from shopledger.models.records import SALE_HEADER, TRANSACTION_HEADER
from shopledger.services import sales_service, transactions_service
from shopledger.services.ledger_service import load_partition_by_name, read_ids
from shopledger.validation import ConflictError, NotFoundError, ValidationError


def _record(store, names, n, when):
    return sales_service.record_sale(
        store, names.sales, details=f"Item{n} x1", total=1000 * n, profit=100 * n, sold_at=when
    )


class TestLoad:
    def test_missing_partition_is_empty(self, store, names):
        partition = sales_service.load_sales(store, names.sales, date(2030, 1, 15))

        assert len(partition) == 0
        assert partition.exists is False
        assert partition.name == "Sales_01_2030"

    def test_records_carry_partition_and_position(self, store, names, now):
        first = _record(store, names, 1, now)
        second = _record(store, names, 2, now)

        partition = sales_service.load_sales(store, names.sales, now)

        assert [(s.id, s.position) for s in partition] == [(first.id, 1), (second.id, 2)]
        assert all(s.partition == "Sales_10_2026" for s in partition)
        assert partition.get(second.id).total == 2000

    def test_ids_unique_within_partition(self, store, names, now):
        ids = {_record(store, names, n, now).id for n in range(1, 6)}
        assert len(ids) == 5
        assert sorted(read_ids(store, "Sales_10_2026")) == sorted(ids)

    def test_get_unknown_raises_not_found(self, store, names, now):
        _record(store, names, 1, now)
        partition = sales_service.load_sales(store, names.sales, now)
        with pytest.raises(NotFoundError):
            partition.get("DH00000000")

    def test_unparseable_timestamp_kept_verbatim(self, store, names):
        store.create_table("Sales_10_2026", SALE_HEADER)
        store.append_rows("Sales_10_2026", [["DH1", "sometime", "A x1", 1000, 400, ""]])

        partition = load_partition_by_name(store, "Sales_10_2026", Sale)
        sale = partition.get("DH1")
        assert sale.sold_at is None

        partition.save(sale.with_changes(note="checked"))
        assert store.read_range("Sales_10_2026", "A2:F2") == [["DH1", "sometime", "A x1", 1000, 400, "checked"]]

    def test_padded_id_trimmed_on_load(self, store):
        store.create_table("Sales_10_2026", SALE_HEADER)
        store.append_rows("Sales_10_2026", [[" DH2 ", "3/10/2026", "A x1", 1000, 400, ""]])

        partition = load_partition_by_name(store, "Sales_10_2026", Sale)
        assert read_ids(store, "Sales_10_2026") == ["DH2"]

        partition.save(partition.get("DH2").with_changes(note="seen"))
        assert store.read_range("Sales_10_2026", "A2") == [["DH2"]]


class TestSaveAndRemove:
    def test_update_note_in_place(self, store, names, now):
        sale = _record(store, names, 1, now)
        partition = sales_service.load_sales(store, names.sales, now)

        sales_service.update_sale(partition, sale.id, note="paid by card")

        reloaded = partition.reload().get(sale.id)
        assert reloaded.note == "paid by card"
        assert reloaded.position == 1

    def test_date_moved_to_other_month_stays_in_partition(self, store, names, now):
        sale = _record(store, names, 1, now)
        partition = sales_service.load_sales(store, names.sales, now)

        sales_service.update_sale(partition, sale.id, sold_at="2/11/2026 08:00")

        reloaded = partition.reload().get(sale.id)
        assert reloaded.sold_at == datetime(2026, 11, 2, 8, 0)
        assert "Sales_11_2026" not in store.list_tables()

    def test_remove_shifts_later_positions(self, store, names, now):
        a, b, c = (_record(store, names, n, now) for n in (1, 2, 3))
        partition = sales_service.load_sales(store, names.sales, now)

        sales_service.delete_sale(partition, b.id)

        assert [(s.id, s.position) for s in partition] == [(a.id, 1), (c.id, 2)]
        reloaded = partition.reload()
        assert [(s.id, s.position) for s in reloaded] == [(a.id, 1), (c.id, 2)]

        # the shifted view can keep writing
        sales_service.update_sale(partition, c.id, note="after delete")
        assert partition.reload().get(c.id).note == "after delete"

    def test_stale_position_raises_conflict(self, store, names, now):
        a, b = _record(store, names, 1, now), _record(store, names, 2, now)
        partition = sales_service.load_sales(store, names.sales, now)

        # another writer removes the first row after our load
        store.delete_row("Sales_10_2026", 1)

        with pytest.raises(ConflictError):
            sales_service.update_sale(partition, b.id, note="lost update")
        with pytest.raises(ConflictError):
            sales_service.delete_sale(partition, b.id)

        assert read_ids(store, "Sales_10_2026") == [b.id]
        assert partition.reload().get(b.id).note == ""


class TestTransactions:
    def test_manual_transaction_is_unlinked(self, store, names):
        t = transactions_service.add_transaction(
            store, names.transactions,
            direction="expense", description="Ice", amount=50000, on="3/10/2026",
        )
        assert t.partition == "Transactions_10_2026"
        assert t.id.startswith("GD")

        [loaded] = transactions_service.load_transactions(store, names.transactions, date(2026, 10, 1))
        assert loaded.linked_sale_id is None
        assert loaded.direction == "expense"
        assert loaded.on == date(2026, 10, 3)

    @pytest.mark.parametrize("kwargs", [
        {"direction": "refund", "description": "x", "amount": 10},
        {"direction": "income", "description": "  ", "amount": 10},
        {"direction": "income", "description": "x", "amount": 0},
    ])
    def test_invalid_transaction_writes_nothing(self, store, names, kwargs):
        with pytest.raises(ValidationError):
            transactions_service.add_transaction(store, names.transactions, on="3/10/2026", **kwargs)
        assert store.list_tables() == set()

    def test_legacy_note_link_read_back(self, store):
        store.create_table("Transactions_10_2026", TRANSACTION_HEADER)
        store.append_rows("Transactions_10_2026", [
            ["GD1", "19/10/2026", "income", "A", 2000, "Đơn: DH12345678"],
        ])

        [t] = load_partition_by_name(store, "Transactions_10_2026", Transaction)
        assert t.linked_sale_id == "DH12345678"

    def test_update_and_delete(self, store, names):
        t = transactions_service.add_transaction(
            store, names.transactions,
            direction="income", description="Tip", amount=1000, on="3/10/2026",
        )
        partition = transactions_service.load_transactions(store, names.transactions, date(2026, 10, 3))

        transactions_service.update_transaction(partition, t.id, amount=1500, note="jar")
        assert partition.reload().get(t.id).amount == 1500

        with pytest.raises(ValidationError):
            transactions_service.update_transaction(partition, t.id, amount=-1)

        transactions_service.delete_transaction(partition, t.id)
        assert len(partition.reload()) == 0

    def test_summary_and_period(self, store, names):
        for desc, direction, amount, day in [
            ("a", "income", 3000, "19/10/2026"),
            ("b", "expense", 1000, "15/10/2026"),
            ("c", "income", 500, "1/10/2026"),
        ]:
            transactions_service.add_transaction(
                store, names.transactions, direction=direction, description=desc, amount=amount, on=day
            )
        items = list(transactions_service.load_transactions(store, names.transactions, date(2026, 10, 1)))
        today = date(2026, 10, 19)

        assert transactions_service.summarize(items) == {"income": 3500, "expense": 1000, "balance": 2500}
        assert [t.description for t in transactions_service.filter_by_period(items, "today", today)] == ["a"]
        assert [t.description for t in transactions_service.filter_by_period(items, "week", today)] == ["a", "b"]
        assert len(transactions_service.filter_by_period(items, "month", today)) == 3

        with pytest.raises(ValidationError):
            transactions_service.filter_by_period(items, "year", today)
