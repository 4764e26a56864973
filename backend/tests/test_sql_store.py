# Overview: Pytest coverage for the SQL-backed tabular store.

import pytest

from shopledger.tabular import CellRange, SqlTableStore, StoreError, TabularStore, column_letter, row_range


class TestRanges:
    def test_parse(self):
        rng = CellRange.parse("A2:F")
        assert (rng.start_col, rng.end_col, rng.start_row, rng.end_row) == (0, 5, 2, None)
        assert CellRange.parse("B7").width == 1

    @pytest.mark.parametrize("ref", ["Sales!A1:B2", "F1:A1", "A3:B2", "1A", "A0"])
    def test_invalid(self, ref):
        with pytest.raises(ValueError):
            CellRange.parse(ref)

    def test_helpers(self):
        assert column_letter(0) == "A"
        assert column_letter(26) == "AA"
        assert row_range(5, 6) == "A5:F5"


class TestSqlTableStore:
    def test_is_a_tabular_store(self, store):
        assert isinstance(store, TabularStore)

    def test_create_and_read(self, store):
        store.create_table("T", ["id", "name"])
        store.append_rows("T", [["1", "one"], ["2", "two", "", ""]])

        assert store.list_tables() == {"T"}
        assert store.read_range("T", "A1:B") == [["id", "name"], ["1", "one"], ["2", "two"]]
        assert store.read_range("T", "A2:A") == [["1"], ["2"]]
        assert store.read_range("T", "B3") == [["two"]]

    def test_create_existing_fails(self, store):
        store.create_table("T", ["id"])
        with pytest.raises(StoreError):
            store.create_table("T", ["id"])

    def test_missing_table(self, store):
        with pytest.raises(StoreError) as exc:
            store.read_range("Nope", "A1:A")
        assert exc.value.table == "Nope"

    def test_overwrite_partial_row(self, store):
        store.create_table("T", ["a", "b", "c"])
        store.append_rows("T", [[1, 2, 3]])

        store.overwrite_range("T", "B2", [[20]])
        assert store.read_range("T", "A2:C2") == [[1, 20, 3]]

        with pytest.raises(StoreError):
            store.overwrite_range("T", "B2", [[1, 2]])

    def test_delete_shifts_rows(self, store):
        store.create_table("T", ["id"])
        store.append_rows("T", [["1"], ["2"], ["3"]])

        store.delete_row("T", 2)

        assert store.read_range("T", "A2:A") == [["1"], ["3"]]
        store.append_rows("T", [["4"]])
        assert store.read_range("T", "A2:A") == [["1"], ["3"], ["4"]]

    def test_middle_blank_row_kept(self, store):
        store.create_table("T", ["id"])
        store.append_rows("T", [["1"], [""], ["3"]])
        assert store.read_range("T", "A2:A") == [["1"], [], ["3"]]

    def test_failed_call_has_no_effect(self, store, db_session):
        store.create_table("T", ["id"])
        with pytest.raises(StoreError):
            store.overwrite_range("T", "not a range", [["x"]])
        assert store.read_range("T", "A1:A") == [["id"]]

    def test_default_session(self, app, store):
        store.create_table("T", ["id"])
        assert "T" in SqlTableStore().list_tables()
