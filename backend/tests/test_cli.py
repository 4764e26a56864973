# Overview: Pytest coverage for the Flask CLI command groups.

from shopledger.models.records import SALE_HEADER


def test_system_init(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init"])
    assert result.exit_code == 0
    assert "Created table: Products" in result.output


def test_migrate_and_list_partitions(app, store):
    store.create_table("Sales", SALE_HEADER)
    store.append_rows("Sales", [
        ["X1", "3/10/2026", "A x1", 1000, 400, ""],
        ["X2", "garbage", "A x1", 1000, 400, ""],
    ])
    runner = app.test_cli_runner()

    result = runner.invoke(args=["ledger", "migrate"])
    assert result.exit_code == 0
    assert "Sales_10_2026: 1 rows appended" in result.output
    assert "1 rows skipped" in result.output

    result = runner.invoke(args=["ledger", "partitions"])
    assert "Sales_10_2026" in result.output


def test_products_list_empty(app, db_session):
    result = app.test_cli_runner().invoke(args=["products", "list"])
    assert "No products found." in result.output
