# Overview: Flask CLI command groups for bootstrap, inspection, and migration.

# backend/shopledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to shopledger (PowerShell: $env:FLASK_APP="shopledger").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create the local store tables and the Products table (idempotent).
#
# Ledgers:
# - python -m flask ledger partitions [--ledger sales|transactions]
#   List monthly partitions, newest first, with row counts.
# - python -m flask ledger migrate
#   Move legacy flat Sales/Transactions rows into monthly partitions (safe to re-run).
#
# Products:
# - python -m flask products list [--low-stock 5]
#   Print the catalog.

import click
from flask import current_app
from flask.cli import with_appcontext

from .config import LedgerNames
from .extensions import db
from .services.ledger_service import read_ids
from .services.migration_service import MigrationError, migrate
from .services.partition_service import list_partitions
from .services.products_service import ensure_catalog, load_catalog
from .tabular import SqlTableStore, StoreError


def _names() -> LedgerNames:
    return LedgerNames.from_config(current_app.config)


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create the store tables (if missing) and the Products table."""
    click.echo("START Initializing shop ledger...")
    db.create_all()
    click.echo("PASS Store tables ready")

    names = _names()
    created = ensure_catalog(SqlTableStore(db.session), names.products)
    if created:
        click.echo(f"PASS Created table: {names.products}")
    else:
        click.echo(f"PASS Using existing table: {names.products}")
    click.echo("DONE")


@click.group('ledger')
def ledger_group():
    """Monthly ledger partitions."""


@ledger_group.command('partitions')
@click.option('--ledger', type=click.Choice(['sales', 'transactions']), default='sales', help='Which ledger')
@with_appcontext
def partitions(ledger):
    """List partitions of one ledger with their row counts."""
    names = _names()
    base = names.sales if ledger == 'sales' else names.transactions
    store = SqlTableStore(db.session)

    keys = list_partitions(store, base)
    if not keys:
        click.echo(f"No {base} partitions found.")
        return

    click.echo("\n" + "=" * 40)
    click.echo(f"{'Partition':<28} {'Rows'}")
    click.echo("=" * 40)
    for key in keys:
        click.echo(f"{key.name:<28} {len(read_ids(store, key.name))}")
    click.echo("=" * 40 + "\n")


@ledger_group.command('migrate')
@with_appcontext
def migrate_command():
    """Partition the legacy flat Sales and Transactions tables."""
    click.echo("START Migrating legacy ledgers...")
    try:
        result = migrate(SqlTableStore(db.session), _names())
    except (MigrationError, StoreError) as e:
        click.echo(f"FAIL Migration stopped: {e}")
        raise click.Abort()

    for ledger in result.ledgers:
        for name, count in ledger.appended.items():
            click.echo(f"PASS {name}: {count} rows appended")
        if ledger.duplicates:
            click.echo(f"INFO {ledger.base}: {ledger.duplicates} rows already migrated")
        if ledger.skipped:
            click.echo(f"WARN {ledger.base}: {ledger.skipped} rows skipped (unparseable date): "
                       f"{', '.join(ledger.skipped_ids)}")
    click.echo(f"DONE {result.appended_total} rows appended, {result.skipped} skipped")


@click.group('products')
def products_group():
    """Product catalog inspection."""


@products_group.command('list')
@click.option('--low-stock', type=int, default=None, help='Only products with stock at or below this')
@with_appcontext
def list_products(low_stock):
    """Print the catalog."""
    catalog = load_catalog(SqlTableStore(db.session), _names().products)
    products = list(catalog)
    if low_stock is not None:
        products = [p for p in products if p.stock <= low_stock]

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'Code':<8} {'Name':<30} {'Cost':>10} {'Price':>10} {'Stock':>8}")
    click.echo("=" * 80)
    for p in products:
        click.echo(f"{p.code:<8} {p.name[:30]:<30} {p.cost:>10} {p.price:>10} {p.stock:>8}")
    click.echo("=" * 80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(products_group)
