# Overview: Flask API routes for health, partition listing and workbook bootstrap.

import time

from flask import Blueprint, current_app, request

from .. import get_names, get_store
from ..services.partition_service import list_partitions
from ..services.products_service import ensure_catalog
from ..tabular import StoreError
from ..validation import ValidationError

system_bp = Blueprint("system", __name__)


def check_store_health() -> dict:
    """Round-trip the tabular store; returns status and table count."""
    start_time = time.time()
    try:
        tables = get_store().list_tables()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"tables": len(tables)},
        }
    except StoreError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Store error",
        }


@system_bp.get("/health")
def health():
    store = check_store_health()
    status = 200 if store["status"] == "healthy" else 503
    return {"status": store["status"], "checks": {"store": store}}, status


@system_bp.get("/api/partitions")
def partitions():
    """
    Months available for a ledger, newest first (month selector).

    Query params:
    - ledger: "sales" (default) or "transactions"
    """
    names = get_names()
    ledger = request.args.get("ledger", "sales")
    bases = {"sales": names.sales, "transactions": names.transactions}
    if ledger not in bases:
        raise ValidationError("ledger must be sales or transactions")

    keys = list_partitions(get_store(), bases[ledger])
    return {
        "ledger": ledger,
        "partitions": [
            {"name": k.name, "year": k.year, "month": k.month} for k in keys
        ],
    }


@system_bp.post("/api/system/init")
def init_workbook():
    """Create the base tables the app needs (idempotent)."""
    created = ensure_catalog(get_store(), get_names().products)
    return {"products_table_created": created}, 201 if created else 200
