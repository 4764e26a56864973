# Overview: Flask API routes for reports; read-only views over the loaded partitions.

from flask import Blueprint, request

from .. import get_names, get_store
from ..services import reporting_service
from ..services.products_service import load_catalog
from ..services.sales_service import load_sales
from ..time_utils import now, parse_ledger_date

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _reference():
    raw = request.args.get("date")
    return parse_ledger_date(raw) if raw else now().date()


@reports_bp.get("/summary")
def summary():
    """
    Sales summary, top products and cash flow for a period.

    Query params:
    - period: today|week|month|all (default month)
    - date: reference day, D/M/YYYY or YYYY-MM-DD (default today)
    """
    store = get_store()
    names = get_names()
    return reporting_service.period_report(
        store,
        names,
        request.args.get("period", "month"),
        reference=_reference(),
        catalog=load_catalog(store, names.products),
    )


@reports_bp.get("/dashboard")
def dashboard():
    today = _reference()
    sales = load_sales(get_store(), get_names().sales, today)
    return {"date": today.isoformat(), "stats": reporting_service.dashboard_stats(sales, today)}


@reports_bp.get("/cash-flow")
def cash_flow():
    """Daily income/expense series; period is week (default) or month."""
    return reporting_service.cash_flow_report(
        get_store(),
        get_names().transactions,
        request.args.get("period", "week"),
        _reference(),
    )
