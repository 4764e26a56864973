# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales API routes

Checkout builds a Cart from the request lines against the current catalog
and commits it. When a checkout is interrupted after the sale was written,
its report is kept in memory under the sale id so that
POST /api/sales/checkout/<sale_id>/resume can finish it.
"""

from flask import Blueprint, current_app, request

from .. import get_names, get_store
from ..models import Cart, Sale
from ..services import reporting_service, sales_service
from ..services.checkout_service import CheckoutError, CheckoutIncompleteError, checkout, resume_checkout
from ..services.ledger_service import load_partition_by_name
from ..services.link_service import update_sale_timestamp
from ..services.products_service import load_catalog
from ..tabular import StoreError
from ..time_utils import parse_ledger_datetime
from ..validation import NotFoundError, ValidationError, coerce_amount, coerce_int
from .params import hint_args, json_body, month_arg

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _pending() -> dict:
    return current_app.extensions.setdefault("pending_checkouts", {})


def _retry_options() -> dict:
    return {
        "attempts": current_app.config.get("STORE_RETRY_ATTEMPTS", 3),
        "backoff_base": current_app.config.get("STORE_RETRY_BACKOFF", 0.1),
    }


def _incomplete_response(e: CheckoutIncompleteError):
    _pending()[e.report.sale.id] = e.report
    status = 502 if isinstance(e.__cause__, StoreError) else 409
    return {"error": str(e), "report": e.report.to_dict()}, status


def build_cart(catalog, lines) -> Cart:
    """Cart from [{"code", "quantity", "price"?}, ...] against the catalog."""
    if not isinstance(lines, list) or not lines:
        raise ValidationError("lines must be a non-empty list")

    cart = Cart()
    for raw in lines:
        if not isinstance(raw, dict):
            raise ValidationError("each line must be an object")
        code = str(raw.get("code") or "").strip()
        quantity = coerce_int(raw.get("quantity", 1), "quantity")
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")

        cart.add(catalog.get(code))
        if quantity > 1:
            cart.set_quantity(code, quantity - 1)
        if raw.get("price") is not None:
            cart.set_price(code, coerce_amount(raw["price"], "price"))
    return cart


@sales_bp.get("")
def list_sales():
    """
    Sales of one month.

    Query params:
    - month: YYYY-MM (default: current month)
    - period: optional today|week|month|all filter within that month
    """
    store = get_store()
    when = month_arg()
    partition = sales_service.load_sales(store, get_names().sales, when)

    sales = list(partition)
    period = request.args.get("period")
    if period:
        sales = reporting_service.filter_sales(sales, period)

    return {
        "partition": partition.name,
        "exists": partition.exists,
        "sales": [s.to_dict() for s in sales],
        "stats": reporting_service.dashboard_stats(partition),
    }


@sales_bp.post("/checkout")
def checkout_route():
    """Body: {"lines": [{"code", "quantity", "price"?}], "note"?}"""
    payload = json_body()
    store = get_store()
    names = get_names()
    cart = build_cart(load_catalog(store, names.products), payload.get("lines"))

    try:
        sale = checkout(store, names, cart, note=payload.get("note") or "", **_retry_options())
    except CheckoutIncompleteError as e:
        return _incomplete_response(e)
    except CheckoutError as e:
        return {"error": str(e), "details": e.details}, 400

    return {"sale": sale.to_dict()}, 201


@sales_bp.post("/checkout/<sale_id>/resume")
def resume_checkout_route(sale_id: str):
    report = _pending().get(sale_id)
    if report is None:
        raise NotFoundError(f"No interrupted checkout for sale {sale_id}")

    try:
        report = resume_checkout(get_store(), get_names(), report, **_retry_options())
    except CheckoutIncompleteError as e:
        return _incomplete_response(e)

    _pending().pop(sale_id, None)
    return {"report": report.to_dict()}


@sales_bp.get("/checkout/pending")
def pending_checkouts():
    return {"pending": [r.to_dict() for r in _pending().values()]}


@sales_bp.post("/manual")
def manual_sale():
    """Body: {"details": "Tea x2, Cake @15000 x1", "datetime"?, "note"?}"""
    payload = json_body()
    store = get_store()
    names = get_names()
    try:
        sale = sales_service.create_manual_sale(
            store,
            names.sales,
            load_catalog(store, names.products),
            details=payload.get("details"),
            sold_at=parse_ledger_datetime(payload["datetime"]) if payload.get("datetime") else None,
            note=payload.get("note") or "",
            id_prefix=names.sale_prefix,
        )
    except sales_service.SaleError as e:
        return {"error": str(e), "details": e.details}, 400
    return {"sale": sale.to_dict()}, 201


@sales_bp.get("/<sale_id>")
def get_sale(sale_id: str):
    sale = sales_service.get_sale(get_store(), get_names().sales, sale_id, hint_args())
    return {"sale": sale.to_dict()}


@sales_bp.patch("/<sale_id>")
def update_sale(sale_id: str):
    """
    Body: {"note"?, "datetime"?, "partition"?}

    A new datetime is propagated to the linked income transaction.
    """
    payload = json_body()
    store = get_store()
    names = get_names()
    # validated before any write
    new_dt = parse_ledger_datetime(payload["datetime"]) if payload.get("datetime") else None
    sale = sales_service.get_sale(store, names.sales, sale_id, hint_args(payload))

    if "note" in payload:
        partition = load_partition_by_name(store, sale.partition, Sale)
        sale = sales_service.update_sale(partition, sale_id, note=payload["note"] or "")

    if new_dt is not None:
        result = update_sale_timestamp(store, names, sale_id, new_dt, hints=[sale.partition])
        return {"sale": result.sale.to_dict(), "link": result.to_dict()}

    return {"sale": sale.to_dict()}


@sales_bp.delete("/<sale_id>")
def delete_sale(sale_id: str):
    store = get_store()
    names = get_names()
    sale = sales_service.get_sale(store, names.sales, sale_id, hint_args())
    partition = load_partition_by_name(store, sale.partition, Sale)
    sales_service.delete_sale(partition, sale_id)
    return {"deleted": sale_id, "partition": sale.partition}
