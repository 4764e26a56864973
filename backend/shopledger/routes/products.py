# Overview: Flask API routes for products operations; parses input and returns JSON responses.

from flask import Blueprint, request

from .. import get_names, get_store
from ..services import products_service
from ..validation import coerce_amount, coerce_int
from .params import json_body

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _catalog():
    return products_service.load_catalog(get_store(), get_names().products)


@products_bp.get("")
def list_products():
    """
    List the catalog.

    Query params:
    - q: optional case-insensitive filter on code or name
    """
    catalog = _catalog()
    q = (request.args.get("q") or "").strip().lower()
    products = [
        p for p in catalog
        if not q or q in p.code.lower() or q in p.name.lower()
    ]
    return {
        "products": [p.to_dict() for p in products],
        "low_stock": [p.code for p in catalog.low_stock()],
        "out_of_stock": [p.code for p in catalog.out_of_stock()],
    }


@products_bp.get("/<code>")
def get_product(code: str):
    return {"product": _catalog().get(code).to_dict()}


@products_bp.post("")
def create_product():
    payload = json_body()
    product = products_service.add_product(
        _catalog(),
        name=payload.get("name"),
        cost=coerce_amount(payload.get("cost", 0), "cost"),
        price=coerce_amount(payload.get("price"), "price"),
        stock=coerce_int(payload.get("stock", 0), "stock"),
        code=payload.get("code"),
        code_prefix=get_names().product_prefix,
    )
    return {"product": product.to_dict()}, 201


@products_bp.post("/<code>/duplicate")
def duplicate_product(code: str):
    product = products_service.duplicate_product(_catalog(), code, code_prefix=get_names().product_prefix)
    return {"product": product.to_dict()}, 201


@products_bp.patch("/<code>")
def update_product(code: str):
    payload = json_body()
    changes = {}
    if "name" in payload:
        changes["name"] = payload["name"]
    for field in ("cost", "price"):
        if field in payload:
            changes[field] = coerce_amount(payload[field], field)
    if "stock" in payload:
        changes["stock"] = coerce_int(payload["stock"], "stock")

    product = products_service.update_product(_catalog(), code, **changes)
    return {"product": product.to_dict()}


@products_bp.post("/<code>/stock")
def adjust_stock(code: str):
    """Body: {"delta": int} - negative to take stock out."""
    payload = json_body()
    delta = coerce_int(payload.get("delta"), "delta")
    product = products_service.adjust_stock(_catalog(), code, delta)
    return {"product": product.to_dict()}


@products_bp.delete("/<code>")
def delete_product(code: str):
    products_service.delete_product(_catalog(), code)
    return {"deleted": code}
