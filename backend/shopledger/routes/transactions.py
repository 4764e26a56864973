# Overview: Flask API routes for cash-flow transactions; parses input and returns JSON responses.

from flask import Blueprint, request

from .. import get_names, get_store
from ..models import Transaction
from ..services import transactions_service
from ..services.ledger_service import load_partition_by_name
from ..services.link_service import update_transaction_date
from ..time_utils import parse_ledger_date
from ..validation import coerce_positive_amount
from .params import hint_args, json_body, month_arg

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.get("")
def list_transactions():
    """
    Transactions of one month with income/expense/balance.

    Query params:
    - month: YYYY-MM (default: current month)
    - period: optional today|week|month|all filter within that month
    """
    partition = transactions_service.load_transactions(get_store(), get_names().transactions, month_arg())
    items = list(partition)
    period = request.args.get("period")
    if period:
        items = transactions_service.filter_by_period(items, period)

    return {
        "partition": partition.name,
        "exists": partition.exists,
        "transactions": [t.to_dict() for t in items],
        "summary": transactions_service.summarize(items),
    }


@transactions_bp.post("")
def create_transaction():
    """Body: {"direction": "income"|"expense", "description", "amount", "note"?, "date"?}"""
    payload = json_body()
    names = get_names()
    transaction = transactions_service.add_transaction(
        get_store(),
        names.transactions,
        direction=payload.get("direction"),
        description=payload.get("description"),
        amount=coerce_positive_amount(payload.get("amount"), "amount"),
        note=payload.get("note") or "",
        on=payload.get("date"),
        id_prefix=names.transaction_prefix,
    )
    return {"transaction": transaction.to_dict()}, 201


@transactions_bp.patch("/<transaction_id>")
def update_transaction(transaction_id: str):
    """
    Body: {"description"?, "amount"?, "note"?, "date"?, "partition"?}

    A new date is propagated to the linked sale (its time of day is kept).
    """
    payload = json_body()
    store = get_store()
    names = get_names()
    # validated before any write
    new_day = parse_ledger_date(payload["date"]) if payload.get("date") else None
    transaction = transactions_service.find_transaction(
        store, names.transactions, transaction_id, hint_args(payload)
    )
    if transaction is None:
        return {"error": f"Transaction {transaction_id} not found"}, 404

    changes = {}
    if "description" in payload:
        changes["description"] = payload["description"]
    if "amount" in payload:
        changes["amount"] = coerce_positive_amount(payload["amount"], "amount")
    if "note" in payload:
        changes["note"] = payload["note"] or ""
    if changes:
        partition = load_partition_by_name(store, transaction.partition, Transaction)
        transaction = transactions_service.update_transaction(partition, transaction_id, **changes)

    if new_day is not None:
        result = update_transaction_date(
            store, names, transaction_id, new_day, hints=[transaction.partition]
        )
        return {"transaction": result.transaction.to_dict(), "link": result.to_dict()}

    return {"transaction": transaction.to_dict()}


@transactions_bp.delete("/<transaction_id>")
def delete_transaction(transaction_id: str):
    store = get_store()
    transaction = transactions_service.find_transaction(
        store, get_names().transactions, transaction_id, hint_args()
    )
    if transaction is None:
        return {"error": f"Transaction {transaction_id} not found"}, 404

    partition = load_partition_by_name(store, transaction.partition, Transaction)
    transactions_service.delete_transaction(partition, transaction_id)
    return {"deleted": transaction_id, "partition": transaction.partition}
