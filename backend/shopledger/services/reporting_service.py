# Overview: Service-layer read models for the dashboard and the reports screen.

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable, Optional

from ..config import LedgerNames
from ..models import Sale, Transaction
from ..models.records import EXPENSE, INCOME
from ..sale_details import quantities_by_name
from ..tabular import TabularStore
from ..time_utils import PERIODS, in_period, now as local_now
from ..validation import ValidationError
from .ledger_service import load_partition_by_name
from .partition_service import PartitionKey, list_partitions
from .transactions_service import summarize

"""
Reports are computed from loaded partitions only; nothing here writes.

Sales without a parseable timestamp count in "all" and nowhere else.
Top products are ranked by quantity sold as read from the details text, so
a product renamed since the sale is reported under its old name.
"""

TOP_PRODUCTS_LIMIT = 5


def _sale_day(sale: Sale) -> Optional[date]:
    return sale.sold_at.date() if sale.sold_at else None


def filter_sales(sales: Iterable[Sale], period: str, today: date | None = None) -> list[Sale]:
    today = today or local_now().date()
    return [s for s in sales if in_period(_sale_day(s), period, today)]


def sales_summary(sales: Iterable[Sale]) -> dict:
    sales = list(sales)
    items_sold = sum(sum(quantities_by_name(s.details).values()) for s in sales)
    return {
        "revenue": sum(s.total for s in sales),
        "profit": sum(s.profit for s in sales),
        "orders": len(sales),
        "items_sold": items_sold,
    }


def dashboard_stats(sales: Iterable[Sale], today: date | None = None) -> dict:
    """Revenue, profit and order count of today's sales."""
    summary = sales_summary(filter_sales(sales, "today", today))
    return {"revenue": summary["revenue"], "profit": summary["profit"], "orders": summary["orders"]}


def top_products(sales: Iterable[Sale], catalog=None, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
    sold: dict[str, int] = {}
    for sale in sales:
        for name, qty in quantities_by_name(sale.details).items():
            sold[name] = sold.get(name, 0) + qty

    # highest quantity first; ties keep first-seen order
    ranked = sorted(sold.items(), key=lambda item: -item[1])[:limit]
    out = []
    for rank, (name, qty) in enumerate(ranked, start=1):
        product = catalog.find_by_name(name) if catalog is not None else None
        out.append({
            "rank": rank,
            "name": name,
            "code": product.code if product else None,
            "sold": qty,
        })
    return out


def _series_days(period: str, reference: date) -> list[date]:
    if period == "week":
        return [reference - timedelta(days=i) for i in range(6, -1, -1)]
    if period == "month":
        last = calendar.monthrange(reference.year, reference.month)[1]
        return [date(reference.year, reference.month, d) for d in range(1, last + 1)]
    raise ValidationError("period must be week or month")


def cash_flow_series(transactions: Iterable[Transaction], period: str, reference: date | None = None) -> dict:
    """
    Daily income/expense totals for a chart.

    week: the 7 days ending at reference; month: every day of the
    reference month.
    """
    days = _series_days(period, reference or local_now().date())

    income = {d: 0 for d in days}
    expense = {d: 0 for d in days}
    for t in transactions:
        if t.on not in income:
            continue
        if t.direction == INCOME:
            income[t.on] += t.amount
        elif t.direction == EXPENSE:
            expense[t.on] += t.amount

    return {
        "labels": [d.isoformat() for d in days],
        "income": [income[d] for d in days],
        "expense": [expense[d] for d in days],
    }


def _partition_names(store: TabularStore, base: str, period: str, reference: date) -> list[str]:
    if period not in PERIODS:
        raise ValidationError(f"period must be one of {', '.join(PERIODS)}")
    if period == "all":
        return [key.name for key in list_partitions(store, base)]
    if period == "week":
        months = {PartitionKey.for_date(base, reference - timedelta(days=7)).name}
        months.add(PartitionKey.for_date(base, reference).name)
        return sorted(months)
    return [PartitionKey.for_date(base, reference).name]


def period_report(
    store: TabularStore,
    names: LedgerNames,
    period: str,
    *,
    reference: date | None = None,
    catalog=None,
) -> dict:
    """
    Reports screen: sales summary, top products and cash flow for a period.

    Loads every partition the period touches (two months for a week that
    crosses a month boundary, all partitions for "all").
    """
    reference = reference or local_now().date()

    sales: list[Sale] = []
    for name in _partition_names(store, names.sales, period, reference):
        sales.extend(load_partition_by_name(store, name, Sale))
    transactions: list[Transaction] = []
    for name in _partition_names(store, names.transactions, period, reference):
        transactions.extend(load_partition_by_name(store, name, Transaction))

    period_sales = filter_sales(sales, period, reference)
    period_transactions = [t for t in transactions if in_period(t.on, period, reference)]

    return {
        "period": period,
        "reference": reference.isoformat(),
        "sales": sales_summary(period_sales),
        "top_products": top_products(period_sales, catalog),
        "cash_flow": summarize(period_transactions),
    }


def cash_flow_report(store: TabularStore, base: str, period: str, reference: date | None = None) -> dict:
    """cash_flow_series over the transaction partitions the chart's days fall in."""
    reference = reference or local_now().date()
    days = _series_days(period, reference)
    names = sorted({PartitionKey.for_date(base, d).name for d in days})

    transactions: list[Transaction] = []
    for name in names:
        transactions.extend(load_partition_by_name(store, name, Transaction))
    return cash_flow_series(transactions, period, reference)
