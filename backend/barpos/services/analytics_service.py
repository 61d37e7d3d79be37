# Overview: Service-layer composition of the analytics payloads served to the dashboards.

"""
Analytics

Each function serves one screen. It computes the window, loads the orders
once through the reconciler and hands them to the pure aggregations.
Storage errors (other than tolerated missing relations) propagate; the
top-selling item is the only part allowed to degrade on its own.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from barpos.extensions import db
from .aggregation_service import (
    ATTRIBUTION_ORDER_TOTAL,
    average_order_value,
    daily_revenue,
    monthly_revenue,
    payment_breakdown,
    plain_number,
    round_money,
    top_items,
    total_count,
    total_revenue,
)
from .month_closure_service import apply_cutoff, latest_closure_cutoff
from .order_schemas import to_number
from .order_source_service import OrderSourceReconciler
from .storage_reader import RelationMissingError, StorageReader
from .time_window_service import (
    WINDOW_MONTH,
    WINDOW_YEAR,
    TimeRange,
    compute_range,
)
from .top_item_service import TopItemResolver


INVENTORY_RELATION = "inventory"
VOID_LOGS_RELATION = "void_logs"


def build_reader() -> StorageReader:
    return StorageReader(db.session, db.metadata)


def count_low_stock(reader: StorageReader, threshold: int) -> int:
    rows = reader.read_all(INVENTORY_RELATION, ("quantity",))
    return sum(1 for row in rows if to_number(row.get("quantity")) <= threshold)


def count_voids(reader: StorageReader, window: TimeRange) -> int:
    try:
        return len(reader.read_range(VOID_LOGS_RELATION, ("id",), window.start_iso, window.end_iso))
    except RelationMissingError:
        return 0


def dashboard_summary(
    *,
    reader: StorageReader,
    range_kind: str,
    offset_minutes: int,
    include_low_stock: bool,
    low_stock_threshold: int,
    top_limit: int,
    attribution: str = ATTRIBUTION_ORDER_TOTAL,
    now: Optional[datetime] = None,
) -> dict:
    window = compute_range(range_kind, offset_minutes, now)
    orders = OrderSourceReconciler(reader).load_orders(window.start_iso, window.end_iso)

    return {
        "range": range_kind,
        "window": window.to_dict(),
        "totalSales": round_money(total_revenue(orders)),
        "totalOrders": total_count(orders),
        "topItems": [item.to_dict() for item in top_items(orders, top_limit, attribution=attribution)],
        "lowStockItems": count_low_stock(reader, low_stock_threshold) if include_low_stock else None,
    }


def owner_overview(
    *,
    reader: StorageReader,
    offset_minutes: int,
    now: Optional[datetime] = None,
) -> dict:
    """Current month in detail plus the month-by-month series of the current year."""
    year_window = compute_range(WINDOW_YEAR, offset_minutes, now)
    month_window = compute_range(WINDOW_MONTH, offset_minutes, now)

    year_orders = OrderSourceReconciler(reader).load_orders(year_window.start_iso, year_window.end_iso)
    month_orders = [order for order in year_orders if month_window.contains(order.created_at)]

    top_item = TopItemResolver(reader).resolve_top_item(month_orders, month_window)

    return {
        "monthlyOverview": {
            "total_sales": round_money(total_revenue(month_orders)),
            "total_orders": total_count(month_orders),
            "average_order_value": round_money(average_order_value(month_orders)),
        },
        "paymentBreakdown": payment_breakdown(month_orders),
        "dailyRevenue": daily_revenue(month_orders, offset_minutes),
        "monthlySales": monthly_revenue(year_orders, offset_minutes),
        "topSellingItem": top_item.to_dict() if top_item else None,
    }


def sales_report(
    *,
    reader: StorageReader,
    window: TimeRange,
    top_limit: int,
    attribution: str = ATTRIBUTION_ORDER_TOTAL,
) -> dict:
    """
    Totals for ``window``, never reaching back past the latest month closure.

    When the cut-off window is empty the full window is read instead, so a
    closure made earlier today does not blank out the report.
    """
    reconciler = OrderSourceReconciler(reader)
    effective = apply_cutoff(window, latest_closure_cutoff(reader))

    orders = reconciler.load_orders(effective.start_iso, effective.end_iso)
    if not orders and effective != window:
        effective = window
        orders = reconciler.load_orders(window.start_iso, window.end_iso)

    revenue = total_revenue(orders)
    transactions = total_count(orders)

    return {
        "window": effective.to_dict(),
        "total_revenue": round_money(revenue),
        "total_transactions": transactions,
        "total_voided": count_voids(reader, effective),
        "avg_transaction": round_money(revenue / transactions) if transactions else 0.0,
        "top_items": [
            {"name": item.item_name, "count": plain_number(item.count), "revenue": round_money(item.revenue)}
            for item in top_items(orders, top_limit, attribution=attribution)
        ],
    }
