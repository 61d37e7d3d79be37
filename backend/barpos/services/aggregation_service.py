# Overview: Pure aggregations over a list of canonical orders.

"""
Aggregation

Nothing here touches storage. Every function takes the orders of one window
and returns plain values; identical input gives identical output. Sums run
at full precision and are rounded to cents only when a report entry is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .order_schemas import CanonicalOrder, LineItem, normalize_payment_method
from .time_window_service import local_day_label, local_month_index


MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Unpriced line items get the whole order total (historical behaviour, which
# over-credits orders with several unpriced lines) ...
ATTRIBUTION_ORDER_TOTAL = "order_total"
# ... or the unpriced remainder of the order total, split by quantity.
ATTRIBUTION_PROPORTIONAL = "proportional"


def round_money(value: float) -> float:
    return round(value, 2)


def plain_number(value: float) -> float | int:
    return int(value) if float(value).is_integer() else value


@dataclass
class TopItem:
    item_id: str
    item_name: str
    count: float = 0.0
    revenue: float = 0.0

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "count": plain_number(self.count),
            "revenue": round_money(self.revenue),
        }


def total_revenue(orders: Iterable[CanonicalOrder]) -> float:
    return sum((order.total_amount for order in orders), 0.0)


def total_count(orders: list[CanonicalOrder]) -> int:
    return len(orders)


def average_order_value(orders: list[CanonicalOrder]) -> float:
    count = total_count(orders)
    return total_revenue(orders) / count if count else 0.0


def _priced_revenue(item: LineItem) -> Optional[float]:
    if item.line_total is not None and item.line_total > 0:
        return item.line_total
    if item.unit_price is not None and item.unit_price > 0:
        return item.unit_price * item.quantity
    return None


def _unpriced_shares(order: CanonicalOrder) -> dict[int, float]:
    """Per-line share (keyed by position) of whatever the priced lines leave of the order total."""
    priced_total = 0.0
    unpriced: list[tuple[int, float]] = []
    for position, item in enumerate(order.items):
        if item.quantity <= 0:
            continue
        priced = _priced_revenue(item)
        if priced is None:
            unpriced.append((position, item.quantity))
        else:
            priced_total += priced

    unpriced_quantity = sum(quantity for _, quantity in unpriced)
    remainder = max(order.total_amount - priced_total, 0.0)
    return {
        position: remainder * quantity / unpriced_quantity
        for position, quantity in unpriced
    }


def top_items(
    orders: Iterable[CanonicalOrder],
    limit: Optional[int] = None,
    *,
    attribution: str = ATTRIBUTION_ORDER_TOTAL,
) -> list[TopItem]:
    """
    Items ranked by quantity sold.

    Ties keep first-seen order. Revenue per line is ``line_total`` when
    positive, else ``unit_price * quantity``, else derived from the order
    total according to ``attribution``.
    """
    if attribution not in (ATTRIBUTION_ORDER_TOTAL, ATTRIBUTION_PROPORTIONAL):
        raise ValueError(f"Unknown revenue attribution {attribution!r}")

    grouped: dict[str, TopItem] = {}
    for order in orders:
        shares = _unpriced_shares(order) if attribution == ATTRIBUTION_PROPORTIONAL else {}
        for position, item in enumerate(order.items):
            if item.quantity <= 0:
                continue
            entry = grouped.get(item.item_id)
            if entry is None:
                entry = grouped[item.item_id] = TopItem(item_id=item.item_id, item_name=item.item_name)
            entry.count += item.quantity

            revenue = _priced_revenue(item)
            if revenue is None:
                revenue = shares[position] if attribution == ATTRIBUTION_PROPORTIONAL else order.total_amount
            entry.revenue += revenue

    ranked = sorted(grouped.values(), key=lambda entry: entry.count, reverse=True)
    return ranked if limit is None else ranked[:limit]


def daily_revenue(orders: Iterable[CanonicalOrder], offset_minutes: int) -> list[dict]:
    """Revenue per local calendar day, oldest day first."""
    totals: dict[str, float] = {}
    for order in orders:
        day = local_day_label(order.created_at, offset_minutes)
        if day is None:
            continue
        totals[day] = totals.get(day, 0.0) + order.total_amount
    return [
        {"date": day, "total_amount": round_money(amount)}
        for day, amount in sorted(totals.items())
    ]


def monthly_revenue(orders: Iterable[CanonicalOrder], offset_minutes: int) -> list[dict]:
    """Twelve entries, Jan..Dec, zero where a month has no sales."""
    totals = [0.0] * 12
    for order in orders:
        month_index = local_month_index(order.created_at, offset_minutes)
        if month_index is None:
            continue
        totals[month_index] += order.total_amount
    return [
        {"month": MONTH_LABELS[index], "total_amount": round_money(amount)}
        for index, amount in enumerate(totals)
    ]


def payment_breakdown(orders: Iterable[CanonicalOrder]) -> list[dict]:
    totals: dict[str, float] = {}
    for order in orders:
        method = normalize_payment_method(order.payment_method)
        totals[method] = totals.get(method, 0.0) + order.total_amount
    return [
        {"payment_method": method, "total_amount": round_money(amount)}
        for method, amount in totals.items()
    ]
