# Overview: Best-selling item of a window, preferring normalized order lines.

"""
Top-selling item

Embedded order JSON may lack canonical item ids, so the winner is taken
from ``order_items`` when that table can answer:

1. ``order_items`` rows whose ``order_id`` is one of the window's order ids
   (business ids and numeric row ids both appear there)
2. if that read fails, ``order_items`` rows created inside the window
3. if neither produced a winner, the embedded JSON via ``top_items``

The display name comes from the orders' own line items, then from the
inventory catalog for numeric ids. Storage failures here only degrade the
answer; they never fail the surrounding report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from .aggregation_service import plain_number, top_items
from .order_schemas import CanonicalOrder, to_number
from .storage_reader import StorageError, StorageReader
from .time_window_service import TimeRange


logger = logging.getLogger(__name__)

ORDER_ITEMS_RELATION = "order_items"
INVENTORY_RELATION = "inventory"


@dataclass(frozen=True)
class TopItemResult:
    item_id: str
    item_name: Optional[str]
    total_quantity: float

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "total_quantity": plain_number(self.total_quantity),
        }


def _is_numeric_id(value: str) -> bool:
    return value.isascii() and value.isdigit()


def build_name_lookup(orders: Iterable[CanonicalOrder]) -> dict[str, str]:
    """item_id -> first display name seen. A bare numeric id is not a name."""
    names: dict[str, str] = {}
    for order in orders:
        for item in order.items:
            if item.item_id in names or not item.item_name:
                continue
            if item.item_name == item.item_id and _is_numeric_id(item.item_id):
                continue
            names[item.item_id] = item.item_name
    return names


def collect_order_ids(orders: Iterable[CanonicalOrder]) -> list[str]:
    """Business order ids plus numeric row ids, de-duplicated in first-seen order."""
    ids: dict[str, None] = {}
    for order in orders:
        if order.order_id:
            ids.setdefault(order.order_id, None)
        if _is_numeric_id(order.id):
            ids.setdefault(order.id, None)
    return list(ids)


def top_item_from_rows(rows: Iterable[dict[str, Any]]) -> Optional[tuple[str, float]]:
    """Highest summed quantity; the first id to reach the maximum keeps it."""
    quantities: dict[str, float] = {}
    for row in rows:
        raw_id = row.get("item_id")
        item_id = str(raw_id).strip() if raw_id is not None else ""
        if not item_id:
            continue
        quantity = to_number(row.get("quantity"))
        if quantity <= 0:
            continue
        quantities[item_id] = quantities.get(item_id, 0.0) + quantity

    top: Optional[tuple[str, float]] = None
    for item_id, quantity in quantities.items():
        if top is None or quantity > top[1]:
            top = (item_id, quantity)
    return top


class TopItemResolver:
    def __init__(self, reader: StorageReader):
        self._reader = reader

    def _top_from_order_items(
        self, orders: list[CanonicalOrder], window: TimeRange
    ) -> Optional[tuple[str, float]]:
        order_ids = collect_order_ids(orders)
        if not order_ids:
            return None
        try:
            rows = self._reader.read_in(
                ORDER_ITEMS_RELATION, ("item_id", "quantity", "order_id"), "order_id", order_ids
            )
        except StorageError as exc:
            logger.warning("order_items lookup by order id failed, retrying by date: %s", exc)
            try:
                rows = self._reader.read_range(
                    ORDER_ITEMS_RELATION,
                    ("item_id", "quantity", "created_at"),
                    window.start_iso,
                    window.end_iso,
                )
            except StorageError as retry_exc:
                logger.warning("order_items lookup by date failed: %s", retry_exc)
                return None
        return top_item_from_rows(rows)

    def _lookup_inventory_name(self, item_id: str) -> Optional[str]:
        try:
            row = self._reader.get_by_id(INVENTORY_RELATION, ("item_name", "name"), int(item_id))
        except StorageError as exc:
            logger.warning("Inventory name lookup for item %s failed: %s", item_id, exc)
            return None
        if row is None:
            return None
        for key in ("item_name", "name"):
            value = row.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    def _resolve_name(self, item_id: str, names: dict[str, str]) -> Optional[str]:
        if item_id in names:
            return names[item_id]
        if _is_numeric_id(item_id):
            return self._lookup_inventory_name(item_id)
        return None

    def resolve_top_item(
        self, month_orders: list[CanonicalOrder], window: TimeRange
    ) -> Optional[TopItemResult]:
        if not month_orders:
            return None

        names = build_name_lookup(month_orders)
        top = self._top_from_order_items(month_orders, window)
        if top is None:
            ranked = top_items(month_orders, 1)
            if ranked:
                top = (ranked[0].item_id, ranked[0].count)
        if top is None:
            return None

        item_id, quantity = top
        return TopItemResult(
            item_id=item_id,
            item_name=self._resolve_name(item_id, names),
            total_quantity=quantity,
        )
