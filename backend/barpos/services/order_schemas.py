from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from barpos.time_utils import parse_iso_datetime, to_utc_z


UNKNOWN_PAYMENT_METHOD = "UNKNOWN"
UNKNOWN_ITEM_ID = "unknown"
LEGACY_ITEM_NAME = "Item"
LEGACY_ORDER_PREFIX = "legacy-sales-"


class OrderParseError(ValueError):
    """A raw row could not be turned into a CanonicalOrder."""


@dataclass(frozen=True)
class LineItem:
    item_id: str
    item_name: str
    quantity: float
    unit_price: float | None = None
    line_total: float | None = None


@dataclass(frozen=True)
class CanonicalOrder:
    """One sale, whichever table it came from. ``created_at`` is ISO-8601 UTC or ""."""
    id: str
    order_id: str
    total_amount: float
    payment_method: str
    created_at: str
    items: tuple[LineItem, ...] = ()


def to_number(value: Any) -> float:
    """Parse-or-zero: anything non-numeric or non-finite becomes 0.0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _first_present(row: Mapping, *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def _first_text(row: Mapping, *keys: str) -> str | None:
    for key in keys:
        text = _to_text(row.get(key))
        if text is not None:
            return text
    return None


def _optional_number(value: Any) -> float | None:
    return None if value is None else to_number(value)


def normalize_payment_method(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip().upper()
    return UNKNOWN_PAYMENT_METHOD


def _normalize_created_at(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            parsed = parse_iso_datetime(text)
        except ValueError:
            # Kept verbatim; time series skip what they cannot read
            return text
        return to_utc_z(parsed) if parsed is not None else ""
    raise OrderParseError(f"created_at has unsupported type {type(value).__name__}")


def _raw_items(value: Any) -> list:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def parse_line_item(raw_item: Mapping) -> LineItem:
    item_id = _first_text(raw_item, "item_id", "id", "name", "item_name") or UNKNOWN_ITEM_ID
    item_name = _first_text(raw_item, "name", "item_name") or item_id
    return LineItem(
        item_id=item_id,
        item_name=item_name,
        quantity=to_number(raw_item.get("quantity")),
        unit_price=_optional_number(raw_item.get("unit_price")),
        line_total=_optional_number(raw_item.get("line_total")),
    )


class BaseOrderSchema:
    """Boundary between one source's loosely typed rows and CanonicalOrder."""

    relation: str = ""
    columns: tuple[str, ...] = ()

    def parse_row(self, raw_row: Any, index: int) -> CanonicalOrder:
        if not isinstance(raw_row, Mapping):
            raise OrderParseError(f"{self.relation} row {index} is not a mapping")
        return self.normalize_row(raw_row, index)

    def normalize_row(self, raw_row: Mapping, index: int) -> CanonicalOrder:
        raise NotImplementedError


class OrderRowSchema(BaseOrderSchema):
    """
    ``transactions`` and ``orders`` share this shape: one row per order with
    the cart embedded as JSON.
    """

    columns = ("id", "order_id", "total_amount", "payment_method", "created_at", "items")

    def __init__(self, relation: str):
        self.relation = relation

    def normalize_row(self, raw_row: Mapping, index: int) -> CanonicalOrder:
        row_id = raw_row.get("id")
        order_id = _first_present(raw_row, "order_id", "external_order_id", "id")
        items = tuple(
            parse_line_item(entry) for entry in _raw_items(raw_row.get("items")) if isinstance(entry, Mapping)
        )
        return CanonicalOrder(
            id=str(row_id if row_id is not None else index + 1),
            order_id=str(order_id) if order_id is not None else f"row-{index + 1}",
            total_amount=to_number(_first_present(raw_row, "total_amount", "amount")),
            payment_method=normalize_payment_method(raw_row.get("payment_method")),
            created_at=_normalize_created_at(raw_row.get("created_at")),
            items=items,
        )


class SalesRowSchema(BaseOrderSchema):
    """
    Legacy ``sales`` rows: one item per row, no payment method. Each row
    becomes its own single-line order under a synthetic ``legacy-sales-<id>``
    key that cannot collide with real order ids.
    """

    relation = "sales"
    columns = ("id", "item_name", "amount", "line_total", "quantity", "unit_price", "created_at", "is_voided")

    def normalize_row(self, raw_row: Mapping, index: int) -> CanonicalOrder:
        row_id = raw_row.get("id")
        row_key = row_id if row_id is not None else index + 1
        item_name = _to_text(raw_row.get("item_name")) or LEGACY_ITEM_NAME

        raw_quantity = raw_row.get("quantity")
        quantity = max(1, math.floor(to_number(raw_quantity if raw_quantity is not None else 1)))
        line_total = to_number(_first_present(raw_row, "line_total", "amount"))
        unit_price = line_total / quantity

        return CanonicalOrder(
            id=str(row_key),
            order_id=f"{LEGACY_ORDER_PREFIX}{row_key}",
            total_amount=line_total,
            payment_method=UNKNOWN_PAYMENT_METHOD,
            created_at=_normalize_created_at(raw_row.get("created_at")),
            items=(
                LineItem(
                    item_id=item_name,
                    item_name=item_name,
                    quantity=float(quantity),
                    unit_price=round(unit_price, 2),
                    line_total=round(line_total, 2),
                ),
            ),
        )


TRANSACTIONS_SCHEMA = OrderRowSchema("transactions")
ORDERS_SCHEMA = OrderRowSchema("orders")
SALES_SCHEMA = SalesRowSchema()
