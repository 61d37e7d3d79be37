# Overview: Loads one window of orders from whichever sales tables hold data.

"""
Order sources

Sales history lives in up to three tables, depending on how far a deployment
has migrated:

1. ``transactions`` - current checkout records
2. ``orders`` - previous generation, same row shape
3. ``sales`` - legacy flat ledger, one item per row

Sources 1 and 2 are always read and merged by ``order_id`` with
``transactions`` winning. Source 3 is read only when both are empty. A
missing table counts as empty; any other storage failure propagates so a
report never silently under-counts.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .order_schemas import (
    BaseOrderSchema,
    CanonicalOrder,
    OrderParseError,
    ORDERS_SCHEMA,
    SALES_SCHEMA,
    TRANSACTIONS_SCHEMA,
)
from .storage_reader import RelationMissingError, StorageReader


logger = logging.getLogger(__name__)


def merge_orders(
    order_rows: list[CanonicalOrder],
    transaction_rows: list[CanonicalOrder],
) -> list[CanonicalOrder]:
    """Union keyed by order_id, transactions overriding orders, oldest first."""
    merged: dict[str, CanonicalOrder] = {}
    for order in order_rows:
        merged[order.order_id] = order
    for order in transaction_rows:
        merged[order.order_id] = order
    return sorted(merged.values(), key=lambda order: order.created_at)


def _is_voided(row: Any) -> bool:
    return isinstance(row, Mapping) and bool(row.get("is_voided"))


class OrderSourceReconciler:
    def __init__(self, reader: StorageReader):
        self._reader = reader

    def _read(self, schema: BaseOrderSchema, start_iso: str, end_iso: str) -> list[Any]:
        try:
            return self._reader.read_range(schema.relation, schema.columns, start_iso, end_iso)
        except RelationMissingError as exc:
            logger.info("Order source %s unavailable, treating as empty: %s", schema.relation, exc)
            return []

    def _parse(self, schema: BaseOrderSchema, rows: list[Any]) -> list[CanonicalOrder]:
        orders = []
        for index, row in enumerate(rows):
            try:
                orders.append(schema.parse_row(row, index))
            except OrderParseError as exc:
                logger.warning("Skipping unreadable %s row: %s", schema.relation, exc)
        return orders

    def load_orders(self, start_iso: str, end_iso: str) -> list[CanonicalOrder]:
        """
        Orders created in [start_iso, end_iso), oldest first.

        Raises DataSourceError for any storage failure other than a missing
        relation; nothing partial is returned in that case.
        """
        transaction_rows = self._read(TRANSACTIONS_SCHEMA, start_iso, end_iso)
        order_rows = self._read(ORDERS_SCHEMA, start_iso, end_iso)

        if transaction_rows or order_rows:
            return merge_orders(
                self._parse(ORDERS_SCHEMA, order_rows),
                self._parse(TRANSACTIONS_SCHEMA, transaction_rows),
            )

        sales_rows = [row for row in self._read(SALES_SCHEMA, start_iso, end_iso) if not _is_voided(row)]
        return self._parse(SALES_SCHEMA, sales_rows)
