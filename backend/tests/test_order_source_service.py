from datetime import datetime

import pytest

from barpos.services.order_source_service import OrderSourceReconciler, merge_orders
from barpos.services.storage_reader import DataSourceError


START = "2024-01-01T00:00:00.000Z"
END = "2024-02-01T00:00:00.000Z"


def _txn(order_id, total, created_at, **extra):
    row = {"id": f"uuid-{order_id}", "order_id": order_id, "total_amount": total,
           "payment_method": "card", "created_at": created_at, "items": []}
    row.update(extra)
    return row


class TestMergeOrders:
    def test_transactions_override_orders_with_same_id(self, make_order):
        merged = merge_orders(
            [make_order("X", 10), make_order("Y", 4, created_at="2024-01-10T00:00:00.000Z")],
            [make_order("X", 12)],
        )
        assert [(order.order_id, order.total_amount) for order in merged] == [("Y", 4), ("X", 12)]

    def test_sorted_by_created_at(self, make_order):
        merged = merge_orders(
            [make_order("B", 1, created_at="2024-01-03T00:00:00.000Z")],
            [make_order("A", 1, created_at="2024-01-02T00:00:00.000Z"),
             make_order("C", 1, created_at="2024-01-01T00:00:00.000Z")],
        )
        assert [order.order_id for order in merged] == ["C", "A", "B"]


class TestLoadOrders:
    def test_merges_both_current_sources(self, fake_reader):
        reader = fake_reader(tables={
            "transactions": [_txn("X", 12, "2024-01-05T10:00:00Z")],
            "orders": [
                {"id": 1, "order_id": "X", "total_amount": 10, "created_at": "2024-01-05T10:00:00Z"},
                {"id": 2, "order_id": "Z", "total_amount": 3, "created_at": "2024-01-04T09:00:00Z"},
            ],
        })
        orders = OrderSourceReconciler(reader).load_orders(START, END)

        assert [(order.order_id, order.total_amount) for order in orders] == [("Z", 3.0), ("X", 12.0)]
        assert not reader.called("read_range", "sales")

    def test_orders_alone_are_enough(self, fake_reader):
        reader = fake_reader(tables={"orders": [{"id": 2, "order_id": "Z", "total_amount": 3}]})
        orders = OrderSourceReconciler(reader).load_orders(START, END)
        assert [order.order_id for order in orders] == ["Z"]
        assert not reader.called("read_range", "sales")

    def test_falls_back_to_legacy_sales(self, fake_reader):
        reader = fake_reader(tables={
            "sales": [
                {"id": 7, "item_name": "Beer", "amount": 9, "quantity": 3,
                 "created_at": datetime(2024, 1, 2, 18, 0), "is_voided": False},
                {"id": 8, "item_name": "Wine", "amount": 8, "quantity": 1,
                 "created_at": datetime(2024, 1, 2, 19, 0), "is_voided": True},
            ],
        })
        orders = OrderSourceReconciler(reader).load_orders(START, END)

        assert len(orders) == 1
        legacy = orders[0]
        assert legacy.order_id == "legacy-sales-7"
        assert legacy.total_amount == 9.0
        assert legacy.items[0].quantity == 3
        assert legacy.items[0].unit_price == 3.0

    def test_missing_relations_count_as_empty(self, fake_reader):
        reader = fake_reader(
            tables={"orders": [{"id": 1, "order_id": "A", "total_amount": 5}]},
            missing=["transactions"],
        )
        assert [order.order_id for order in OrderSourceReconciler(reader).load_orders(START, END)] == ["A"]

    def test_everything_missing_is_an_empty_window(self, fake_reader):
        reader = fake_reader(missing=["transactions", "orders", "sales"])
        assert OrderSourceReconciler(reader).load_orders(START, END) == []

    @pytest.mark.parametrize("broken", ["transactions", "orders"])
    def test_other_failures_propagate(self, fake_reader, broken):
        reader = fake_reader(tables={"transactions": [_txn("X", 1, START)]}, broken=[broken])
        with pytest.raises(DataSourceError):
            OrderSourceReconciler(reader).load_orders(START, END)

    def test_broken_sales_propagates_when_needed(self, fake_reader):
        reader = fake_reader(broken=["sales"])
        with pytest.raises(DataSourceError):
            OrderSourceReconciler(reader).load_orders(START, END)

    def test_unreadable_row_is_skipped(self, fake_reader):
        reader = fake_reader(tables={
            "transactions": [_txn("X", 12, "2024-01-05T10:00:00Z"), _txn("Y", 5, 1704067200)],
        })
        orders = OrderSourceReconciler(reader).load_orders(START, END)
        assert [order.order_id for order in orders] == ["X"]
