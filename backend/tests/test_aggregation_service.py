import pytest

from barpos.services.aggregation_service import (
    ATTRIBUTION_PROPORTIONAL,
    average_order_value,
    daily_revenue,
    monthly_revenue,
    payment_breakdown,
    top_items,
    total_count,
    total_revenue,
)


@pytest.fixture
def orders(make_order):
    return [
        make_order("A", 10, items=[{"id": "1", "name": "Lager", "qty": 2, "unit_price": 5}]),
        make_order("B", 5, items=[{"id": "1", "name": "Lager", "qty": 1}]),
        make_order("C", 8, payment_method="CARD",
                   items=[{"id": "2", "name": "Wine", "qty": 1, "line_total": 8}]),
    ]


class TestTotals:
    def test_revenue_and_count(self, orders):
        assert total_revenue(orders) == 23
        assert total_count(orders) == 3
        assert average_order_value(orders) == pytest.approx(23 / 3)

    def test_empty(self):
        assert total_revenue([]) == 0
        assert total_count([]) == 0
        assert average_order_value([]) == 0

    def test_revenue_is_additive(self, orders):
        assert total_revenue(orders[:1]) + total_revenue(orders[1:]) == total_revenue(orders)


class TestTopItems:
    def test_quantity_and_revenue_per_item(self, make_order):
        orders = [
            make_order("A", 10, items=[{"id": "1", "name": "Lager", "qty": 2, "unit_price": 5}]),
            make_order("B", 5, items=[{"id": "1", "name": "Lager", "qty": 1}]),
        ]
        [lager] = top_items(orders)
        assert lager.to_dict() == {"item_id": "1", "item_name": "Lager", "count": 3, "revenue": 15.0}

    def test_ranked_by_quantity_ties_keep_first_seen(self, make_order):
        orders = [
            make_order("A", 1, items=[{"id": "crisps", "qty": 1}, {"id": "nachos", "qty": 2}]),
            make_order("B", 1, items=[{"id": "olives", "qty": 2}, {"id": "crisps", "qty": 1}]),
        ]
        assert [item.item_id for item in top_items(orders)] == ["crisps", "nachos", "olives"]

    def test_limit(self, orders):
        assert [item.item_id for item in top_items(orders, 1)] == ["1"]
        assert top_items(orders, 0) == []

    def test_non_positive_quantities_ignored(self, make_order):
        orders = [make_order("A", 4, items=[{"id": "1", "qty": 0}, {"id": "2", "qty": -1}])]
        assert top_items(orders) == []

    def test_line_total_wins_over_unit_price(self, make_order):
        orders = [make_order("A", 99, items=[{"id": "1", "qty": 2, "unit_price": 5, "line_total": 9}])]
        assert top_items(orders)[0].revenue == 9

    def test_order_total_attribution_credits_every_unpriced_line(self, make_order):
        orders = [make_order("A", 12, items=[{"id": "1", "qty": 1}, {"id": "2", "qty": 1}])]
        assert [item.revenue for item in top_items(orders)] == [12, 12]

    def test_proportional_attribution_splits_remainder(self, make_order):
        orders = [make_order("A", 20, items=[
            {"id": "1", "qty": 1, "unit_price": 8},
            {"id": "2", "qty": 3},
            {"id": "3", "qty": 1},
        ])]
        revenue = {item.item_id: item.revenue for item in top_items(orders, attribution=ATTRIBUTION_PROPORTIONAL)}
        assert revenue == {"1": 8, "2": pytest.approx(9), "3": pytest.approx(3)}

    def test_proportional_never_negative(self, make_order):
        orders = [make_order("A", 5, items=[{"id": "1", "qty": 1, "line_total": 8}, {"id": "2", "qty": 1}])]
        revenue = {item.item_id: item.revenue for item in top_items(orders, attribution=ATTRIBUTION_PROPORTIONAL)}
        assert revenue["2"] == 0

    def test_unknown_attribution(self, orders):
        with pytest.raises(ValueError):
            top_items(orders, attribution="per_line")


class TestTimeSeries:
    def test_daily_revenue_in_local_days(self, make_order):
        orders = [
            make_order("A", 4, created_at="2024-01-01T04:30:00.000Z"),
            make_order("B", 6, created_at="2024-01-01T06:00:00.000Z"),
            make_order("C", 2.5, created_at="2024-01-01T07:00:00.000Z"),
        ]
        assert daily_revenue(orders, 300) == [
            {"date": "2023-12-31", "total_amount": 4.0},
            {"date": "2024-01-01", "total_amount": 8.5},
        ]

    def test_daily_revenue_skips_unreadable_timestamps(self, make_order):
        orders = [make_order("A", 4, created_at=""), make_order("B", 6, created_at="2024-01-02T00:00:00.000Z")]
        assert daily_revenue(orders, 0) == [{"date": "2024-01-02", "total_amount": 6.0}]

    def test_monthly_revenue_has_twelve_months(self, make_order):
        orders = [
            make_order("A", 10, created_at="2024-01-31T20:00:00.000Z"),
            make_order("B", 5, created_at="2024-12-01T00:00:00.000Z"),
        ]
        months = monthly_revenue(orders, -330)
        assert [entry["month"] for entry in months] == [
            "Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
        ]
        assert months[0]["total_amount"] == 0
        assert months[1]["total_amount"] == 10
        assert months[11]["total_amount"] == 5

    def test_monthly_revenue_of_nothing(self):
        assert all(entry["total_amount"] == 0 for entry in monthly_revenue([], 0))
        assert len(monthly_revenue([], 0)) == 12

    def test_payment_breakdown_groups_methods(self, orders, make_order):
        orders = orders + [make_order("D", 1, payment_method="  ")]
        assert payment_breakdown(orders) == [
            {"payment_method": "CASH", "total_amount": 15.0},
            {"payment_method": "CARD", "total_amount": 8.0},
            {"payment_method": "UNKNOWN", "total_amount": 1.0},
        ]

    def test_aggregations_are_repeatable(self, orders):
        assert daily_revenue(orders, 0) == daily_revenue(orders, 0)
        assert [item.to_dict() for item in top_items(orders)] == [item.to_dict() for item in top_items(orders)]
