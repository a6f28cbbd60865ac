"""
Tests for StockAvailability.

Covers:
1. Unused/reserved/available counts
2. Per-plan demand aggregation across order lines
3. Shortfall detection and description format
4. The per-item availability report used before payment
"""

import pytest

from catalog.models import DeliveryType
from catalog.services import StockAvailability, StockShortfall, describe_shortfalls
from catalog.tests.factories import PlanFactory, ProductFactory, StockItemFactory
from orders.models import OrderStatus
from orders.tests.factories import OrderFactory, OrderItemFactory


pytestmark = pytest.mark.django_db


# =============================================================================
# Counts
# =============================================================================


class TestCounts:
    def test_unused_count_ignores_used_stock(self, automatic_plan):
        StockItemFactory(plan=automatic_plan, is_used=True)

        assert StockAvailability.unused_count(automatic_plan.id) == 2

    def test_completed_undelivered_items_are_reserved(self, automatic_plan):
        completed = OrderFactory(status=OrderStatus.COMPLETED)
        OrderItemFactory(order=completed, plan=automatic_plan, quantity=1)

        assert StockAvailability.reserved_count(automatic_plan.id) == 1
        assert StockAvailability.available_count(automatic_plan.id) == 1

    def test_pending_and_delivered_items_are_not_reserved(self, automatic_plan):
        OrderItemFactory(
            order=OrderFactory(status=OrderStatus.PENDING),
            plan=automatic_plan,
        )
        stock = StockItemFactory(plan=automatic_plan, is_used=True)
        OrderItemFactory(
            order=OrderFactory(status=OrderStatus.COMPLETED),
            plan=automatic_plan,
            stock_item=stock,
        )

        assert StockAvailability.reserved_count(automatic_plan.id) == 0

    def test_available_count_never_negative(self, automatic_plan):
        OrderItemFactory(
            order=OrderFactory(status=OrderStatus.COMPLETED),
            plan=automatic_plan,
            quantity=5,
        )

        assert StockAvailability.available_count(automatic_plan.id) == 0


# =============================================================================
# Shortfalls
# =============================================================================


class TestFindShortfalls:
    def test_sufficient_stock_has_no_shortfall(self, automatic_plan):
        order = OrderFactory()
        OrderItemFactory(order=order, plan=automatic_plan, quantity=2)

        assert StockAvailability.find_shortfalls(order.items.all()) == []

    def test_quantities_are_summed_per_plan(self, automatic_plan):
        order = OrderFactory()
        OrderItemFactory(order=order, plan=automatic_plan, quantity=2)
        OrderItemFactory(order=order, plan=automatic_plan, quantity=1)

        shortfalls = StockAvailability.find_shortfalls(order.items.all())

        assert len(shortfalls) == 1
        assert shortfalls[0].requested == 3
        assert shortfalls[0].available == 2

    def test_manual_items_never_short(self, manual_plan):
        order = OrderFactory()
        OrderItemFactory(order=order, plan=manual_plan, quantity=10)

        assert StockAvailability.find_shortfalls(order.items.all()) == []

    def test_lock_inside_transaction(self, automatic_plan):
        from django.db import transaction

        order = OrderFactory()
        OrderItemFactory(order=order, plan=automatic_plan, quantity=3)

        with transaction.atomic():
            shortfalls = StockAvailability.find_shortfalls(order.items.all(), lock=True)

        assert [s.plan_id for s in shortfalls] == [str(automatic_plan.id)]

    def test_describe_format(self):
        product = ProductFactory(name="Spotify")
        plan = PlanFactory(product=product, plan_type="Premium")
        shortfall = StockShortfall(
            plan_id=str(plan.id),
            product_name="Spotify",
            plan_type="Premium",
            requested=2,
            available=0,
        )
        other = StockShortfall(
            plan_id="x", product_name="Netflix", plan_type="4K", requested=1, available=0
        )

        assert shortfall.describe() == "Spotify Premium (0/2)"
        assert describe_shortfalls([shortfall, other]) == (
            "Spotify Premium (0/2), Netflix 4K (0/1)"
        )


# =============================================================================
# Pre-payment report
# =============================================================================


class TestCheckOrder:
    def test_reports_each_item(self, automatic_plan, manual_plan):
        empty_plan = PlanFactory(delivery_type=DeliveryType.AUTOMATIC)
        order = OrderFactory()
        ok_item = OrderItemFactory(order=order, plan=automatic_plan, quantity=1)
        short_item = OrderItemFactory(order=order, plan=empty_plan, quantity=1)
        manual_item = OrderItemFactory(order=order, plan=manual_plan, quantity=1)

        report = {entry.order_item_id: entry for entry in StockAvailability.check_order(order)}

        assert report[str(ok_item.id)].valid is True
        assert report[str(ok_item.id)].available == 2
        assert report[str(short_item.id)].error == "Out of stock"
        assert report[str(manual_item.id)].valid is True
        assert report[str(manual_item.id)].available is None

    def test_partial_stock_message(self, automatic_plan):
        order = OrderFactory()
        item = OrderItemFactory(order=order, plan=automatic_plan, quantity=3)

        [entry] = StockAvailability.check_order(order)

        assert entry.order_item_id == str(item.id)
        assert entry.error == "Only 2 available for 3 requested"

    def test_lines_of_one_plan_share_its_stock(self, automatic_plan):
        order = OrderFactory()
        first = OrderItemFactory(order=order, plan=automatic_plan, quantity=2)
        second = OrderItemFactory(order=order, plan=automatic_plan, quantity=1)

        report = {entry.order_item_id: entry for entry in StockAvailability.check_order(order)}

        for item in (first, second):
            assert report[str(item.id)].valid is False
            assert report[str(item.id)].error == "Only 2 available for 3 requested"
        assert StockAvailability.find_shortfalls(order.items.all())[0].requested == 3
