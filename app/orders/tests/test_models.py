"""
Tests for Order state transitions and order numbering.
"""

import re

import pytest
from django_fsm import TransitionNotAllowed

from orders.models import OrderStatus, generate_order_number
from orders.tests.factories import OrderFactory, OrderItemFactory


pytestmark = pytest.mark.django_db


def test_order_number_format():
    assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{8}", generate_order_number())


class TestOrderTransitions:
    def test_complete_sets_completed_at(self):
        order = OrderFactory()

        order.complete()
        order.save()
        order.refresh_from_db()

        assert order.status == OrderStatus.COMPLETED
        assert order.completed_at is not None

    def test_processing_order_can_complete(self):
        order = OrderFactory()
        order.start_processing()
        order.complete()

        assert order.status == OrderStatus.COMPLETED

    def test_cancel_records_close_time(self):
        order = OrderFactory()

        order.cancel()

        assert order.status == OrderStatus.CANCELLED
        assert order.completed_at is not None

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.CANCELLED, OrderStatus.FAILED, OrderStatus.REFUNDED],
    )
    def test_closed_orders_cannot_complete(self, status):
        order = OrderFactory(status=status)

        with pytest.raises(TransitionNotAllowed):
            order.complete()

    def test_only_completed_orders_refund(self):
        order = OrderFactory()

        with pytest.raises(TransitionNotAllowed):
            order.refund()

        order.complete()
        order.refund()
        assert order.status == OrderStatus.REFUNDED

    def test_is_open(self):
        assert OrderFactory(status=OrderStatus.PROCESSING).is_open
        assert not OrderFactory(status=OrderStatus.FAILED).is_open


def test_effective_delivery_type_falls_back_to_plan():
    item = OrderItemFactory(delivery_type=None)

    assert item.effective_delivery_type == item.plan.delivery_type
