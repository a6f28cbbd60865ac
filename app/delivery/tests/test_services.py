"""
Tests for DeliveryService.

Covers:
1. FIFO stock allocation for AUTOMATIC items
2. Idempotent re-delivery (no second StockItem, no second ticket)
3. Support ticket creation for MANUAL items
4. Delivery status queries
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import IntegrityError
from django.utils import timezone
from freezegun import freeze_time

from catalog.models import DeliveryType, StockItem
from catalog.tests.factories import PlanFactory, StockItemFactory
from core.exceptions import ConflictError
from delivery.models import SupportTicket, TicketCategory, TicketPriority, TicketStatus
from delivery.services import DeliveryService
from delivery.tests.factories import SupportTicketFactory
from orders.models import OrderStatus
from orders.tests.factories import OrderFactory, OrderItemFactory


pytestmark = pytest.mark.django_db


@pytest.fixture
def completed_order():
    return OrderFactory(status=OrderStatus.COMPLETED)


@pytest.fixture
def automatic_plan():
    return PlanFactory(delivery_type=DeliveryType.AUTOMATIC)


@pytest.fixture
def manual_plan():
    return PlanFactory(
        delivery_type=DeliveryType.MANUAL,
        product__name="Netflix",
        plan_type="Family",
    )


# =============================================================================
# AUTOMATIC delivery
# =============================================================================


class TestAutomaticDelivery:
    def test_allocates_oldest_unused_stock(self, completed_order, automatic_plan):
        now = timezone.now()
        with freeze_time(now - timedelta(days=2)):
            oldest = StockItemFactory(plan=automatic_plan)
        with freeze_time(now - timedelta(days=1)):
            StockItemFactory(plan=automatic_plan)
        item = OrderItemFactory(order=completed_order, plan=automatic_plan)

        result = DeliveryService.process_delivery(completed_order.id, item.id)

        assert result.success
        assert result.data.stock_item_id == str(oldest.id)
        item.refresh_from_db()
        oldest.refresh_from_db()
        assert item.stock_item_id == oldest.id
        assert item.delivered_at is not None
        assert item.delivery_type == DeliveryType.AUTOMATIC
        assert oldest.is_used is True
        assert oldest.used_at is not None

    def test_second_call_does_not_allocate_again(self, completed_order, automatic_plan):
        StockItemFactory.create_batch(2, plan=automatic_plan)
        item = OrderItemFactory(order=completed_order, plan=automatic_plan)

        first = DeliveryService.process_delivery(completed_order.id, item.id)
        second = DeliveryService.process_delivery(completed_order.id, item.id)

        assert second.success
        assert second.data.already_processed is True
        assert second.data.stock_item_id == first.data.stock_item_id
        assert StockItem.objects.filter(plan=automatic_plan, is_used=True).count() == 1

    def test_no_stock(self, completed_order, automatic_plan):
        StockItemFactory(plan=automatic_plan, is_used=True)
        item = OrderItemFactory(order=completed_order, plan=automatic_plan)

        result = DeliveryService.process_delivery(completed_order.id, item.id)

        assert not result
        assert result.error_code == "NO_STOCK_AVAILABLE"
        item.refresh_from_db()
        assert item.stock_item_id is None
        assert item.delivered_at is None

    def test_two_items_get_distinct_stock(self, completed_order, automatic_plan):
        StockItemFactory.create_batch(2, plan=automatic_plan)
        first = OrderItemFactory(order=completed_order, plan=automatic_plan)
        second = OrderItemFactory(order=completed_order, plan=automatic_plan)

        DeliveryService.process_delivery(completed_order.id, first.id)
        DeliveryService.process_delivery(completed_order.id, second.id)

        first.refresh_from_db()
        second.refresh_from_db()
        assert first.stock_item_id != second.stock_item_id

    def test_item_must_belong_to_order(self, completed_order, automatic_plan):
        item = OrderItemFactory(plan=automatic_plan)

        result = DeliveryService.process_delivery(completed_order.id, item.id)

        assert result.error_code == "ORDER_ITEM_NOT_FOUND"


# =============================================================================
# MANUAL delivery
# =============================================================================


class TestManualDelivery:
    def test_opens_ticket(self, completed_order, manual_plan):
        item = OrderItemFactory(order=completed_order, plan=manual_plan, quantity=2)

        result = DeliveryService.process_delivery(completed_order.id, item.id)

        assert result.success
        ticket = SupportTicket.objects.get()
        assert result.data.ticket_number == ticket.ticket_number == "DELIVERY-000001"
        assert ticket.user_id == completed_order.user_id
        assert ticket.title == "Delivery Request - Netflix"
        assert ticket.category == TicketCategory.ORDER_ISSUES
        assert ticket.priority == TicketPriority.MEDIUM
        assert ticket.is_auto_created is True
        assert ticket.tags == ["delivery", "auto-created"]
        assert "- Quantity: 2" in ticket.description
        item.refresh_from_db()
        assert item.ticket_id == ticket.id
        assert item.delivered_at is None

    def test_numbering_follows_existing_tickets(self, completed_order, manual_plan):
        SupportTicketFactory()
        item = OrderItemFactory(order=completed_order, plan=manual_plan)

        result = DeliveryService.process_delivery(completed_order.id, item.id)

        assert result.data.ticket_number == "DELIVERY-000002"

    def test_existing_ticket_is_reused(self, completed_order, manual_plan):
        item = OrderItemFactory(order=completed_order, plan=manual_plan)

        DeliveryService.process_delivery(completed_order.id, item.id)
        again = DeliveryService.process_delivery(completed_order.id, item.id)

        assert again.data.already_processed is True
        assert SupportTicket.objects.count() == 1

    def test_gives_up_after_repeated_number_collisions(self, completed_order, manual_plan):
        item = OrderItemFactory(order=completed_order, plan=manual_plan)

        with patch(
            "delivery.services.SupportTicket.objects.create",
            side_effect=IntegrityError("duplicate"),
        ):
            with pytest.raises(ConflictError):
                DeliveryService.process_delivery(completed_order.id, item.id)


# =============================================================================
# Status queries
# =============================================================================


class TestDeliveryStatus:
    def test_unknown_item(self):
        assert DeliveryService.get_delivery_status(uuid.uuid4()) == {"status": "NOT_FOUND"}
        assert DeliveryService.is_delivered(uuid.uuid4()) is False

    def test_automatic_pending_then_delivered(self, completed_order, automatic_plan):
        stock = StockItemFactory(plan=automatic_plan, content="login:pass")
        item = OrderItemFactory(order=completed_order, plan=automatic_plan)

        assert DeliveryService.get_delivery_status(item.id)["status"] == "PENDING"

        DeliveryService.process_delivery(completed_order.id, item.id)
        status = DeliveryService.get_delivery_status(item.id)

        assert status["status"] == "DELIVERED"
        assert status["stock_item"] == {"id": str(stock.id), "content": "login:pass"}
        assert DeliveryService.is_delivered(item.id) is True

    def test_manual_delivered_when_ticket_closed(self, completed_order, manual_plan):
        item = OrderItemFactory(order=completed_order, plan=manual_plan)
        DeliveryService.process_delivery(completed_order.id, item.id)

        assert DeliveryService.is_delivered(item.id) is False
        assert DeliveryService.get_delivery_status(item.id)["status"] == "PENDING"

        SupportTicket.objects.update(status=TicketStatus.CLOSED)

        assert DeliveryService.is_delivered(item.id) is True
        status = DeliveryService.get_delivery_status(item.id)
        assert status["status"] == "DELIVERED"
        assert status["ticket"]["ticket_number"] == "DELIVERY-000001"
