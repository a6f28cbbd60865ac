"""
Tests for RefundService.
"""

from decimal import Decimal

import pytest

from orders.models import Order, OrderStatus
from payments.services.fulfillment import FulfillmentService
from payments.services.refund_service import RefundService
from payments.state_machines import PaymentStatus, SubscriptionStatus
from payments.tests.factories import PaymentFactory
from payments.webhooks.status_maps import CanonicalOutcome


pytestmark = pytest.mark.django_db


@pytest.fixture
def paid_payment(pending_payment):
    FulfillmentService.apply(pending_payment.id, CanonicalOutcome.COMPLETED)
    pending_payment.refresh_from_db()
    return pending_payment


class TestFullRefund:
    def test_refunds_payment_order_and_subscriptions(self, paid_payment):
        result = RefundService.refund_payment(paid_payment.id, reason="Customer request")

        paid_payment.refresh_from_db()
        order = Order.objects.get(id=paid_payment.order_id)
        assert result.success
        assert result.data.full is True
        assert result.data.refunded_amount == paid_payment.amount
        assert paid_payment.status == PaymentStatus.REFUNDED
        assert paid_payment.refund_amount == paid_payment.amount
        assert paid_payment.refunded_at is not None
        assert paid_payment.failure_reason == "Customer request"
        assert order.status == OrderStatus.REFUNDED
        subscription = order.subscriptions.get()
        assert subscription.status == SubscriptionStatus.CANCELLED
        assert result.data.cancelled_subscription_ids == [str(subscription.id)]

    def test_partial_amounts_adding_up_to_total_refund_fully(self, paid_payment):
        first = RefundService.refund_payment(paid_payment.id, amount=Decimal("2.00"))
        second = RefundService.refund_payment(paid_payment.id, amount=Decimal("2.99"))

        paid_payment.refresh_from_db()
        assert first.data.full is False
        assert second.data.full is True
        assert paid_payment.status == PaymentStatus.REFUNDED


class TestPartialRefund:
    def test_records_amount_and_keeps_order(self, paid_payment):
        result = RefundService.refund_payment(paid_payment.id, amount="1.00")

        paid_payment.refresh_from_db()
        assert result.success
        assert paid_payment.status == PaymentStatus.PARTIALLY_REFUNDED
        assert paid_payment.refund_amount == Decimal("1.00")
        assert Order.objects.get(id=paid_payment.order_id).status == OrderStatus.COMPLETED
        assert result.data.cancelled_subscription_ids == []


class TestRefundRejected:
    @pytest.mark.parametrize("amount", ["0", "-1", "100.00", "abc"])
    def test_invalid_amounts(self, paid_payment, amount):
        result = RefundService.refund_payment(paid_payment.id, amount=amount)

        paid_payment.refresh_from_db()
        assert not result.success
        assert result.error_code == "INVALID_REFUND_AMOUNT"
        assert paid_payment.status == PaymentStatus.COMPLETED

    def test_pending_payment(self, pending_payment):
        result = RefundService.refund_payment(pending_payment.id)

        assert result.error_code == "PAYMENT_NOT_REFUNDABLE"

    def test_already_refunded(self, paid_payment):
        RefundService.refund_payment(paid_payment.id)

        result = RefundService.refund_payment(paid_payment.id)

        assert result.error_code == "PAYMENT_NOT_REFUNDABLE"

    def test_unknown_payment(self):
        result = RefundService.refund_payment("00000000-0000-0000-0000-000000000000")

        assert result.error_code == "PAYMENT_NOT_FOUND"

    def test_stock_conflict_payment_is_refundable(self, user):
        payment = PaymentFactory(status=PaymentStatus.COMPLETED, order__user=user)
        Order.objects.filter(id=payment.order_id).update(status=OrderStatus.CANCELLED)

        result = RefundService.refund_payment(payment.id)

        assert result.success
        assert Order.objects.get(id=payment.order_id).status == OrderStatus.CANCELLED
