"""
Factory Boy factories for payment test data.

Usage:
    from payments.tests.factories import PaymentFactory

    # A pending Cryptomus payment for a new order
    payment = PaymentFactory()

    # Pay for an existing order through Weepay
    payment = PaymentFactory(order=order, method=PaymentMethod.WEEPAY)
"""

from datetime import timedelta
from decimal import Decimal

import factory
from django.utils import timezone

from orders.tests.factories import OrderFactory
from payments.models import Payment, UserSubscription, WebhookEvent
from payments.state_machines import (
    PaymentMethod,
    PaymentStatus,
    SubscriptionStatus,
    WebhookOutcome,
)

CRYPTOMUS_SECRET = "cryptomus-test-secret"
WEEPAY_SECRET = "weepay-test-secret"


class PaymentFactory(factory.django.DjangoModelFactory):
    """
    Factory for Payment instances.

    Creates a PENDING payment for the order's total.
    """

    class Meta:
        model = Payment

    order = factory.SubFactory(OrderFactory)
    method = PaymentMethod.CRYPTOMUS
    status = PaymentStatus.PENDING
    amount = factory.LazyAttribute(lambda payment: payment.order.total)
    currency = "USD"


class CompletedPaymentFactory(PaymentFactory):
    status = PaymentStatus.COMPLETED
    provider_payment_id = factory.Sequence(lambda n: f"provider-tx-{n}")
    completed_at = factory.LazyFunction(timezone.now)


class UserSubscriptionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = UserSubscription

    user = factory.LazyAttribute(lambda sub: sub.order_item.order.user)
    plan = factory.LazyAttribute(lambda sub: sub.order_item.plan)
    order = factory.LazyAttribute(lambda sub: sub.order_item.order)
    order_item = factory.SubFactory("orders.tests.factories.OrderItemFactory")
    status = SubscriptionStatus.ACTIVE
    start_date = factory.LazyFunction(timezone.now)
    end_date = factory.LazyAttribute(lambda sub: sub.start_date + timedelta(days=30))
    renewal_date = factory.SelfAttribute("end_date")
    price = Decimal("4.99")
    currency = "USD"


class WebhookEventFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = WebhookEvent

    provider = PaymentMethod.CRYPTOMUS
    provider_status = "paid"
    payload = factory.LazyFunction(lambda: {"status": "paid"})
    outcome = WebhookOutcome.APPLIED
    http_status = 200
