"""
Pytest fixtures for payment tests.

Fixtures build a buyer with a PENDING order and a PENDING payment in a
few stock situations, plus configured webhook secrets.

Usage:
    def test_completes(pending_payment):
        FulfillmentService.apply(pending_payment.id, CanonicalOutcome.COMPLETED)
"""

import pytest

from catalog.models import DeliveryType
from catalog.tests.factories import PlanFactory, StockItemFactory
from orders.tests.factories import CartItemFactory, OrderFactory, OrderItemFactory, UserFactory
from payments.tests.factories import CRYPTOMUS_SECRET, WEEPAY_SECRET, PaymentFactory


@pytest.fixture
def webhook_secrets(settings):
    settings.CRYPTOMUS_WEBHOOK_SECRET = CRYPTOMUS_SECRET
    settings.WEEPAY_WEBHOOK_SECRET = WEEPAY_SECRET
    return {"CRYPTOMUS": CRYPTOMUS_SECRET, "WEEPAY": WEEPAY_SECRET}


# =============================================================================
# Catalog
# =============================================================================


@pytest.fixture
def automatic_plan(db):
    """AUTOMATIC plan with a single unit of stock."""
    plan = PlanFactory(
        delivery_type=DeliveryType.AUTOMATIC,
        product__name="Spotify",
        plan_type="Premium",
    )
    StockItemFactory(plan=plan)
    return plan


@pytest.fixture
def manual_plan(db):
    return PlanFactory(
        delivery_type=DeliveryType.MANUAL,
        product__name="Netflix",
        plan_type="Family",
    )


# =============================================================================
# Orders and payments
# =============================================================================


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def pending_order(user, automatic_plan):
    """PENDING order for one unit of automatic_plan, still in the buyer's cart."""
    order = OrderFactory(user=user, total=automatic_plan.price)
    OrderItemFactory(order=order, plan=automatic_plan, quantity=1)
    CartItemFactory(user=user, plan=automatic_plan)
    return order


@pytest.fixture
def pending_payment(pending_order):
    return PaymentFactory(order=pending_order)
