"""
Pytest fixtures for catalog tests.
"""

import pytest

from catalog.models import DeliveryType
from catalog.tests.factories import PlanFactory, StockItemFactory


@pytest.fixture
def automatic_plan(db):
    """An AUTOMATIC plan with two units of stock."""
    plan = PlanFactory(delivery_type=DeliveryType.AUTOMATIC)
    StockItemFactory.create_batch(2, plan=plan)
    return plan


@pytest.fixture
def manual_plan(db):
    """A MANUAL plan (fulfilled through support tickets, no stock)."""
    return PlanFactory(delivery_type=DeliveryType.MANUAL, plan_type="Family")
