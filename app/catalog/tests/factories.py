"""
Factory Boy factories for catalog test data.

Usage:
    from catalog.tests.factories import PlanFactory, StockItemFactory

    plan = PlanFactory(delivery_type=DeliveryType.MANUAL)
    StockItemFactory.create_batch(3, plan=plan)
"""

from decimal import Decimal

import factory

from catalog.models import BillingPeriod, DeliveryType, Plan, Product, StockItem


class ProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Product

    name = factory.Sequence(lambda n: f"Service {n}")
    slug = factory.Sequence(lambda n: f"service-{n}")
    is_active = True


class PlanFactory(factory.django.DjangoModelFactory):
    """
    Factory for Plan instances.

    Defaults to an AUTOMATIC monthly plan with no stock; add stock with
    StockItemFactory.
    """

    class Meta:
        model = Plan

    product = factory.SubFactory(ProductFactory)
    name = factory.Sequence(lambda n: f"Premium {n}")
    plan_type = "Premium"
    delivery_type = DeliveryType.AUTOMATIC
    duration_days = 30
    billing_period = BillingPeriod.MONTHLY
    price = Decimal("4.99")
    currency = "USD"
    is_active = True


class StockItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = StockItem

    plan = factory.SubFactory(PlanFactory)
    content = factory.Sequence(lambda n: f"account{n}@example.com:secret{n}")
    is_used = False
