"""
Factory Boy factories for order test data.

Usage:
    from orders.tests.factories import OrderFactory, OrderItemFactory

    order = OrderFactory(user=user)
    OrderItemFactory(order=order, plan=plan, quantity=2)
"""

from decimal import Decimal

import factory

from catalog.tests.factories import PlanFactory
from orders.models import CartItem, Order, OrderItem, OrderStatus


class UserFactory(factory.django.DjangoModelFactory):
    """Factory for the default auth user."""

    class Meta:
        model = "auth.User"
        django_get_or_create = ("username",)
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"buyer{n}")
    email = factory.Sequence(lambda n: f"buyer{n}@example.com")
    password = factory.PostGenerationMethodCall("set_password", "testpass123")
    is_active = True


class OrderFactory(factory.django.DjangoModelFactory):
    """
    Factory for Order instances.

    Creates a PENDING order with no items; add lines with OrderItemFactory.
    """

    class Meta:
        model = Order

    user = factory.SubFactory(UserFactory)
    total = Decimal("4.99")
    currency = "USD"
    status = OrderStatus.PENDING


class OrderItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    plan = factory.SubFactory(PlanFactory)
    quantity = 1
    price = factory.LazyAttribute(lambda item: item.plan.price)
    currency = "USD"


class CartItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CartItem

    user = factory.SubFactory(UserFactory)
    plan = factory.SubFactory(PlanFactory)
    quantity = 1
