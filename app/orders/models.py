"""
Order, OrderItem and CartItem models.

Orders are created at checkout (outside this codebase's webhook core) in
PENDING and are moved forward only by payment fulfilment and refunds.

State Flow (Order):
    PENDING -> PROCESSING
    PENDING/PROCESSING -> COMPLETED   (payment captured, stock sufficient)
    PENDING/PROCESSING -> CANCELLED   (provider cancellation or stock conflict)
    PENDING/PROCESSING -> FAILED      (provider failure)
    COMPLETED -> REFUNDED

Usage:
    order = Order.objects.create(user=user, total=Decimal("9.98"))
    OrderItem.objects.create(order=order, plan=plan, quantity=1, price=plan.price)

    order.complete()
    order.save()
"""

from __future__ import annotations

import secrets

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from catalog.models import DeliveryType


class OrderStatus(models.TextChoices):
    """
    Lifecycle states of an Order.

    Terminal states: CANCELLED, FAILED, REFUNDED.
    COMPLETED only moves on through a refund.
    """

    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


OPEN_ORDER_STATUSES = [OrderStatus.PENDING, OrderStatus.PROCESSING]


def generate_order_number() -> str:
    """Human-readable order reference, e.g. ORD-20261016-9F2C1A7B."""
    return f"ORD-{timezone.now():%Y%m%d}-{secrets.token_hex(4).upper()}"


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    A customer's purchase of one or more plans.

    Fields:
        user: Buyer
        order_number: Reference shown to customers and echoed by providers
        total/currency: Amount charged
        status: FSM-managed lifecycle status
        completed_at: Set when the order reaches COMPLETED or CANCELLED
        cancellation_reason: Why the order was cancelled
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    order_number = models.CharField(
        max_length=40,
        unique=True,
        default=generate_order_number,
    )
    total = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    status = FSMField(
        default=OrderStatus.PENDING,
        choices=OrderStatus.choices,
        db_index=True,
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="orders_order_user_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Order({self.order_number}, {self.status})"

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_ORDER_STATUSES

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=OrderStatus.PENDING, target=OrderStatus.PROCESSING)
    def start_processing(self):
        pass

    @transition(
        field=status,
        source=OPEN_ORDER_STATUSES,
        target=OrderStatus.COMPLETED,
    )
    def complete(self):
        """Payment captured and every automatic plan had stock."""
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=OPEN_ORDER_STATUSES,
        target=OrderStatus.CANCELLED,
    )
    def cancel(self, reason: str | None = None):
        """
        Cancel the order.

        Used for provider cancellations and for stock conflicts. The
        completion timestamp records when the order was closed.
        """
        self.completed_at = timezone.now()
        self.cancellation_reason = reason

    @transition(
        field=status,
        source=OPEN_ORDER_STATUSES,
        target=OrderStatus.FAILED,
    )
    def fail(self):
        pass

    @transition(field=status, source=OrderStatus.COMPLETED, target=OrderStatus.REFUNDED)
    def refund(self):
        pass


class OrderItem(UUIDPrimaryKeyMixin, BaseModel):
    """
    One ordered plan line.

    Fields:
        order: Owning order
        plan: Ordered plan
        quantity: Units requested
        price/currency: Unit price at checkout
        delivery_type: Copied from the plan on first delivery attempt
        stock_item: StockItem handed out (AUTOMATIC)
        ticket: Support ticket opened for fulfilment (MANUAL)
        delivered_at: Set once the customer has the goods
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )
    plan = models.ForeignKey(
        "catalog.Plan",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    delivery_type = models.CharField(
        max_length=20,
        choices=DeliveryType.choices,
        null=True,
        blank=True,
    )
    stock_item = models.OneToOneField(
        "catalog.StockItem",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_item",
    )
    ticket = models.ForeignKey(
        "delivery.SupportTicket",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_item_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"OrderItem({self.id}, plan={self.plan_id}, qty={self.quantity})"

    @property
    def effective_delivery_type(self) -> str:
        return self.delivery_type or self.plan.delivery_type


class CartItem(UUIDPrimaryKeyMixin, BaseModel):
    """A plan waiting in a user's cart."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    plan = models.ForeignKey(
        "catalog.Plan",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "plan"],
                name="cart_item_unique_user_plan",
            ),
        ]

    def __str__(self) -> str:
        return f"CartItem(user={self.user_id}, plan={self.plan_id})"
