"""
Catalog models: Product, Plan and StockItem.

Usage:
    from catalog.models import DeliveryType, Plan, StockItem

    plan = Plan.objects.create(
        product=product,
        name="Premium 1 Month",
        plan_type="Premium",
        delivery_type=DeliveryType.AUTOMATIC,
        duration_days=30,
        price=Decimal("4.99"),
    )
    StockItem.objects.create(plan=plan, content="user:pass")
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class DeliveryType(models.TextChoices):
    """
    How an ordered plan is fulfilled.

    AUTOMATIC: a pre-stocked StockItem is handed out.
    MANUAL: a support ticket is opened for a human to fulfil.
    """

    AUTOMATIC = "AUTOMATIC", "Automatic"
    MANUAL = "MANUAL", "Manual"


class BillingPeriod(models.TextChoices):
    MONTHLY = "MONTHLY", "Monthly"
    QUARTERLY = "QUARTERLY", "Quarterly"
    YEARLY = "YEARLY", "Yearly"
    LIFETIME = "LIFETIME", "Lifetime"


class Product(UUIDPrimaryKeyMixin, BaseModel):
    """A third-party service sold through one or more plans."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Plan(UUIDPrimaryKeyMixin, BaseModel):
    """
    A purchasable variant of a product.

    Fields:
        product: Owning product
        name: Display name shown in carts and emails
        plan_type: Short tier label (e.g. "Premium", "Family")
        delivery_type: AUTOMATIC (stock) or MANUAL (ticket)
        duration_days: Length of the resulting subscription
        billing_period: Copied onto subscriptions
        price/currency: List price
    """

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="plans",
    )
    name = models.CharField(max_length=200)
    plan_type = models.CharField(max_length=100)
    delivery_type = models.CharField(
        max_length=20,
        choices=DeliveryType.choices,
        default=DeliveryType.AUTOMATIC,
        db_index=True,
    )
    duration_days = models.PositiveIntegerField(
        help_text="Subscription length in days",
    )
    billing_period = models.CharField(
        max_length=20,
        choices=BillingPeriod.choices,
        default=BillingPeriod.MONTHLY,
    )
    price = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["product__name", "duration_days"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(duration_days__gt=0),
                name="plan_duration_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product.name} - {self.name}"

    @property
    def is_automatic(self) -> bool:
        return self.delivery_type == DeliveryType.AUTOMATIC


class StockItem(UUIDPrimaryKeyMixin, BaseModel):
    """
    One-time-use secret content for automatic delivery.

    A StockItem is handed to at most one OrderItem, ever. The is_used flag
    is flipped with a conditional UPDATE so two allocators can never both
    claim the same row; the OrderItem side holds a one-to-one link.
    """

    plan = models.ForeignKey(
        Plan,
        on_delete=models.PROTECT,
        related_name="stock_items",
    )
    content = models.TextField(help_text="Secret payload delivered to the customer")
    is_used = models.BooleanField(default=False, db_index=True)
    used_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["plan", "is_used"], name="catalog_stock_plan_used_idx"),
        ]

    def __str__(self) -> str:
        state = "used" if self.is_used else "available"
        return f"StockItem({self.id}, {state})"

    def mark_used(self) -> None:
        """
        Mark as consumed.

        Note: Does not save - caller must save after calling.
        """
        self.is_used = True
        self.used_at = timezone.now()
