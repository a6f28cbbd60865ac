"""
UserSubscription model: a customer's access to a purchased plan.

Subscriptions are created only by payment fulfilment, one per OrderItem of
an order whose payment completed with enough stock. A refund cancels them.

Usage:
    from payments.models import UserSubscription
    from payments.state_machines import SubscriptionStatus

    active = UserSubscription.objects.filter(
        user=user,
        status=SubscriptionStatus.ACTIVE,
    )

    subscription.cancel()
    subscription.save()
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from catalog.models import BillingPeriod
from payments.state_machines import SubscriptionStatus


class UserSubscription(UUIDPrimaryKeyMixin, BaseModel):
    """
    Access to one plan, bought through one order line.

    State Flow:
        ACTIVE -> EXPIRED (end_date passed)
        ACTIVE -> CANCELLED (refund or staff action)

    Fields:
        user: Subscriber
        plan: Plan subscribed to
        order/order_item: Purchase that created the subscription
        start_date/end_date: Access window (end = start + plan duration)
        renewal_date: When renewal is due (equal to end_date on creation)
        price/currency/billing_period: Carried over from the order line
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="subscriptions",
    )
    plan = models.ForeignKey(
        "catalog.Plan",
        on_delete=models.PROTECT,
        related_name="subscriptions",
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="subscriptions",
    )
    order_item = models.OneToOneField(
        "orders.OrderItem",
        on_delete=models.PROTECT,
        related_name="subscription",
        help_text="Order line this subscription was created from",
    )

    # ==========================================================================
    # State & Dates
    # ==========================================================================

    status = FSMField(
        default=SubscriptionStatus.ACTIVE,
        choices=SubscriptionStatus.choices,
        db_index=True,
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    renewal_date = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Pricing
    # ==========================================================================

    price = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    billing_period = models.CharField(
        max_length=20,
        choices=BillingPeriod.choices,
        default=BillingPeriod.MONTHLY,
    )
    auto_renew = models.BooleanField(default=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="payments_sub_user_status_idx"),
        ]

    def __str__(self) -> str:
        return f"UserSubscription({self.id}, plan={self.plan_id}, {self.status})"

    @classmethod
    def build_for_item(cls, order_item, start=None) -> UserSubscription:
        """
        Build (unsaved) the subscription an order line entitles its buyer to.

        Args:
            order_item: OrderItem with order and plan loaded
            start: Start of access (defaults to now)
        """
        start = start or timezone.now()
        end = start + timedelta(days=order_item.plan.duration_days)
        return cls(
            user_id=order_item.order.user_id,
            plan_id=order_item.plan_id,
            order_id=order_item.order_id,
            order_item=order_item,
            status=SubscriptionStatus.ACTIVE,
            start_date=start,
            end_date=end,
            renewal_date=end,
            price=order_item.price,
            currency=order_item.currency,
            billing_period=order_item.plan.billing_period,
            auto_renew=True,
        )

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=SubscriptionStatus.ACTIVE, target=SubscriptionStatus.CANCELLED)
    def cancel(self):
        self.cancelled_at = timezone.now()
        self.auto_renew = False

    @transition(field=status, source=SubscriptionStatus.ACTIVE, target=SubscriptionStatus.EXPIRED)
    def expire(self):
        self.auto_renew = False
