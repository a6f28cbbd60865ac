"""
Payment model for provider-confirmed payments.

A Payment is created at checkout (PENDING) for one Order and is moved
forward only by verified provider webhooks and refunds.

Usage:
    from payments.models import Payment
    from payments.state_machines import PaymentMethod

    payment = Payment.objects.create(
        order=order,
        method=PaymentMethod.CRYPTOMUS,
        amount=order.total,
        currency=order.currency,
    )

    # State transitions using django-fsm
    payment.complete()
    payment.save()
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import (
    REFUNDABLE_PAYMENT_STATUSES,
    PaymentMethod,
    PaymentStatus,
)


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    One attempt to pay for an Order through a provider.

    State Flow:
        PENDING -> COMPLETED
        PENDING -> FAILED
        PENDING -> CANCELLED
        COMPLETED/PARTIALLY_REFUNDED -> REFUNDED/PARTIALLY_REFUNDED

    Fields:
        order: Order being paid for (an order may have several attempts)
        method: Provider that processes the payment
        status: Current FSM state
        amount/currency: Amount requested from the provider
        provider_payment_id: Provider's transaction id, stored from webhooks
        webhook_data: Last applied webhook body, kept verbatim
        failure_reason: Why the payment failed, was cancelled, or why its
            order could not be fulfilled despite capture
        refund_amount: Total refunded so far
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Order this payment is for",
    )

    # ==========================================================================
    # Provider & State
    # ==========================================================================

    method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        help_text="Payment provider",
    )

    status = FSMField(
        default=PaymentStatus.PENDING,
        choices=PaymentStatus.choices,
        db_index=True,
        help_text="Current state of the payment (managed by FSM)",
    )

    provider_payment_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Provider transaction id (Cryptomus uuid, Weepay payment_id)",
    )

    # ==========================================================================
    # Amount & Currency
    # ==========================================================================

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")

    # ==========================================================================
    # Webhook Data & Error Info
    # ==========================================================================

    webhook_data = models.JSONField(
        null=True,
        blank=True,
        help_text="Webhook body that last changed this payment",
    )

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Failure, cancellation or stock-conflict details",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    completed_at = models.DateTimeField(null=True, blank=True)

    refund_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Total refunded so far",
    )
    refunded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the first refund was recorded",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "status"], name="payments_order_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Payment({self.id}, {self.method}, {self.status}, {self.amount} {self.currency})"

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    def record_provider_response(self, provider_payment_id: str | None, payload: dict) -> None:
        """
        Store what the provider told us.

        Note: Does not save - caller must save after calling.
        """
        if provider_payment_id:
            self.provider_payment_id = provider_payment_id
        self.webhook_data = payload

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=PaymentStatus.PENDING, target=PaymentStatus.COMPLETED)
    def complete(self, failure_reason: str | None = None):
        """
        Mark the payment as captured.

        A failure_reason is passed when the money was captured but the order
        could not be fulfilled (stock conflict).
        """
        self.completed_at = timezone.now()
        self.failure_reason = failure_reason

    @transition(field=status, source=PaymentStatus.PENDING, target=PaymentStatus.FAILED)
    def fail(self, reason: str):
        self.failure_reason = reason

    @transition(field=status, source=PaymentStatus.PENDING, target=PaymentStatus.CANCELLED)
    def cancel(self, reason: str):
        self.failure_reason = reason

    @transition(
        field=status,
        source=REFUNDABLE_PAYMENT_STATUSES,
        target=PaymentStatus.REFUNDED,
    )
    def refund_full(self):
        self.refund_amount = self.amount
        if self.refunded_at is None:
            self.refunded_at = timezone.now()

    @transition(
        field=status,
        source=REFUNDABLE_PAYMENT_STATUSES,
        target=PaymentStatus.PARTIALLY_REFUNDED,
    )
    def refund_partial(self, amount: Decimal):
        self.refund_amount = (self.refund_amount or Decimal("0")) + amount
        if self.refunded_at is None:
            self.refunded_at = timezone.now()
