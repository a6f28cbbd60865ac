"""
WebhookEvent model for provider webhook audit trails.

Stores every webhook that passed signature verification and body
validation, together with how the endpoint disposed of it.

Idempotency does NOT rely on this table: providers may send the same
transaction several times with different statuses, so the Payment's stored
status is the only source of truth for "already applied". Rows here are
written outside the fulfilment transaction and are purely for debugging
and support.

Usage:
    from payments.models import WebhookEvent

    WebhookEvent.objects.filter(
        provider_payment_id="8b03432e-385b-4670-8d06-064591096795"
    ).order_by("created_at")
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PaymentMethod, WebhookOutcome


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    One received provider webhook.

    Fields:
        provider: Provider that sent the webhook
        provider_payment_id: Provider transaction id from the body
        provider_status: Raw status string from the body
        canonical_outcome: COMPLETED / FAILED / CANCELLED / NO_OP
        payment: Payment the webhook resolved to (if any)
        payload: Full JSON body
        outcome: How the endpoint disposed of it
        http_status: Status code returned to the provider
        error_message: Error details if processing failed
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    provider = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        db_index=True,
    )

    provider_payment_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
    )

    provider_status = models.CharField(max_length=64, blank=True, default="")

    canonical_outcome = models.CharField(max_length=20, blank=True, default="")

    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="webhook_events",
    )

    # ==========================================================================
    # Payload
    # ==========================================================================

    payload = models.JSONField(
        help_text="Full webhook body (JSON)",
    )

    # ==========================================================================
    # Processing Result
    # ==========================================================================

    outcome = models.CharField(
        max_length=20,
        choices=WebhookOutcome.choices,
        db_index=True,
    )

    http_status = models.PositiveSmallIntegerField()

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing failed",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["provider", "created_at"], name="payments_wh_provider_idx"),
            models.Index(fields=["outcome", "created_at"], name="payments_wh_outcome_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.provider}, {self.provider_status}, {self.outcome})"
