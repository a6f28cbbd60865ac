"""
State enums for payment models.

This module defines the enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

Payment States:
    PENDING → COMPLETED
    PENDING → FAILED
    PENDING → CANCELLED
    COMPLETED/PARTIALLY_REFUNDED → REFUNDED / PARTIALLY_REFUNDED

UserSubscription States:
    ACTIVE → EXPIRED
    ACTIVE → CANCELLED
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    States for the Payment model lifecycle.

    Terminal states: FAILED, CANCELLED, REFUNDED.
    Only PENDING payments react to webhooks; any other stored status means
    the provider outcome was already applied.

    A COMPLETED payment whose order was cancelled for lack of stock keeps
    COMPLETED and carries the shortfall in failure_reason.
    """

    PENDING = "PENDING", "Pending"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    CANCELLED = "CANCELLED", "Cancelled"
    REFUNDED = "REFUNDED", "Refunded"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED", "Partially Refunded"


REFUNDABLE_PAYMENT_STATUSES = [PaymentStatus.COMPLETED, PaymentStatus.PARTIALLY_REFUNDED]


class PaymentMethod(models.TextChoices):
    """
    Payment providers that can confirm a payment by webhook.

    Values double as the provider slug in the webhook URL (lower-cased).
    """

    CRYPTOMUS = "CRYPTOMUS", "Cryptomus"
    WEEPAY = "WEEPAY", "Weepay"


class SubscriptionStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    EXPIRED = "EXPIRED", "Expired"
    CANCELLED = "CANCELLED", "Cancelled"


class WebhookOutcome(models.TextChoices):
    """
    How the webhook endpoint disposed of a delivery.

    Recorded on WebhookEvent for audit only.
    """

    APPLIED = "APPLIED", "Applied"
    STOCK_CONFLICT = "STOCK_CONFLICT", "Stock conflict"
    ALREADY_APPLIED = "ALREADY_APPLIED", "Already applied"
    IGNORED = "IGNORED", "Ignored"
    NOT_FOUND = "NOT_FOUND", "Not found"
    ERROR = "ERROR", "Error"
