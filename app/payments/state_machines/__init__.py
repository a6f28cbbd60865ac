"""
State machine enums for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    REFUNDABLE_PAYMENT_STATUSES,
    PaymentMethod,
    PaymentStatus,
    SubscriptionStatus,
    WebhookOutcome,
)

__all__ = [
    "REFUNDABLE_PAYMENT_STATUSES",
    "PaymentMethod",
    "PaymentStatus",
    "SubscriptionStatus",
    "WebhookOutcome",
]
