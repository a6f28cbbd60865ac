"""
Payment domain models.

This module contains all payment-related models:
- Payment: Provider payment for an Order, FSM-managed
- UserSubscription: Plan access created when a payment completes
- WebhookEvent: Audit trail of received provider webhooks
"""

from payments.models.payment import Payment
from payments.models.subscription import UserSubscription
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "Payment",
    "UserSubscription",
    "WebhookEvent",
]
