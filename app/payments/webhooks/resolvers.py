"""
Locate the Payment a webhook refers to.

Providers are inconsistent about which identifier they echo back, so the
resolver tries an ordered list of lookup strategies and takes the first
hit. A miss is reported to the caller (404), never retried here; the
provider's own retry policy re-delivers.

Usage:
    from payments.webhooks.resolvers import extract_reference, resolve_payment

    reference = extract_reference(PaymentMethod.WEEPAY, payload)
    payment = resolve_payment(reference)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from payments.exceptions import PaymentNotFoundError
from payments.models import Payment
from payments.state_machines import PaymentMethod

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import Any

    from django.db.models import QuerySet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookReference:
    """Identifiers a webhook carried; any of them may be missing."""

    provider_payment_id: str | None = None
    payment_id: str | None = None
    order_number: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "provider_payment_id": self.provider_payment_id,
            "payment_id": self.payment_id,
            "order_number": self.order_number,
        }


def payment_queryset() -> QuerySet[Payment]:
    """
    Payments with the order graph fulfilment reads loaded up front.

    The matched payment is handed to FulfillmentService.apply as
    ``preloaded``; only the payment and order rows are read again there,
    under lock.
    """
    return Payment.objects.select_related("order", "order__user").prefetch_related(
        "order__items__plan__product"
    )


def _as_uuid(value: str | None) -> uuid.UUID | None:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def by_payment_id(reference: WebhookReference) -> Payment | None:
    payment_id = _as_uuid(reference.payment_id)
    if payment_id is None:
        return None
    return payment_queryset().filter(id=payment_id).first()


def by_provider_payment_id(reference: WebhookReference) -> Payment | None:
    if not reference.provider_payment_id:
        return None
    return payment_queryset().filter(provider_payment_id=reference.provider_payment_id).first()


def by_order_number(reference: WebhookReference) -> Payment | None:
    """Latest payment attempt of the order with that number."""
    if not reference.order_number:
        return None
    return (
        payment_queryset()
        .filter(order__order_number=reference.order_number)
        .order_by("-created_at")
        .first()
    )


DEFAULT_STRATEGIES = (
    by_payment_id,
    by_provider_payment_id,
    by_order_number,
)


def resolve_payment(
    reference: WebhookReference,
    strategies: Sequence[Callable[[WebhookReference], Payment | None]] = DEFAULT_STRATEGIES,
) -> Payment:
    """
    Return the first Payment any strategy finds.

    Raises:
        PaymentNotFoundError: No strategy matched
    """
    for strategy in strategies:
        payment = strategy(reference)
        if payment is not None:
            logger.debug(
                "Resolved webhook payment",
                extra={"strategy": strategy.__name__, "payment_id": str(payment.id)},
            )
            return payment

    raise PaymentNotFoundError(
        "Payment not found",
        details=reference.to_dict(),
    )


def extract_reference(provider: str, payload: dict[str, Any]) -> WebhookReference:
    """
    Pull the identifiers out of a validated webhook body.

    Cryptomus echoes our order_id, which older checkouts set to the payment
    id and newer ones to the order number, so it is tried as both.
    Weepay echoes the payment id as order_id.
    """
    if provider == PaymentMethod.CRYPTOMUS:
        order_id = payload.get("order_id")
        return WebhookReference(
            provider_payment_id=payload.get("uuid"),
            payment_id=order_id,
            order_number=order_id,
        )
    if provider == PaymentMethod.WEEPAY:
        return WebhookReference(
            provider_payment_id=payload.get("payment_id"),
            payment_id=payload.get("order_id"),
        )
    return WebhookReference()
