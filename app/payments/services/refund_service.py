"""
Refund bookkeeping for captured payments.

Records a refund that has already been (or is being) returned through the
provider's dashboard. No provider API is called from here.

A full refund also refunds the order and cancels the subscriptions it
granted; a partial refund only accumulates refund_amount on the payment.

Usage:
    from payments.services import RefundService

    result = RefundService.refund_payment(payment.id)
    result = RefundService.refund_payment(payment.id, amount=Decimal("2.50"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django_fsm import TransitionNotAllowed

from core.services import BaseService, ServiceResult

from orders.models import Order, OrderStatus
from payments.exceptions import InvalidStateTransitionError
from payments.models import Payment, UserSubscription
from payments.state_machines import REFUNDABLE_PAYMENT_STATUSES, SubscriptionStatus

if TYPE_CHECKING:
    from typing import Any


logger = logging.getLogger(__name__)


@dataclass
class RefundOutcome:
    """
    Attributes:
        payment: Refunded payment
        refunded_amount: Amount recorded by this call
        full: Whether the payment is now fully refunded
        cancelled_subscription_ids: Subscriptions cancelled by a full refund
    """

    payment: Payment
    refunded_amount: Decimal
    full: bool
    cancelled_subscription_ids: list[str]


class RefundService(BaseService):
    """Records full and partial refunds against COMPLETED payments."""

    @classmethod
    def refund_payment(
        cls,
        payment_id: Any,
        amount: Decimal | str | None = None,
        reason: str | None = None,
    ) -> ServiceResult[RefundOutcome]:
        """
        Refund a payment fully (amount None) or partially.

        A partial amount that brings the total up to the captured amount is
        treated as a full refund.

        Returns:
            ServiceResult with RefundOutcome. Fails with PAYMENT_NOT_FOUND,
            PAYMENT_NOT_REFUNDABLE or INVALID_REFUND_AMOUNT.
        """
        with cls.atomic():
            payment = Payment.objects.select_for_update().filter(id=payment_id).first()
            if payment is None:
                return ServiceResult.failure("Payment not found", error_code="PAYMENT_NOT_FOUND")

            if payment.status not in REFUNDABLE_PAYMENT_STATUSES:
                return ServiceResult.failure(
                    f"Payment in '{payment.status}' state cannot be refunded",
                    error_code="PAYMENT_NOT_REFUNDABLE",
                )

            already_refunded = payment.refund_amount or Decimal("0")
            remaining = payment.amount - already_refunded

            if amount is None:
                refund = remaining
            else:
                try:
                    refund = Decimal(str(amount))
                except InvalidOperation:
                    return ServiceResult.failure(
                        "Refund amount is not a number",
                        error_code="INVALID_REFUND_AMOUNT",
                        errors={"amount": [f"Invalid amount: {amount}"]},
                    )
                if refund <= 0 or refund > remaining:
                    return ServiceResult.failure(
                        f"Refund amount must be between 0 and {remaining}",
                        error_code="INVALID_REFUND_AMOUNT",
                        errors={"amount": [f"Must be greater than 0 and at most {remaining}"]},
                    )

            full = refund == remaining
            try:
                if full:
                    payment.refund_full()
                else:
                    payment.refund_partial(refund)
            except TransitionNotAllowed as exc:
                raise InvalidStateTransitionError(
                    f"Cannot refund payment in '{payment.status}' state",
                    details={"payment_id": str(payment.id)},
                ) from exc
            if reason:
                payment.failure_reason = reason
            payment.save()

            cancelled_ids: list[str] = []
            if full:
                cancelled_ids = cls._close_order(payment)

        logger.info(
            "Payment refund recorded",
            extra={
                "payment_id": str(payment.id),
                "amount": str(refund),
                "full": full,
                "cancelled_subscriptions": len(cancelled_ids),
            },
        )
        return ServiceResult.success(
            RefundOutcome(
                payment=payment,
                refunded_amount=refund,
                full=full,
                cancelled_subscription_ids=cancelled_ids,
            )
        )

    @classmethod
    def _close_order(cls, payment: Payment) -> list[str]:
        """Refund the order and cancel the subscriptions it granted."""
        order = Order.objects.select_for_update().get(id=payment.order_id)
        if order.status == OrderStatus.COMPLETED:
            order.refund()
            order.save()

        cancelled_ids = []
        subscriptions = UserSubscription.objects.select_for_update().filter(
            order_id=order.id,
            status=SubscriptionStatus.ACTIVE,
        )
        for subscription in subscriptions:
            subscription.cancel()
            subscription.save()
            cancelled_ids.append(str(subscription.id))
        return cancelled_ids
