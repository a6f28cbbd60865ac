"""
Apply a provider's payment outcome to Payment, Order and subscriptions.

Everything here runs inside a single database transaction. Side effects
that cannot be rolled back (emails, stock delivery, sweeping competing
orders) are NOT performed here; the returned FulfillmentResult is handed
to the post-commit dispatcher instead.

Lock order is Payment, then Order, then Plan rows (by id). The conflict
sweep takes the same order, so the two never deadlock each other.

Usage:
    from payments.services.fulfillment import FulfillmentService

    result = FulfillmentService.apply(
        payment_id=payment.id,
        outcome=CanonicalOutcome.COMPLETED,
        provider_payment_id="8b03432e-385b-4670-8d06-064591096795",
        payload=payload,
        provider_status="paid",
    )
    if result.kind is FulfillmentKind.STOCK_CONFLICT:
        ...
"""

from __future__ import annotations

import enum
import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

from django.utils import timezone
from django_fsm import TransitionNotAllowed

from core.services import BaseService

from catalog.models import DeliveryType
from catalog.services import StockAvailability, StockShortfall, describe_shortfalls
from orders.models import Order
from orders.services import CartService
from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payments.models import Payment, UserSubscription
from payments.services.conflict_sweep import STOCK_CONFLICT_REASON
from payments.state_machines import PaymentStatus
from payments.webhooks.status_maps import CanonicalOutcome

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

CAPTURED_AFTER_CANCEL_NOTE = "Captured after stock-conflict cancellation"


class FulfillmentKind(str, enum.Enum):
    COMPLETED = "COMPLETED"
    STOCK_CONFLICT = "STOCK_CONFLICT"
    ORDER_CLOSED = "ORDER_CLOSED"
    CAPTURED_AFTER_CANCEL = "CAPTURED_AFTER_CANCEL"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    ALREADY_APPLIED = "ALREADY_APPLIED"


@dataclass
class FulfillmentResult:
    """
    What the fulfilment transaction committed.

    Plain data only, so it can be queued to Celery as JSON.

    Attributes:
        kind: Which branch was taken
        payment_id/order_id: Records that were changed (or inspected)
        payment_status/order_status: Stored statuses after the transaction
        plan_ids: AUTOMATIC plans of the order (drive the conflict sweep)
        order_item_ids: Items to deliver after a COMPLETED outcome
        subscription_ids: Subscriptions created
        shortfalls: StockShortfall dicts for STOCK_CONFLICT
        failure_reason: Reason recorded on the payment, if any
    """

    kind: FulfillmentKind
    payment_id: str
    order_id: str
    payment_status: str
    order_status: str
    plan_ids: list[str] = field(default_factory=list)
    order_item_ids: list[str] = field(default_factory=list)
    subscription_ids: list[str] = field(default_factory=list)
    shortfalls: list[dict[str, Any]] = field(default_factory=list)
    failure_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FulfillmentResult:
        return cls(**{**data, "kind": FulfillmentKind(data["kind"])})


class FulfillmentService(BaseService):
    """The atomic core of webhook processing."""

    @classmethod
    def apply(
        cls,
        payment_id: Any,
        outcome: CanonicalOutcome,
        provider_payment_id: str | None = None,
        payload: dict[str, Any] | None = None,
        provider_status: str = "",
        preloaded: Payment | None = None,
    ) -> FulfillmentResult:
        """
        Apply a COMPLETED / FAILED / CANCELLED outcome to a payment.

        Only PENDING payments are changed. Any other stored status means an
        earlier delivery already applied an outcome, and this call returns
        ALREADY_APPLIED without touching anything. The exception is a capture
        reported for a payment the conflict sweep cancelled: the provider's
        response is recorded and the result is CAPTURED_AFTER_CANCEL.

        ``preloaded`` is the resolver's payment with its order items, plans
        and products already fetched. Payment and order are still re-read
        under lock; the item graph is taken from it instead of queried again.

        Raises:
            PaymentValidationError: outcome is NO_OP
            PaymentNotFoundError: payment_id does not exist
            InvalidStateTransitionError: a model refused the transition
        """
        if outcome is CanonicalOutcome.NO_OP:
            raise PaymentValidationError(
                "NO_OP outcomes are acknowledged, not applied",
                details={"payment_id": str(payment_id)},
            )

        with cls.atomic():
            payment = Payment.objects.select_for_update().filter(id=payment_id).first()
            if payment is None:
                raise PaymentNotFoundError(
                    "Payment not found",
                    details={"payment_id": str(payment_id)},
                )
            order = Order.objects.select_for_update().get(id=payment.order_id)

            if outcome is CanonicalOutcome.COMPLETED and cls._captured_after_sweep(payment):
                return cls._apply_captured_after_cancel(payment, order, provider_payment_id, payload)

            if payment.status != PaymentStatus.PENDING:
                logger.info(
                    "Webhook outcome already applied",
                    extra={
                        "payment_id": str(payment.id),
                        "stored_status": payment.status,
                        "outcome": outcome.value,
                    },
                )
                return cls._result(FulfillmentKind.ALREADY_APPLIED, payment, order)

            payment.record_provider_response(provider_payment_id, payload or {})

            try:
                if outcome is CanonicalOutcome.COMPLETED:
                    items = cls._order_items(order, preloaded)
                    return cls._apply_completed(payment, order, items)
                return cls._apply_unsuccessful(payment, order, outcome, provider_status)
            except TransitionNotAllowed as exc:
                raise InvalidStateTransitionError(
                    f"Cannot apply {outcome.value} to payment in '{payment.status}' state",
                    details={
                        "payment_id": str(payment.id),
                        "payment_status": payment.status,
                        "order_status": order.status,
                    },
                ) from exc

    # ==========================================================================
    # Branches
    # ==========================================================================

    @classmethod
    def _apply_unsuccessful(
        cls,
        payment: Payment,
        order: Order,
        outcome: CanonicalOutcome,
        provider_status: str,
    ) -> FulfillmentResult:
        if outcome is CanonicalOutcome.FAILED:
            payment.fail(reason=f"Payment failed: {provider_status}")
            kind = FulfillmentKind.FAILED
            if order.is_open:
                order.fail()
        else:
            payment.cancel(reason=f"Payment cancelled: {provider_status}")
            kind = FulfillmentKind.CANCELLED
            if order.is_open:
                order.cancel(reason=f"Payment cancelled: {provider_status}")

        payment.save()
        order.save()

        logger.info(
            "Payment marked unsuccessful",
            extra={
                "payment_id": str(payment.id),
                "order_id": str(order.id),
                "payment_status": payment.status,
                "order_status": order.status,
                "provider_status": provider_status,
            },
        )
        return cls._result(kind, payment, order)

    @classmethod
    def _apply_completed(cls, payment: Payment, order: Order, items: list) -> FulfillmentResult:
        plan_ids = sorted(
            {str(item.plan_id) for item in items if item.plan.delivery_type == DeliveryType.AUTOMATIC}
        )

        if not order.is_open:
            # Captured money for an order that was closed meanwhile.
            payment.complete(failure_reason=f"Order no longer open: {order.status}")
            payment.save()
            logger.warning(
                "Payment completed for closed order",
                extra={"payment_id": str(payment.id), "order_status": order.status},
            )
            return cls._result(FulfillmentKind.ORDER_CLOSED, payment, order)

        shortfalls = StockAvailability.find_shortfalls(items, lock=True)
        if shortfalls:
            return cls._apply_stock_conflict(payment, order, items, plan_ids, shortfalls)

        payment.complete()
        payment.save()
        order.complete()
        order.save()

        now = timezone.now()
        subscriptions = UserSubscription.objects.bulk_create(
            [UserSubscription.build_for_item(item, start=now) for item in items]
        )

        logger.info(
            "Payment completed and order fulfilled",
            extra={
                "payment_id": str(payment.id),
                "order_id": str(order.id),
                "subscriptions": len(subscriptions),
            },
        )
        return cls._result(
            FulfillmentKind.COMPLETED,
            payment,
            order,
            plan_ids=plan_ids,
            order_item_ids=[str(item.id) for item in items],
            subscription_ids=[str(subscription.id) for subscription in subscriptions],
        )

    @classmethod
    def _apply_stock_conflict(
        cls,
        payment: Payment,
        order: Order,
        items: list,
        plan_ids: list[str],
        shortfalls: list[StockShortfall],
    ) -> FulfillmentResult:
        """
        Money was captured but the stock is gone.

        The payment stays COMPLETED and the order is CANCELLED; the mismatch
        is left for support to reconcile (refund or restock).
        """
        reason = f"Stock no longer available: {describe_shortfalls(shortfalls)}"

        payment.complete(failure_reason=reason)
        payment.save()
        order.cancel(reason=reason)
        order.save()

        CartService.remove_plans(order.user_id, {item.plan_id for item in items})

        logger.warning(
            "Payment captured but stock unavailable, order cancelled",
            extra={
                "payment_id": str(payment.id),
                "order_id": str(order.id),
                "shortfalls": [shortfall.to_dict() for shortfall in shortfalls],
            },
        )
        return cls._result(
            FulfillmentKind.STOCK_CONFLICT,
            payment,
            order,
            plan_ids=plan_ids,
            shortfalls=[shortfall.to_dict() for shortfall in shortfalls],
        )

    @staticmethod
    def _order_items(order: Order, preloaded: Payment | None) -> list:
        """Order items with plan and product, oldest first."""
        if preloaded is not None and preloaded.order_id == order.id:
            items = list(preloaded.order.items.all())
            return sorted(items, key=lambda item: (item.created_at, str(item.id)))
        return list(order.items.select_related("plan__product").order_by("created_at", "id"))

    @staticmethod
    def _captured_after_sweep(
payment: Payment) -> bool:
        reason = payment.failure_reason or ""
        return (
            payment.status == PaymentStatus.CANCELLED
            and reason.startswith(STOCK_CONFLICT_REASON)
            and CAPTURED_AFTER_CANCEL_NOTE not in reason
        )

    @classmethod
    def _apply_captured_after_cancel(
        cls,
        payment: Payment,
        order: Order,
        provider_payment_id: str | None,
        payload: dict[str, Any] | None,
    ) -> FulfillmentResult:
        """
        The provider captured money for a payment the sweep already cancelled.

        Statuses stay as they are (transitions are forward-only); the capture
        is recorded on the payment so support can refund it.
        """
        payment.record_provider_response(provider_payment_id, payload or {})
        payment.failure_reason = f"{payment.failure_reason}; {CAPTURED_AFTER_CANCEL_NOTE}"
        payment.save()

        logger.warning(
            "Payment captured after stock-conflict cancellation",
            extra={
                "payment_id": str(payment.id),
                "order_id": str(order.id),
                "provider_payment_id": payment.provider_payment_id,
            },
        )
        return cls._result(FulfillmentKind.CAPTURED_AFTER_CANCEL, payment, order)

    @staticmethod
    def _result(kind: FulfillmentKind, payment: Payment, order: Order, **extra) -> FulfillmentResult:
        return FulfillmentResult(
            kind=kind,
            payment_id=str(payment.id),
            order_id=str(order.id),
            payment_status=str(payment.status),
            order_status=str(order.status),
            failure_reason=payment.failure_reason,
            **extra,
        )
