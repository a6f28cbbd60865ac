"""
Cancel pending orders that can no longer be fulfilled.

After an order completes and claims stock, other PENDING orders for the
same AUTOMATIC plans may have become unsatisfiable. Left alone, their
customers could still pay for goods that are gone. The sweep re-checks
each such order and cancels the ones that fall short, together with their
pending payments.

Each competing order is handled in its own transaction: one order's
failure is logged and does not stop the others.

Usage:
    from payments.services.conflict_sweep import ConflictSweepService

    report = ConflictSweepService.sweep(order_id, plan_ids)
    report.cancelled_order_ids
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalog.models import DeliveryType
from catalog.services import StockAvailability, describe_shortfalls
from core.services import BaseService
from orders.models import Order, OrderStatus
from orders.services import CartService
from payments.models import Payment
from payments.state_machines import PaymentStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

logger = logging.getLogger(__name__)

STOCK_CONFLICT_REASON = "Order cancelled due to stock conflict"


@dataclass
class SweepReport:
    checked_order_ids: list[str] = field(default_factory=list)
    cancelled_order_ids: list[str] = field(default_factory=list)
    failed_order_ids: list[str] = field(default_factory=list)


class ConflictSweepService(BaseService):
    """Re-checks PENDING orders competing for the same stock."""

    @classmethod
    def find_competing_orders(cls, order_id: Any, plan_ids: Iterable[Any]) -> list[Any]:
        """PENDING orders (other than order_id) holding an AUTOMATIC item of plan_ids."""
        plan_ids = list(plan_ids)
        if not plan_ids:
            return []
        return list(
            Order.objects.filter(
                status=OrderStatus.PENDING,
                items__plan_id__in=plan_ids,
                items__plan__delivery_type=DeliveryType.AUTOMATIC,
            )
            .exclude(id=order_id)
            .order_by("created_at", "id")
            .values_list("id", flat=True)
            .distinct()
        )

    @classmethod
    def sweep(cls, order_id: Any, plan_ids: Iterable[Any]) -> SweepReport:
        report = SweepReport()
        for competing_id in cls.find_competing_orders(order_id, plan_ids):
            report.checked_order_ids.append(str(competing_id))
            try:
                if cls.cancel_if_unsatisfiable(competing_id):
                    report.cancelled_order_ids.append(str(competing_id))
            except Exception:
                logger.exception(
                    "Conflict sweep failed for order",
                    extra={"order_id": str(competing_id), "completed_order_id": str(order_id)},
                )
                report.failed_order_ids.append(str(competing_id))

        if report.checked_order_ids:
            logger.info(
                "Conflict sweep finished",
                extra={
                    "completed_order_id": str(order_id),
                    "checked": len(report.checked_order_ids),
                    "cancelled": len(report.cancelled_order_ids),
                    "failed": len(report.failed_order_ids),
                },
            )
        return report

    @classmethod
    def cancel_if_unsatisfiable(cls, order_id: Any) -> bool:
        """
        Cancel one order if its AUTOMATIC items can no longer be covered.

        Returns:
            True when the order was cancelled
        """
        with cls.atomic():
            # Same lock order as fulfilment: payments, order, plans.
            payments = list(
                Payment.objects.select_for_update()
                .filter(order_id=order_id, status=PaymentStatus.PENDING)
                .order_by("id")
            )
            order = Order.objects.select_for_update().filter(id=order_id).first()
            if order is None or order.status != OrderStatus.PENDING:
                return False

            items = list(order.items.select_related("plan__product"))
            shortfalls = StockAvailability.find_shortfalls(items, lock=True)
            if not shortfalls:
                return False

            reason = f"{STOCK_CONFLICT_REASON}: {describe_shortfalls(shortfalls)}"
            order.cancel(reason=reason)
            order.save()
            for payment in payments:
                payment.cancel(reason=reason)
                payment.save()

            CartService.remove_plans(order.user_id, [shortfall.plan_id for shortfall in shortfalls])

        logger.info(
            "Cancelled order due to stock conflict",
            extra={
                "order_id": str(order_id),
                "cancelled_payments": len(payments),
                "shortfalls": [shortfall.to_dict() for shortfall in shortfalls],
            },
        )
        return True
