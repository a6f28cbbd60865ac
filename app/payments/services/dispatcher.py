"""
Side effects that run after the fulfilment transaction has committed.

Nothing here can undo a committed payment outcome, so every step is
best effort: a failure is logged with its traceback and recorded on the
DispatchReport, and the next step still runs.

Steps for a COMPLETED result:
1. Order confirmation email
2. Delivery of each order item
3. Conflict sweep over other PENDING orders for the same plans

A STOCK_CONFLICT result only sends the stock-unavailable notice.

Usage:
    from payments.services.dispatcher import PostCommitDispatcher

    report = PostCommitDispatcher.dispatch(result)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

from delivery.services import DeliveryService
from orders.models import Order
from orders.notifications import OrderNotificationService
from payments.services.conflict_sweep import ConflictSweepService
from payments.services.fulfillment import FulfillmentKind

if TYPE_CHECKING:
    from typing import Any

    from payments.services.fulfillment import FulfillmentResult

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    email_sent: bool = False
    delivered_item_ids: list[str] = field(default_factory=list)
    failed_item_ids: list[str] = field(default_factory=list)
    cancelled_order_ids: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class PostCommitDispatcher:
    """Runs the non-transactional follow-ups of a fulfilment result."""

    @classmethod
    def dispatch(cls, result: FulfillmentResult) -> DispatchReport:
        report = DispatchReport()

        if result.kind is FulfillmentKind.COMPLETED:
            cls._send_confirmation(result, report)
            cls._deliver_items(result, report)
            cls._sweep_conflicts(result, report)
        elif result.kind is FulfillmentKind.STOCK_CONFLICT:
            cls._send_stock_unavailable(result, report)
        else:
            logger.debug(
                "Nothing to dispatch",
                extra={"kind": result.kind.value, "order_id": result.order_id},
            )
            return report

        logger.info(
            "Post-commit dispatch finished",
            extra={"order_id": result.order_id, "kind": result.kind.value, **report.to_dict()},
        )
        return report

    # ==========================================================================
    # Steps
    # ==========================================================================

    @staticmethod
    def _load_order(order_id: str) -> Order:
        return Order.objects.select_related("user").get(id=order_id)

    @classmethod
    def _send_confirmation(cls, result: FulfillmentResult, report: DispatchReport) -> None:
        try:
            order = cls._load_order(result.order_id)
            items = [
                {
                    "product_name": item.plan.product.name,
                    "plan_name": item.plan.name,
                    "price": item.price,
                }
                for item in order.items.select_related("plan__product")
            ]
            report.email_sent = OrderNotificationService.send_order_confirmation(
                order.user.email,
                order.order_number,
                order.total,
                items,
            )
        except Exception as e:
            logger.exception(
                "Failed to send order confirmation",
                extra={"order_id": result.order_id},
            )
            report.errors["confirmation_email"] = str(e)

    @classmethod
    def _deliver_items(cls, result: FulfillmentResult, report: DispatchReport) -> None:
        for order_item_id in result.order_item_ids:
            try:
                delivery = DeliveryService.process_delivery(result.order_id, order_item_id)
            except Exception as e:
                logger.exception(
                    "Delivery raised for order item",
                    extra={"order_id": result.order_id, "order_item_id": order_item_id},
                )
                report.failed_item_ids.append(order_item_id)
                report.errors[f"delivery:{order_item_id}"] = str(e)
                continue

            if delivery.success:
                report.delivered_item_ids.append(order_item_id)
            else:
                logger.warning(
                    "Delivery failed for order item",
                    extra={
                        "order_id": result.order_id,
                        "order_item_id": order_item_id,
                        "error_code": delivery.error_code,
                        "error": delivery.error,
                    },
                )
                report.failed_item_ids.append(order_item_id)
                report.errors[f"delivery:{order_item_id}"] = delivery.error or ""

    @classmethod
    def _sweep_conflicts(cls, result: FulfillmentResult, report: DispatchReport) -> None:
        if not result.plan_ids:
            return
        try:
            sweep = ConflictSweepService.sweep(result.order_id, result.plan_ids)
        except Exception as e:
            logger.exception(
                "Conflict sweep failed",
                extra={"order_id": result.order_id, "plan_ids": result.plan_ids},
            )
            report.errors["conflict_sweep"] = str(e)
            return
        report.cancelled_order_ids.extend(sweep.cancelled_order_ids)

    @classmethod
    def _send_stock_unavailable(cls, result: FulfillmentResult, report: DispatchReport) -> None:
        try:
            order = cls._load_order(result.order_id)
            report.email_sent = OrderNotificationService.send_stock_unavailable(
                order.user.email,
                order.order_number,
                result.shortfalls,
            )
        except Exception as e:
            logger.exception(
                "Failed to send stock unavailable notice",
                extra={"order_id": result.order_id},
            )
            report.errors["stock_unavailable_email"] = str(e)
