"""
Order and cart services.

Usage:
    from orders.services import CartService, OrderService

    removed = CartService.remove_plans(user_id, [plan.id])

    result = OrderService.validate_for_payment(order.id)
    if not result:
        return Response(result.to_response(), status=400)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.services import BaseService, ServiceResult

from catalog.services import StockAvailability
from orders.models import CartItem, Order, OrderStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

logger = logging.getLogger(__name__)


class CartService(BaseService):
    """Cart mutations used by the stock-conflict paths."""

    @classmethod
    def remove_plans(cls, user_id: Any, plan_ids: Iterable[Any]) -> int:
        """
        Delete the user's cart entries for the given plans.

        Returns:
            Number of cart rows deleted
        """
        plan_ids = list(plan_ids)
        if not plan_ids:
            return 0

        deleted, _ = CartItem.objects.filter(
            user_id=user_id,
            plan_id__in=plan_ids,
        ).delete()

        if deleted:
            logger.info(
                "Removed plans from cart",
                extra={
                    "user_id": str(user_id),
                    "plan_ids": [str(plan_id) for plan_id in plan_ids],
                    "deleted": deleted,
                },
            )
        return deleted


class OrderService(BaseService):
    """Read-side order checks shown to the customer before paying."""

    @classmethod
    def validate_for_payment(cls, order_id: Any) -> ServiceResult[dict]:
        """
        Check that a pending order can still be paid for.

        Returns:
            ServiceResult with {"order_id", "items"} where items is the
            per-item availability report. Fails with ORDER_NOT_FOUND,
            ORDER_NOT_PENDING or STOCK_UNAVAILABLE (the report is attached
            under errors["items"] as descriptions).
        """
        order = (
            Order.objects.filter(id=order_id)
            .prefetch_related("items__plan__product")
            .first()
        )
        if order is None:
            return ServiceResult.failure("Order not found", error_code="ORDER_NOT_FOUND")

        if order.status != OrderStatus.PENDING:
            return ServiceResult.failure(
                f"Order is {order.status}, not PENDING",
                error_code="ORDER_NOT_PENDING",
            )

        report = StockAvailability.check_order(order)
        invalid = [entry for entry in report if not entry.valid]
        if invalid:
            return ServiceResult.failure(
                "Some items are no longer available",
                error_code="STOCK_UNAVAILABLE",
                errors={
                    "items": [
                        f"{entry.product_name} {entry.plan_type}: {entry.error}"
                        for entry in invalid
                    ]
                },
            )

        return ServiceResult.success(
            {
                "order_id": str(order.id),
                "items": [entry.to_dict() for entry in report],
            }
        )
