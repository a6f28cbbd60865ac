"""
Delivery provisioning for paid order items.

AUTOMATIC items are handed the oldest unused StockItem of their plan.
MANUAL items get a support ticket so staff can fulfil them by hand.

Both paths are idempotent: an item that already holds a StockItem or a
ticket is reported as delivered/requested again without a second
allocation, so retries of the post-commit dispatch are safe.

Usage:
    from delivery.services import DeliveryService

    result = DeliveryService.process_delivery(order.id, item.id)
    if not result:
        logger.warning("Delivery failed", extra={"error_code": result.error_code})

    DeliveryService.get_delivery_status(item.id)
    # {"status": "DELIVERED", "type": "AUTOMATIC", ...}
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import ConflictError
from core.services import BaseService, ServiceResult

from catalog.models import DeliveryType, StockItem
from delivery.models import SupportTicket, TicketCategory, TicketPriority, TicketStatus
from orders.models import OrderItem

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

TICKET_NUMBER_PREFIX = "DELIVERY"
TICKET_NUMBER_ATTEMPTS = 5
STOCK_CLAIM_ATTEMPTS = 3
DELIVERY_TICKET_TAGS = ["delivery", "auto-created"]


@dataclass(frozen=True)
class DeliveryOutcome:
    """What process_delivery did for one order item."""

    order_item_id: str
    delivery_type: str
    stock_item_id: str | None = None
    ticket_id: str | None = None
    ticket_number: str | None = None
    already_processed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class DeliveryService(BaseService):
    """Hands out stock or opens tickets for completed order items."""

    @classmethod
    def process_delivery(cls, order_id: Any, order_item_id: Any) -> ServiceResult[DeliveryOutcome]:
        """
        Deliver one order item.

        Args:
            order_id: Owning order (the item must belong to it)
            order_item_id: Item to deliver

        Returns:
            ServiceResult with a DeliveryOutcome. Fails with
            ORDER_ITEM_NOT_FOUND or NO_STOCK_AVAILABLE.
        """
        item = (
            OrderItem.objects.select_related("plan__product", "order")
            .filter(id=order_item_id, order_id=order_id)
            .first()
        )
        if item is None:
            return ServiceResult.failure(
                "Order item not found",
                error_code="ORDER_ITEM_NOT_FOUND",
            )

        if not item.delivery_type:
            item.delivery_type = item.plan.delivery_type
            item.save(update_fields=["delivery_type", "updated_at"])

        if item.delivery_type == DeliveryType.AUTOMATIC:
            return cls._deliver_automatic(item)
        return cls._deliver_manual(item)

    # ==========================================================================
    # AUTOMATIC
    # ==========================================================================

    @classmethod
    def _deliver_automatic(cls, item: OrderItem) -> ServiceResult[DeliveryOutcome]:
        with cls.atomic():
            locked = OrderItem.objects.select_for_update().get(id=item.id)
            if locked.stock_item_id:
                return ServiceResult.success(
                    DeliveryOutcome(
                        order_item_id=str(item.id),
                        delivery_type=DeliveryType.AUTOMATIC,
                        stock_item_id=str(locked.stock_item_id),
                        already_processed=True,
                    )
                )

            stock = cls._claim_stock(item)
            if stock is None:
                logger.warning(
                    "No stock available for automatic delivery",
                    extra={
                        "order_id": str(item.order_id),
                        "order_item_id": str(item.id),
                        "plan_id": str(item.plan_id),
                    },
                )
                return ServiceResult.failure(
                    f"No stock available for automatic delivery of "
                    f"{item.plan.product.name} - {item.plan.plan_type}",
                    error_code="NO_STOCK_AVAILABLE",
                )

            locked.stock_item = stock
            locked.delivered_at = stock.used_at
            locked.save(update_fields=["stock_item", "delivered_at", "updated_at"])

        logger.info(
            "Automatic delivery completed",
            extra={
                "order_id": str(item.order_id),
                "order_item_id": str(item.id),
                "stock_item_id": str(stock.id),
            },
        )
        return ServiceResult.success(
            DeliveryOutcome(
                order_item_id=str(item.id),
                delivery_type=DeliveryType.AUTOMATIC,
                stock_item_id=str(stock.id),
            )
        )

    @classmethod
    def _claim_stock(cls, item: OrderItem) -> StockItem | None:
        """
        Mark the oldest unused StockItem of the item's plan as used.

        The conditional update only succeeds while the row is still unused,
        so a row can never be handed out twice even where row locks are
        unavailable.
        """
        for _ in range(STOCK_CLAIM_ATTEMPTS):
            stock = (
                StockItem.objects.select_for_update(skip_locked=True)
                .filter(plan_id=item.plan_id, is_used=False)
                .order_by("created_at", "id")
                .first()
            )
            if stock is None:
                return None

            now = timezone.now()
            claimed = StockItem.objects.filter(id=stock.id, is_used=False).update(
                is_used=True,
                used_at=now,
                updated_at=now,
            )
            if claimed:
                stock.is_used = True
                stock.used_at = now
                return stock
        return None

    # ==========================================================================
    # MANUAL
    # ==========================================================================

    @classmethod
    def _deliver_manual(cls, item: OrderItem) -> ServiceResult[DeliveryOutcome]:
        with cls.atomic():
            locked = (
                OrderItem.objects.select_for_update()
                .select_related("ticket")
                .get(id=item.id)
            )
            if locked.ticket_id:
                return ServiceResult.success(
                    DeliveryOutcome(
                        order_item_id=str(item.id),
                        delivery_type=DeliveryType.MANUAL,
                        ticket_id=str(locked.ticket_id),
                        ticket_number=locked.ticket.ticket_number,
                        already_processed=True,
                    )
                )

            ticket = cls._open_ticket(item)
            locked.ticket = ticket
            locked.delivered_at = None
            locked.save(update_fields=["ticket", "delivered_at", "updated_at"])

        logger.info(
            "Manual delivery ticket created",
            extra={
                "order_id": str(item.order_id),
                "order_item_id": str(item.id),
                "ticket_number": ticket.ticket_number,
            },
        )
        return ServiceResult.success(
            DeliveryOutcome(
                order_item_id=str(item.id),
                delivery_type=DeliveryType.MANUAL,
                ticket_id=str(ticket.id),
                ticket_number=ticket.ticket_number,
            )
        )

    @classmethod
    def next_ticket_number(cls, offset: int = 0) -> str:
        return f"{TICKET_NUMBER_PREFIX}-{SupportTicket.objects.count() + 1 + offset:06d}"

    @classmethod
    def _open_ticket(cls, item: OrderItem) -> SupportTicket:
        product_name = item.plan.product.name
        plan_type = item.plan.plan_type
        description = (
            f"Manual delivery request for {product_name} - {plan_type} Plan.\n"
            f"\n"
            f"Order Details:\n"
            f"- Order ID: {item.order_id}\n"
            f"- Product: {product_name}\n"
            f"- Plan: {plan_type}\n"
            f"- Quantity: {item.quantity}\n"
            f"\n"
            f"Please process the delivery for this customer."
        )

        # Numbers come from a row count, so a concurrent insert can take ours.
        for attempt in range(TICKET_NUMBER_ATTEMPTS):
            try:
                with transaction.atomic():
                    return SupportTicket.objects.create(
                        ticket_number=cls.next_ticket_number(offset=attempt),
                        user_id=item.order.user_id,
                        title=f"Delivery Request - {product_name}",
                        description=description,
                        category=TicketCategory.ORDER_ISSUES,
                        priority=TicketPriority.MEDIUM,
                        is_auto_created=True,
                        tags=list(DELIVERY_TICKET_TAGS),
                    )
            except IntegrityError:
                logger.warning(
                    "Ticket number collision, retrying",
                    extra={"order_item_id": str(item.id), "attempt": attempt + 1},
                )

        raise ConflictError(
            "Could not allocate a ticket number",
            error_code="TICKET_NUMBER_CONFLICT",
            details={"order_item_id": str(item.id)},
        )

    # ==========================================================================
    # Status queries
    # ==========================================================================

    @classmethod
    def is_delivered(cls, order_item_id: Any) -> bool:
        """
        AUTOMATIC: delivered once a StockItem is linked.
        MANUAL: delivered once the ticket is CLOSED.
        """
        item = (
            OrderItem.objects.select_related("plan", "ticket")
            .filter(id=order_item_id)
            .first()
        )
        if item is None:
            return False

        if item.effective_delivery_type == DeliveryType.AUTOMATIC:
            return item.delivered_at is not None and item.stock_item_id is not None
        return item.ticket is not None and item.ticket.status == TicketStatus.CLOSED

    @classmethod
    def get_delivery_status(cls, order_item_id: Any) -> dict[str, Any]:
        item = (
            OrderItem.objects.select_related("plan", "ticket", "stock_item")
            .filter(id=order_item_id)
            .first()
        )
        if item is None:
            return {"status": "NOT_FOUND"}

        delivery_type = item.effective_delivery_type
        if delivery_type == DeliveryType.AUTOMATIC:
            if item.delivered_at and item.stock_item:
                return {
                    "status": "DELIVERED",
                    "type": delivery_type,
                    "delivered_at": item.delivered_at,
                    "stock_item": {
                        "id": str(item.stock_item.id),
                        "content": item.stock_item.content,
                    },
                }
            return {"status": "PENDING", "type": delivery_type}

        if item.ticket is None:
            return {"status": "PENDING", "type": delivery_type}

        closed = item.ticket.status == TicketStatus.CLOSED
        return {
            "status": "DELIVERED" if closed else "PENDING",
            "type": delivery_type,
            "ticket": {
                "id": str(item.ticket.id),
                "ticket_number": item.ticket.ticket_number,
                "status": item.ticket.status,
            },
            "delivered_at": item.delivered_at if closed else None,
        }
