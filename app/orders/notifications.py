"""
Customer-facing order emails.

Usage:
    from orders.notifications import OrderNotificationService

    OrderNotificationService.send_order_confirmation(
        email=user.email,
        order_number=order.order_number,
        total=order.total,
        items=[{"product_name": "Spotify", "plan_name": "Premium", "price": "4.99"}],
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from toolkit.helpers import mask_email
from toolkit.services.email import EmailService

if TYPE_CHECKING:
    from collections.abc import Iterable
    from decimal import Decimal
    from typing import Any

logger = logging.getLogger(__name__)

ORDER_CONFIRMATION_TEMPLATE = "orders/emails/order_confirmation"
STOCK_UNAVAILABLE_TEMPLATE = "orders/emails/stock_unavailable"


class OrderNotificationService:
    """Thin wrappers over EmailService with order-specific templates."""

    @staticmethod
    def send_order_confirmation(
        email: str,
        order_number: str,
        total: Decimal | str,
        items: Iterable[dict[str, Any]],
    ) -> bool:
        """
        Email the buyer that their order went through.

        Args:
            email: Recipient address
            order_number: Order reference shown to the customer
            total: Order total
            items: Dicts with product_name, plan_name and price
        """
        if not email:
            logger.warning(
                "Skipping order confirmation, no recipient",
                extra={"order_number": order_number},
            )
            return False

        sent = EmailService.send(
            to=email,
            subject=f"Order {order_number} confirmed",
            template_name=ORDER_CONFIRMATION_TEMPLATE,
            context={
                "order_number": order_number,
                "total": total,
                "items": list(items),
            },
        )
        logger.info(
            "Order confirmation email processed",
            extra={
                "order_number": order_number,
                "recipient": mask_email(email),
                "sent": sent,
            },
        )
        return sent

    @staticmethod
    def send_stock_unavailable(
        email: str,
        order_number: str,
        shortfalls: Iterable[dict[str, Any]],
    ) -> bool:
        """Tell the buyer their paid order was cancelled for lack of stock."""
        if not email:
            logger.warning(
                "Skipping stock unavailable email, no recipient",
                extra={"order_number": order_number},
            )
            return False

        sent = EmailService.send(
            to=email,
            subject=f"Order {order_number}: items no longer available",
            template_name=STOCK_UNAVAILABLE_TEMPLATE,
            context={
                "order_number": order_number,
                "shortfalls": list(shortfalls),
            },
        )
        logger.info(
            "Stock unavailable email processed",
            extra={
                "order_number": order_number,
                "recipient": mask_email(email),
                "sent": sent,
            },
        )
        return sent
