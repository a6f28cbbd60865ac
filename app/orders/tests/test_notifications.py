"""
Tests for order notification emails.
"""

from decimal import Decimal
from unittest.mock import patch

from django.core import mail

from orders.notifications import OrderNotificationService


class TestSendOrderConfirmation:
    def test_sends_confirmation(self):
        sent = OrderNotificationService.send_order_confirmation(
            email="buyer@example.com",
            order_number="ORD-20261016-AAAA0001",
            total=Decimal("9.98"),
            items=[
                {"product_name": "Spotify", "plan_name": "Premium 1 Month", "price": "4.99"},
                {"product_name": "Netflix", "plan_name": "4K", "price": "4.99"},
            ],
        )

        assert sent is True
        [message] = mail.outbox
        assert message.subject == "Order ORD-20261016-AAAA0001 confirmed"
        assert "Netflix / 4K: 4.99" in message.body
        assert "9.98" in message.body

    def test_missing_recipient_skips_send(self):
        with patch("orders.notifications.EmailService.send") as send:
            sent = OrderNotificationService.send_order_confirmation(
                email="", order_number="ORD-1", total="1.00", items=[]
            )

        assert sent is False
        send.assert_not_called()


class TestSendStockUnavailable:
    def test_lists_shortfalls(self):
        OrderNotificationService.send_stock_unavailable(
            email="buyer@example.com",
            order_number="ORD-1",
            shortfalls=[
                {
                    "plan_id": "p1",
                    "product_name": "Spotify",
                    "plan_type": "Premium",
                    "requested": 2,
                    "available": 0,
                }
            ],
        )

        [message] = mail.outbox
        assert "Spotify Premium (0 of 2 available)" in message.body
