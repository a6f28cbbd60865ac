"""
Support tickets opened for manual fulfilment.

Usage:
    from delivery.models import SupportTicket, TicketStatus

    open_tickets = SupportTicket.objects.filter(status=TicketStatus.OPEN)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class TicketCategory(models.TextChoices):
    ORDER_ISSUES = "ORDER_ISSUES", "Order issues"
    ACCOUNT = "ACCOUNT", "Account"
    PAYMENT = "PAYMENT", "Payment"
    TECHNICAL = "TECHNICAL", "Technical"
    OTHER = "OTHER", "Other"


class TicketPriority(models.TextChoices):
    LOW = "LOW", "Low"
    MEDIUM = "MEDIUM", "Medium"
    HIGH = "HIGH", "High"
    URGENT = "URGENT", "Urgent"


class TicketStatus(models.TextChoices):
    """
    Ticket lifecycle.

    A MANUAL order item counts as delivered once its ticket is CLOSED.
    """

    OPEN = "OPEN", "Open"
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    CLOSED = "CLOSED", "Closed"


class SupportTicket(UUIDPrimaryKeyMixin, BaseModel):
    """
    A request for staff to act on a customer's order.

    Fields:
        ticket_number: Sequential reference, e.g. DELIVERY-000001
        user: Customer the ticket is about
        is_auto_created: True when opened by the delivery pipeline
        tags: Free-form labels (JSON list of strings)
    """

    ticket_number = models.CharField(max_length=32, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="support_tickets",
    )
    title = models.CharField(max_length=200)
    description = models.TextField()
    category = models.CharField(
        max_length=20,
        choices=TicketCategory.choices,
        default=TicketCategory.OTHER,
    )
    priority = models.CharField(
        max_length=10,
        choices=TicketPriority.choices,
        default=TicketPriority.MEDIUM,
    )
    status = models.CharField(
        max_length=20,
        choices=TicketStatus.choices,
        default=TicketStatus.OPEN,
        db_index=True,
    )
    is_auto_created = models.BooleanField(default=False)
    tags = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.ticket_number}: {self.title}"
