"""
Delivery admin configuration.
"""

from django.contrib import admin

from delivery.models import SupportTicket


@admin.register(SupportTicket)
class SupportTicketAdmin(admin.ModelAdmin):
    list_display = [
        "ticket_number",
        "user",
        "title",
        "category",
        "priority",
        "status",
        "is_auto_created",
        "created_at",
    ]
    list_filter = ["status", "category", "priority", "is_auto_created"]
    search_fields = ["ticket_number", "title", "user__email"]
    readonly_fields = ["id", "ticket_number", "is_auto_created", "created_at", "updated_at"]
