"""
Payment admin configuration.

Payments and webhook events form the audit trail, so neither can be
deleted from the admin. Status is changed only through the services.
"""

from django.contrib import admin

from payments.models import Payment, UserSubscription, WebhookEvent

__all__ = [
    "PaymentAdmin",
    "UserSubscriptionAdmin",
    "WebhookEventAdmin",
]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Payment.

    Shows provider references and the reason recorded for failed,
    cancelled or stock-conflicted payments.
    """

    list_display = [
        "id",
        "order",
        "method",
        "status",
        "amount_display",
        "provider_payment_id",
        "completed_at",
        "created_at",
    ]
    list_filter = ["status", "method", "created_at"]
    search_fields = ["id", "provider_payment_id", "order__order_number", "order__user__email"]
    readonly_fields = [
        "id",
        "status",
        "provider_payment_id",
        "webhook_data",
        "completed_at",
        "refund_amount",
        "refunded_at",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["order"]
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "order", "method", "status"),
            },
        ),
        (
            "Amount",
            {
                "fields": ("amount", "currency", "refund_amount", "refunded_at"),
            },
        ),
        (
            "Provider",
            {
                "fields": ("provider_payment_id", "failure_reason", "webhook_data"),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("completed_at", "created_at", "updated_at"),
            },
        ),
    )

    def amount_display(self, obj: Payment) -> str:
        """Display the amount with its currency."""
        return f"{obj.amount} {obj.currency.upper()}"

    amount_display.short_description = "Amount"

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payments (audit trail)."""
        return False


@admin.register(UserSubscription)
class UserSubscriptionAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "user",
        "plan",
        "status",
        "start_date",
        "end_date",
        "auto_renew",
    ]
    list_filter = ["status", "billing_period", "auto_renew"]
    search_fields = ["id", "user__email", "order__order_number"]
    readonly_fields = ["id", "order", "order_item", "created_at", "updated_at"]
    raw_id_fields = ["user", "plan"]
    ordering = ["-created_at"]


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "provider",
        "provider_status",
        "canonical_outcome",
        "outcome",
        "http_status",
        "created_at",
    ]
    list_filter = ["provider", "outcome", "created_at"]
    search_fields = ["id", "provider_payment_id", "payment__id"]
    readonly_fields = [
        "id",
        "provider",
        "provider_payment_id",
        "provider_status",
        "canonical_outcome",
        "payment",
        "payload",
        "outcome",
        "http_status",
        "error_message",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
