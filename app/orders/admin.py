"""
Orders admin configuration.

Order status is FSM-managed, so it is read-only here; status changes go
through the payment webhook and refund services.
"""

from django.contrib import admin

from orders.models import CartItem, Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ["plan", "quantity", "price", "delivery_type", "stock_item", "ticket", "delivered_at"]
    readonly_fields = ["stock_item", "ticket", "delivered_at"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["order_number", "user", "status", "total", "currency", "created_at"]
    list_filter = ["status", "currency"]
    search_fields = ["order_number", "user__email", "id"]
    readonly_fields = ["id", "order_number", "status", "completed_at", "created_at", "updated_at"]
    inlines = [OrderItemInline]
    date_hierarchy = "created_at"


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ["user", "plan", "quantity", "created_at"]
    search_fields = ["user__email", "plan__name"]
