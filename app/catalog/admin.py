"""
Catalog admin configuration.
"""

from django.contrib import admin

from catalog.models import Plan, Product, StockItem


class PlanInline(admin.TabularInline):
    model = Plan
    extra = 0
    fields = ["name", "plan_type", "delivery_type", "duration_days", "price", "is_active"]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "is_active", "created_at"]
    list_filter = ["is_active"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ["name"]}
    inlines = [PlanInline]


@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "product",
        "plan_type",
        "delivery_type",
        "duration_days",
        "price",
        "is_active",
    ]
    list_filter = ["delivery_type", "billing_period", "is_active"]
    search_fields = ["name", "product__name"]


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    """
    Stock is read-only once consumed.

    Content is deliberately not listed to keep secrets off list pages.
    """

    list_display = ["id", "plan", "is_used", "used_at", "created_at"]
    list_filter = ["is_used", "plan__product"]
    search_fields = ["id", "plan__name"]
    readonly_fields = ["id", "is_used", "used_at", "created_at", "updated_at"]
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        """Consumed stock must never be deleted."""
        return obj is None or not obj.is_used
