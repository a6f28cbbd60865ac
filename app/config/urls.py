"""
URL configuration for the Django application.

URL Structure:
    /admin/                        - Django admin interface
    /api/v1/payments/              - Payment endpoints
        webhooks/<provider>/       - Provider webhook endpoint (POST; cryptomus, weepay)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Payments
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Storefront Admin"
admin.site.site_title = "Storefront Admin"
admin.site.index_title = "Orders, payments and delivery"
