"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/<provider>/ - Provider webhook endpoint (cryptomus, weepay)

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.webhooks.views import payment_webhook

app_name = "payments"

urlpatterns = [
    # Webhook endpoints
    path("webhooks/<str:provider>/", payment_webhook, name="payment_webhook"),
]
