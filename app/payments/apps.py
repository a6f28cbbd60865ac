"""
Payments app configuration.

This app owns payment attempts, the webhook pipeline that settles them,
and the subscriptions a completed payment grants.
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
