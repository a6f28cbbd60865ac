"""
Django app configuration for delivery.
"""

from django.apps import AppConfig


class DeliveryConfig(AppConfig):
    """Configuration for the delivery application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "delivery"
    verbose_name = "Delivery"
