"""
Celery configuration for the Django application.

Celery runs the work that must happen after a payment webhook commits:
- Order confirmation and stock-unavailable emails
- Credential delivery for AUTOMATIC order items
- The conflict sweep that cancels PENDING orders left without stock

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Usage:
    from payments.tasks import dispatch_post_commit

    dispatch_post_commit.delay(result.to_dict())

Set CELERY_TASK_ALWAYS_EAGER=True to run tasks inline (tests, local runs
without a broker).

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Celery looks for a tasks.py module in each installed app
app.autodiscover_tasks()
