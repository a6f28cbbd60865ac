"""
Root pytest configuration for the Django project.

Sets environment defaults before settings are imported so the suite runs
against in-memory SQLite with Celery tasks executed inline. Values already
present in the environment win, so the same suite runs against PostgreSQL
in docker-compose by exporting DATABASE_URL.

App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("SECURE_SSL_REDIRECT", "False")
os.environ.setdefault("SESSION_COOKIE_SECURE", "False")
os.environ.setdefault("CSRF_COOKIE_SECURE", "False")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "True")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("EMAIL_BACKEND", "django.core.mail.backends.locmem.EmailBackend")
os.environ.setdefault("CRYPTOMUS_WEBHOOK_SECRET", "cryptomus-test-secret")
os.environ.setdefault("WEEPAY_WEBHOOK_SECRET", "weepay-test-secret")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()
