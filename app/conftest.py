"""
Pytest configuration shared by every app under app/.

Applies test-only settings and auto-marks tests as unit, integration or e2e
from their filename.
"""

import pytest


def pytest_configure():
    from django.conf import settings

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_webhook_views.py → e2e (signed webhook through to delivery)
    - test_services.py, test_fulfillment.py, test_tasks.py, etc. → integration
    - test_models.py, test_signatures.py, test_status_maps.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_webhook_views.py"]

    integration_patterns = [
        "test_services.py",
        "test_fulfillment.py",
        "test_conflict_sweep.py",
        "test_dispatcher.py",
        "test_refund_service.py",
        "test_resolvers.py",
        "test_tasks.py",
        "test_notifications.py",
        "test_email.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_signatures.py",
        "test_status_maps.py",
        "test_helpers.py",
        "test_exceptions.py",
        "test_service_result.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = item.path.name

        if any(pattern == filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern == filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern == filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)
