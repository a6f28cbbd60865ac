"""
Pytest fixtures for order tests.
"""

import pytest

from orders.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a test buyer."""
    return UserFactory()
