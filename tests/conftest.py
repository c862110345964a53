"""
Pytest configuration and shared fixtures.
"""
from datetime import datetime, timezone

import pytest

from cognitive_backend.services.logger_service import initialize_logger


@pytest.fixture(autouse=True)
def quiet_logger():
    """Fresh global logger per test, without console echo."""
    return initialize_logger(classification_level="DEBUG", system_level="DEBUG", echo=False)


@pytest.fixture
def fixed_now():
    return datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)
