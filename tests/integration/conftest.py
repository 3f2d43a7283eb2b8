"""
FILE: tests/integration/conftest.py
Live tutorial runs against a configured platform; skipped otherwise.
"""

import pytest

from src.infrastructure.platform import ApiFactory
from src.infrastructure.platform.config import platform_configured


@pytest.fixture(scope="session")
def live_api_factory():
    if not platform_configured():
        pytest.skip("PLATFORM_API_URL is not configured")
    with ApiFactory() as factory:
        yield factory
