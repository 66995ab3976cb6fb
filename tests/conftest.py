"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (in-memory store, mocked collaborators)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

# Deterministic credential key for every test
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key-not-for-production")


# =============================================================================
# Test Configuration
# =============================================================================

class TestConfig:
    """Centralized test configuration"""

    SHOP_DOMAIN = "shop.test"
    ENCRYPTION_KEY = "test-encryption-key-not-for-production"

    # Fixed instant used by clock fixtures
    NOW = datetime(2025, 10, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    """Provide test configuration"""
    return TestConfig()


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    """Settable clock passed where services take a `clock` callable"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at TestConfig.NOW"""
    return FakeClock(TestConfig.NOW)


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: TestConfig.NOW


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
