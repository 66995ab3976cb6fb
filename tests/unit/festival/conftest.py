"""
Unit Test Fixtures for Festival Service

Uses FestivalTestDataFactory from the data contract.
"""

import os
import random
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.festival.data_contract import FestivalTestDataFactory


@pytest.fixture
def factory():
    """Provide test data factory"""
    return FestivalTestDataFactory()


@pytest.fixture
def rng():
    """Seeded random source"""
    return random.Random(42)
