"""
Shared test fixtures and helpers for the Plaster test suite.
"""

import datetime

import pytest

from plaster import Plaster
from plaster.models import default


UTC = datetime.timezone.utc


@pytest.fixture
def registry():
    """Fresh, independent model registry for each test."""
    return Plaster()


@pytest.fixture(autouse=True)
def _reset_default_registry():
    """Keep the shared default registry empty between tests."""
    yield
    default.reset()


@pytest.fixture
def User(registry):
    """A small user model covering the scalar types."""
    return registry.model("User", {
        "first_name": str,
        "last_name": str,
        "date_of_birth": datetime.datetime,
        "age": {"type": int, "min": 0, "max": 130},
        "email": {"type": str, "max_length": 20},
        "active": bool,
    })
