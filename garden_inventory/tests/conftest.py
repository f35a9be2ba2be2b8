"""
Test configuration and fixtures for the garden inventory test suite.

This module provides core fixtures and test isolation.
"""

import os
from collections.abc import Generator
from typing import Any

import pytest

os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")

# Imports must come after environment variables to prevent config loading surprises
from garden_inventory.config import reset_config  # noqa: E402
from garden_inventory.logging.enhanced_logging_config import get_logger  # noqa: E402

logger = get_logger(__name__)

# Register fixture plugins
pytest_plugins = [
    "garden_inventory.tests.fixtures.inventory_fixtures",
]


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    """Reset config singleton before and after each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def isolated_inventory_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables from changing engine defaults under test."""
    for name in list(os.environ):
        if name.startswith(("INVENTORY_", "STORAGE_", "NATS_")):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def test_logger() -> Any:
    """Provide a logger for tests."""
    return get_logger(__name__)
