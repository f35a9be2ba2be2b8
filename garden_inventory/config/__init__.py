"""
Configuration access for the garden inventory engine.

Usage:
    from garden_inventory.config import get_config

    config = get_config()
    engine = InventoryEngine(config.inventory, storage=build_storage(config.storage))
"""

import os
import sys
import threading

from .models import AppConfig, InventoryConfig, LoggingConfig, NATSConfig, StorageConfig

__all__ = ["get_config", "reset_config", "AppConfig", "InventoryConfig", "LoggingConfig", "NATSConfig", "StorageConfig"]

_config_instance: AppConfig | None = None
_config_lock = threading.Lock()


def _is_test_mode() -> bool:
    """True under pytest, where every test must see its own environment."""
    return "pytest" in sys.modules or bool(os.getenv("PYTEST_CURRENT_TEST"))


def get_config(*, reload: bool = False) -> AppConfig:
    """
    Application configuration from ``.env`` and prefixed environment variables.

    Loaded once per process and shared; under pytest a fresh instance is built
    on every call.

    Args:
        reload: Re-read the environment even when a cached instance exists

    Raises:
        ValidationError: If configuration is invalid
    """
    global _config_instance  # pylint: disable=global-statement

    if _is_test_mode():
        return AppConfig()

    with _config_lock:
        if _config_instance is None or reload:
            _config_instance = AppConfig()
        return _config_instance


def reset_config() -> None:
    """Forget the cached configuration; the next get_config() reloads it."""
    global _config_instance  # pylint: disable=global-statement

    with _config_lock:
        _config_instance = None
