"""
structlog configuration for the garden inventory engine.

Log entries emitted while a host command is being dispatched carry that
command's ``action`` and ``correlation_id`` through structlog contextvars.
Host payloads can include session material, so credential-like keys are
redacted before rendering, including inside nested payload dicts and lists.
"""

import json
import logging
import os
import sys
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

logger = structlog.get_logger(__name__)

PACKAGE_LOGGER_NAME = "garden_inventory"

ENVIRONMENTS = ("local", "unit_test", "production")

SENSITIVE_KEY_FRAGMENTS = (
    "password",
    "secret",
    "token",
    "credential",
    "api_key",
    "private_key",
    "authorization",
    "session_id",
)

_LOGGING_INITIALIZED = False
_LOGGING_SIGNATURE: str | None = None


def detect_environment() -> str:
    """``unit_test`` under pytest, else ``LOGGING_ENVIRONMENT`` when valid, else ``local``."""
    if "pytest" in sys.modules or "pytest" in sys.argv[0]:
        return "unit_test"
    configured = os.getenv("LOGGING_ENVIRONMENT", "")
    return configured if configured in ENVIRONMENTS else "local"


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and any(fragment in key.lower() for fragment in SENSITIVE_KEY_FRAGMENTS)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: "[REDACTED]" if _is_sensitive(key) else _redact(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor replacing credential-like values with ``[REDACTED]``."""
    return _redact(event_dict)


def add_correlation_id(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    structlog processor giving every entry a correlation id.

    Entries logged outside a dispatched command get a fresh one.
    """
    event_dict.setdefault("correlation_id", str(uuid.uuid4()))
    return event_dict


def _attach_file_handler(log_file: str, level: int, max_bytes: int, backup_count: int) -> None:
    path = Path(log_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("Log directory unavailable; file logging disabled", directory=str(path.parent), error=str(e))
        return

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(handler)


def _renderer_for(environment: str) -> Any:
    if environment == "production":
        return structlog.processors.JSONRenderer()
    return structlog.processors.KeyValueRenderer(key_order=["event", "action", "correlation_id"])


def configure_enhanced_structlog(
    environment: str | None = None,
    log_level: str = "INFO",
    log_config: dict[str, Any] | None = None,
) -> None:
    """
    Configure structlog and the stdlib package logger.

    Args:
        environment: ``local``, ``unit_test`` or ``production`` (detected if None)
        log_level: Package log level name
        log_config: Logging section; ``log_file``, ``max_bytes`` and ``backup_count`` are read
    """
    environment = environment or detect_environment()
    log_config = log_config or {}
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(level)

    if log_config.get("log_file"):
        _attach_file_handler(
            log_config["log_file"],
            level,
            int(log_config.get("max_bytes", 10 * 1024 * 1024)),
            int(log_config.get("backup_count", 5)),
        )

    structlog.configure(
        processors=[
            merge_contextvars,
            sanitize_sensitive_data,
            add_correlation_id,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer_for(environment),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_enhanced_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Configure logging once per process from ``AppConfig.to_logging_dict()``.

    Later calls are ignored unless ``force_reconfigure`` is set.
    """
    global _LOGGING_INITIALIZED  # pylint: disable=global-statement
    global _LOGGING_SIGNATURE  # pylint: disable=global-statement

    if _LOGGING_INITIALIZED and not force_reconfigure:
        logger.debug("Logging already initialized", config_signature=_LOGGING_SIGNATURE)
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment") or detect_environment()
    log_level = logging_config.get("level", "INFO")
    configure_enhanced_structlog(environment, log_level, logging_config)

    _LOGGING_INITIALIZED = True
    _LOGGING_SIGNATURE = json.dumps(config, sort_keys=True, default=str)
    get_logger(__name__).info(
        "Logging initialized", environment=environment, log_level=log_level, log_file=logging_config.get("log_file")
    )


def set_debug_tracing(enabled: bool) -> None:
    """Lower the package logger to DEBUG for ``INVENTORY_DEBUG``; never raises it back."""
    if enabled:
        logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(logging.DEBUG)


def bind_command_context(correlation_id: str | None = None, action: str | None = None, **kwargs) -> str:
    """
    Bind the dispatched command's context to every subsequent log entry.

    Returns:
        The bound correlation id (generated when the host supplied none)
    """
    correlation_id = correlation_id or str(uuid.uuid4())
    context = {"correlation_id": correlation_id, "action": action, **kwargs}
    bind_contextvars(**{key: value for key, value in context.items() if value is not None})
    return correlation_id


def clear_command_context() -> None:
    clear_contextvars()


def get_current_context() -> dict[str, Any]:
    return structlog.contextvars.get_contextvars()


def get_logger(name: str) -> Any:
    """structlog logger for ``name`` (typically ``__name__``)."""
    return structlog.get_logger(name)
