"""Structured logging for the garden inventory engine."""

from .enhanced_logging_config import (
    bind_command_context,
    clear_command_context,
    get_logger,
    setup_enhanced_logging,
)

__all__ = ["bind_command_context", "clear_command_context", "get_logger", "setup_enhanced_logging"]
