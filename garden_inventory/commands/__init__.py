"""
Command processing for the garden inventory engine.

This package provides the dispatcher that routes inbound host messages and
the action tables of base inventory and garden command handlers.
"""

from .command_dispatcher import CommandDispatcher, build_action_table
from .command_types import CommandContext, CommandHandler, CommandOutcome, DispatchResult
from .garden_commands import GARDEN_ACTION_ALIASES, GARDEN_HANDLERS
from .inventory_commands import BASE_HANDLERS

__all__ = [
    "BASE_HANDLERS",
    "GARDEN_ACTION_ALIASES",
    "GARDEN_HANDLERS",
    "CommandContext",
    "CommandDispatcher",
    "CommandHandler",
    "CommandOutcome",
    "DispatchResult",
    "build_action_table",
]
