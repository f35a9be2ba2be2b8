"""
Garden command handlers.

These layer on top of the base inventory table; anything not named here falls
through to it. The host's original upper-case action names are kept as aliases.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models.notifications import TaskTargetState
from ..schemas.host_messages import CraftRequest, HarvestRequest, PlantSeedRequest, UpgradeToolRequest
from .command_types import CommandContext, CommandHandler, CommandOutcome


def handle_plant_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = PlantSeedRequest.model_validate(payload)
    planting = ctx.resolver.plant_seed(request.seed_id, None if request.plot_id is None else str(request.plot_id))
    task_id = request.seed_id if planting.plot_id is None else f"{request.seed_id}_{planting.plot_id}"
    return CommandOutcome.task("seed_planted", TaskTargetState.SET_NOT_ACTIVE_TO_COMPLETED, task_id, result=planting)


def handle_harvest_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = HarvestRequest.model_validate(payload)
    added = ctx.resolver.harvest(request.produce.item, request.produce.quantity)
    task_id = str(request.plot_id) if request.plot_id is not None else added.record.id
    return CommandOutcome.task("plant_harvested", TaskTargetState.SET_ACTIVE_TO_COMPLETED, task_id, result=added)


def handle_upgrade_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = UpgradeToolRequest.model_validate(payload)
    tool = ctx.resolver.upgrade_tool(request.tool_id, request.upgrade_materials)
    return CommandOutcome.task("tool_upgraded", TaskTargetState.SET_ACTIVE_TO_COMPLETED, tool.id, result=tool)


def handle_craft_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = CraftRequest.model_validate(payload)
    crafted = ctx.resolver.craft(request.recipe, request.quantity)
    return CommandOutcome.task(
        "item_crafted", TaskTargetState.SET_NOT_ACTIVE_TO_COMPLETED, crafted.crafted.id, result=crafted
    )


GARDEN_HANDLERS: dict[str, CommandHandler] = {
    "plant": handle_plant_command,
    "harvest": handle_harvest_command,
    "upgrade": handle_upgrade_command,
    "craft": handle_craft_command,
}

GARDEN_ACTION_ALIASES: dict[str, str] = {
    "PLANT_SEED": "plant",
    "HARVEST_PLANT": "harvest",
    "UPGRADE_TOOL": "upgrade",
    "CRAFT_ITEM": "craft",
}
