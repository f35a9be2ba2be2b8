"""Base inventory command handlers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..exceptions import ErrorContext, InsufficientQuantityError, ItemNotFoundError
from ..logging.enhanced_logging_config import get_logger
from ..models.notifications import TaskTargetState
from ..schemas.host_messages import (
    AddItemRequest,
    CategoryRequest,
    GetItemRequest,
    ImportRequest,
    RemoveItemRequest,
    SyncVariableRequest,
    TransferItemRequest,
    UpdateItemRequest,
    UseItemRequest,
)
from ..services.item_store import require_positive_quantity
from .command_types import CommandContext, CommandHandler, CommandOutcome

logger = get_logger(__name__)


def handle_add_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = AddItemRequest.model_validate(payload)
    added = ctx.store.add(request.item, request.quantity)
    if added.created:
        return CommandOutcome.task(
            "item_added", TaskTargetState.SET_NOT_ACTIVE_TO_COMPLETED, added.record.id, result=added
        )
    return CommandOutcome.task("item_updated", TaskTargetState.SET_NOT_ACTIVE_TO_ACTIVE, added.record.id, result=added)


def handle_remove_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = RemoveItemRequest.model_validate(payload)
    removal = ctx.store.remove(request.item_id, request.quantity)
    if removal.removed_all:
        return CommandOutcome.task(
            "item_removed", TaskTargetState.SET_ACTIVE_TO_COMPLETED, removal.item_id, result=removal
        )
    return CommandOutcome.task("item_updated", TaskTargetState.SET_ACTIVE_TO_ACTIVE, removal.item_id, result=removal)


def handle_get_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = GetItemRequest.model_validate(payload)
    record = ctx.store.get(request.item_id)
    item = record.to_payload() if record is not None else None
    return CommandOutcome.reply("INVENTORY_ITEM", {"itemId": request.item_id, "item": item}, result=record)


def handle_get_inventory_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    return CommandOutcome.reply("INVENTORY_STATE", ctx.store.summary())


def handle_update_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = UpdateItemRequest.model_validate(payload)
    updated = ctx.store.update(request.item_id, request.updates)
    return CommandOutcome.task("item_updated", TaskTargetState.SET_ACTIVE_TO_ACTIVE, updated.id, result=updated)


def handle_use_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = UseItemRequest.model_validate(payload)
    removal = ctx.store.use(request.item_id, request.quantity)
    return CommandOutcome.task("item_used", TaskTargetState.SET_ACTIVE_TO_COMPLETED, request.item_id, result=removal)


def handle_transfer_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    """
    Debit units of an item toward a named target.

    The target's own holdings are not modelled; it only appears in the task name.
    """
    request = TransferItemRequest.model_validate(payload)
    record = ctx.store.get(request.item_id)
    if record is None:
        raise ItemNotFoundError(
            f"Item {request.item_id} not found in inventory",
            context=ErrorContext(action="transfer", item_id=request.item_id),
            item_id=request.item_id,
        )
    quantity = require_positive_quantity(request.quantity)
    if record.quantity < quantity:
        raise InsufficientQuantityError(
            f"Insufficient quantity of {record.name}",
            context=ErrorContext(action="transfer", item_id=request.item_id),
            item_id=request.item_id,
            requested=quantity,
            available=record.quantity,
        )

    removal = ctx.store.remove(request.item_id, quantity)
    logger.info("Transferred item", item_id=request.item_id, quantity=quantity, target_id=request.target_id)
    return CommandOutcome.task(
        "transfer",
        TaskTargetState.SET_ACTIVE_TO_COMPLETED,
        f"{request.item_id}_to_{request.target_id}",
        result=removal,
    )


def handle_clear_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    cleared = ctx.store.clear()
    return CommandOutcome.task("cleared", TaskTargetState.SET_ACTIVE_TO_COMPLETED, result={"cleared": cleared})


def handle_list_by_category_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = CategoryRequest.model_validate(payload)
    records = ctx.store.list_by_category(request.category)
    return CommandOutcome.reply(
        "INVENTORY_CATEGORY",
        {"category": request.category, "items": [record.to_payload() for record in records]},
        result=records,
    )


def handle_sync_variable_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = SyncVariableRequest.model_validate(payload)
    value = ctx.variables.set(request.name, request.value)
    return CommandOutcome.task(
        "variable_synced",
        TaskTargetState.SET_NOT_ACTIVE_TO_ACTIVE,
        request.name,
        mutated=False,
        result={request.name: value},
    )


def handle_export_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    return CommandOutcome.reply("INVENTORY_EXPORT", ctx.gateway.export_data(ctx.store))


def handle_import_command(ctx: CommandContext, payload: Mapping[str, Any]) -> CommandOutcome:
    request = ImportRequest.model_validate(payload)
    imported = ctx.gateway.import_data(ctx.store, request.blob())
    return CommandOutcome(
        task_action="imported",
        state=TaskTargetState.SET_NOT_ACTIVE_TO_COMPLETED,
        reply_type="INVENTORY_IMPORTED",
        reply_payload={"itemCount": imported},
        mutated=True,
        result={"imported": imported},
    )


BASE_HANDLERS: dict[str, CommandHandler] = {
    "add": handle_add_command,
    "remove": handle_remove_command,
    "get": handle_get_command,
    "get-inventory": handle_get_inventory_command,
    "update": handle_update_command,
    "use": handle_use_command,
    "transfer": handle_transfer_command,
    "clear": handle_clear_command,
    "list-by-category": handle_list_by_category_command,
    "sync-variable": handle_sync_variable_command,
    "export": handle_export_command,
    "import": handle_import_command,
}
