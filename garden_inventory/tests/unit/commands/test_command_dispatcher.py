"""
Unit tests for the command dispatcher.

Every inbound message is fed through the local host transport and the wire
events it produces are compared against what the host expects.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from garden_inventory.commands.command_dispatcher import CommandDispatcher, build_action_table
from garden_inventory.commands.command_types import CommandContext, CommandOutcome
from garden_inventory.commands.inventory_commands import BASE_HANDLERS
from garden_inventory.config.models import InventoryConfig
from garden_inventory.engine import InventoryEngine
from garden_inventory.error_types import FailureKind
from garden_inventory.infrastructure.host_transport import LocalHostTransport
from garden_inventory.infrastructure.storage import InMemoryStorage
from garden_inventory.logging.enhanced_logging_config import get_current_context
from garden_inventory.models.notifications import TaskTargetState


def _task(name: str, state: str) -> dict[str, str]:
    return {"TaskName": name, "TaskTargetState": state}


def _deliver(transport: LocalHostTransport, message):
    transport.sent.clear()
    result = transport.deliver(message)
    return result, transport.wire_messages()


@pytest.fixture
def small_engine(memory_storage, host_transport) -> InventoryEngine:
    return InventoryEngine(
        InventoryConfig(max_slots=1, auto_save=True), storage=memory_storage, transport=host_transport
    )


class TestItemActions:
    """Notification mapping for the base item actions."""

    def test_add_new_item(self, inventory_engine, host_transport, wood):
        result, sent = _deliver(host_transport, {"action": "add", "item": wood, "quantity": 3})

        assert result.ok is True
        assert result.action == "add"
        assert sent == [_task("inventory_item_added_wood", "SetNotActiveToCompleted")]
        assert inventory_engine.store.get("wood").quantity == 3

    def test_add_existing_item(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood})

        _, sent = _deliver(host_transport, {"action": "add", "item": wood, "quantity": 2})

        assert sent == [_task("inventory_item_updated_wood", "SetNotActiveToActive")]
        assert inventory_engine.store.get("wood").quantity == 3

    def test_add_at_capacity_emits_full_then_failure(self, small_engine, host_transport, wood, stone):
        host_transport.deliver({"action": "add", "item": wood})

        result, sent = _deliver(host_transport, {"action": "add", "item": stone})

        assert result.ok is False
        assert result.failure is FailureKind.CAPACITY_EXCEEDED
        assert sent == [
            _task("inventory_full", "SetNotActiveToActive"),
            _task("inventory_add_failed_capacity_exceeded", "SetActiveToNotActive"),
        ]
        assert small_engine.store.ids() == ["wood"]

    def test_add_invalid_item(self, inventory_engine, host_transport):
        result, sent = _deliver(host_transport, {"action": "add", "item": {"id": "x", "name": "X"}})

        assert result.failure is FailureKind.INVALID_ITEM
        assert sent == [_task("inventory_add_failed_invalid_item", "SetActiveToNotActive")]

    def test_remove_partial_and_full(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood, "quantity": 5})

        _, sent = _deliver(host_transport, {"action": "remove", "itemId": "wood", "quantity": 2})
        assert sent == [_task("inventory_item_updated_wood", "SetActiveToActive")]

        _, sent = _deliver(host_transport, {"action": "remove", "itemId": "wood"})
        assert sent == [_task("inventory_item_removed_wood", "SetActiveToCompleted")]
        assert "wood" not in inventory_engine.store

    def test_remove_missing_item(self, inventory_engine, host_transport):
        result, sent = _deliver(host_transport, {"action": "remove", "itemId": "ghost"})

        assert result.failure is FailureKind.NOT_FOUND
        assert sent == [_task("inventory_remove_failed_not_found", "SetActiveToNotActive")]

    def test_remove_zero_quantity_is_invalid_argument(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood, "quantity": 5})

        result, sent = _deliver(host_transport, {"action": "remove", "itemId": "wood", "quantity": 0})

        assert result.failure is FailureKind.INVALID_ARGUMENT
        assert sent == [_task("inventory_remove_failed_invalid_argument", "SetActiveToNotActive")]
        assert inventory_engine.store.get("wood").quantity == 5

    def test_update(self, inventory_engine, host_transport, watering_can):
        host_transport.deliver({"action": "add", "item": watering_can})

        result, sent = _deliver(
            host_transport, {"action": "update", "itemId": "watering_can", "updates": {"color": "green"}}
        )

        assert sent == [_task("inventory_item_updated_watering_can", "SetActiveToActive")]
        assert result.result.extra_field("color") == "green"

    def test_use(self, inventory_engine, host_transport, tomato_seed):
        host_transport.deliver({"action": "add", "item": tomato_seed, "quantity": 3})

        _, sent = _deliver(host_transport, {"action": "use", "itemId": "tomato_seed", "quantity": 2})

        assert sent == [_task("inventory_item_used_tomato_seed", "SetActiveToCompleted")]
        assert inventory_engine.store.get("tomato_seed").quantity == 1

    def test_use_non_consumable(self, inventory_engine, host_transport, watering_can):
        host_transport.deliver({"action": "add", "item": watering_can})

        _, sent = _deliver(host_transport, {"action": "use", "itemId": "watering_can"})

        assert sent == [_task("inventory_use_failed_not_consumable", "SetActiveToNotActive")]

    def test_transfer_full_stack_references_target(self, inventory_engine, host_transport, gold):
        host_transport.deliver({"action": "add", "item": gold, "quantity": 10})

        result, sent = _deliver(
            host_transport, {"action": "transfer", "itemId": "gold", "quantity": 10, "targetId": "market"}
        )

        assert result.ok is True
        assert sent == [_task("inventory_transfer_gold_to_market", "SetActiveToCompleted")]
        assert "gold" not in inventory_engine.store

    def test_transfer_insufficient_quantity(self, inventory_engine, host_transport, gold):
        host_transport.deliver({"action": "add", "item": gold, "quantity": 3})

        _, sent = _deliver(host_transport, {"action": "transfer", "itemId": "gold", "quantity": 5, "targetId": "m"})

        assert sent == [_task("inventory_transfer_failed_insufficient_quantity", "SetActiveToNotActive")]
        assert inventory_engine.store.get("gold").quantity == 3

    def test_transfer_checks_existence_before_quantity(self, inventory_engine, host_transport):
        result, _ = _deliver(host_transport, {"action": "transfer", "itemId": "gold", "quantity": -1, "targetId": "m"})

        assert result.failure is FailureKind.NOT_FOUND

    def test_clear(self, inventory_engine, host_transport, wood, stone):
        host_transport.deliver({"action": "add", "item": wood})
        host_transport.deliver({"action": "add", "item": stone})

        result, sent = _deliver(host_transport, {"action": "clear"})

        assert result.result == {"cleared": 2}
        assert sent == [_task("inventory_cleared", "SetActiveToCompleted")]
        assert len(inventory_engine.store) == 0


class TestReadActions:
    """Read-only actions answer with data replies."""

    def test_get(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood, "quantity": 2})

        _, sent = _deliver(host_transport, {"action": "get", "itemId": "wood"})

        assert sent[0]["type"] == "INVENTORY_ITEM"
        assert sent[0]["payload"]["item"]["quantity"] == 2

    def test_get_missing_returns_null_item(self, inventory_engine, host_transport):
        result, sent = _deliver(host_transport, {"action": "get", "itemId": "ghost"})

        assert result.ok is True
        assert sent == [{"type": "INVENTORY_ITEM", "payload": {"itemId": "ghost", "item": None}}]

    def test_get_inventory(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood})

        _, sent = _deliver(host_transport, {"action": "get-inventory"})

        assert sent[0]["type"] == "INVENTORY_STATE"
        assert sent[0]["payload"]["count"] == 1
        assert sent[0]["payload"]["emptySlots"] == 49

    def test_list_by_category_accepts_snake_case(self, inventory_engine, host_transport, tomato_seed, wood):
        host_transport.deliver({"action": "add", "item": tomato_seed})
        host_transport.deliver({"action": "add", "item": wood})

        result, sent = _deliver(host_transport, {"action": "list_by_category", "category": "seeds"})

        assert result.action == "list-by-category"
        assert sent[0]["type"] == "INVENTORY_CATEGORY"
        assert [item["id"] for item in sent[0]["payload"]["items"]] == ["tomato_seed"]

    def test_export(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood})

        _, sent = _deliver(host_transport, {"action": "export"})

        assert sent[0]["type"] == "INVENTORY_EXPORT"
        assert sent[0]["payload"]["metadata"]["itemCount"] == 1

    def test_read_actions_do_not_flush(self, host_transport, wood):
        storage = MagicMock()
        storage.get.return_value = None
        engine = InventoryEngine(InventoryConfig(), storage=storage, transport=host_transport)

        engine.handle_message({"action": "get-inventory"})
        engine.handle_message({"action": "export"})
        engine.handle_message({"action": "get", "itemId": "wood"})

        storage.set.assert_not_called()


class TestGardenActions:
    """Garden actions and their upper-case aliases."""

    def test_plant_with_plot(self, inventory_engine, host_transport, tomato_seed):
        host_transport.deliver({"action": "add", "item": tomato_seed, "quantity": 2})

        result, sent = _deliver(host_transport, {"action": "PLANT_SEED", "seedId": "tomato_seed", "plotId": 4})

        assert result.action == "plant"
        assert result.result.plant_type == "tomato"
        assert sent == [_task("inventory_seed_planted_tomato_seed_4", "SetNotActiveToCompleted")]

    def test_plant_without_plot(self, inventory_engine, host_transport, tomato_seed):
        host_transport.deliver({"action": "add", "item": tomato_seed})

        _, sent = _deliver(host_transport, {"action": "plant", "payload": {"seedId": "tomato_seed"}})

        assert sent == [_task("inventory_seed_planted_tomato_seed", "SetNotActiveToCompleted")]

    def test_plant_invalid_seed(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood})

        _, sent = _deliver(host_transport, {"action": "plant", "seedId": "wood"})

        assert sent == [_task("inventory_plant_failed_invalid_seed", "SetActiveToNotActive")]

    def test_harvest(self, inventory_engine, host_transport, tomato):
        _, sent = _deliver(
            host_transport,
            {"action": "HARVEST_PLANT", "plotId": "plot-2", "produce": {"item": tomato, "quantity": 3}},
        )

        assert sent == [_task("inventory_plant_harvested_plot-2", "SetActiveToCompleted")]
        assert inventory_engine.store.get("tomato").quantity == 3

    def test_harvest_without_plot_uses_item_id(self, inventory_engine, host_transport, tomato):
        _, sent = _deliver(host_transport, {"action": "harvest", "produce": {"item": tomato}})

        assert sent == [_task("inventory_plant_harvested_tomato", "SetActiveToCompleted")]

    def test_upgrade(self, inventory_engine, host_transport, watering_can, wood):
        host_transport.deliver({"action": "add", "item": watering_can})
        host_transport.deliver({"action": "add", "item": wood, "quantity": 2})

        result, sent = _deliver(
            host_transport,
            {"action": "UPGRADE_TOOL", "toolId": "watering_can", "upgradeMaterials": [{"id": "wood", "quantity": 2}]},
        )

        assert sent == [_task("inventory_tool_upgraded_watering_can", "SetActiveToCompleted")]
        assert result.result.extra_field("level") == 2

    def test_upgrade_invalid_tool(self, inventory_engine, host_transport):
        _, sent = _deliver(host_transport, {"action": "upgrade", "toolId": "ghost"})

        assert sent == [_task("inventory_upgrade_failed_invalid_tool", "SetActiveToNotActive")]

    def test_upgrade_tool_with_text_level_is_invalid_tool(self, inventory_engine, host_transport, watering_can):
        inventory_engine.store.add({**watering_can, "level": "2"})

        result, sent = _deliver(host_transport, {"action": "upgrade", "toolId": "watering_can"})

        assert result.failure is FailureKind.INVALID_TOOL
        assert sent == [_task("inventory_upgrade_failed_invalid_tool", "SetActiveToNotActive")]

    def test_craft(self, inventory_engine, host_transport, wood, stone, axe_recipe):
        host_transport.deliver({"action": "add", "item": wood, "quantity": 2})
        host_transport.deliver({"action": "add", "item": stone})

        _, sent = _deliver(host_transport, {"action": "CRAFT_ITEM", "recipe": axe_recipe})

        assert sent == [_task("inventory_item_crafted_axe", "SetNotActiveToCompleted")]

    def test_craft_insufficient_material_leaves_store_unchanged(
        self, inventory_engine, host_transport, wood, axe_recipe
    ):
        host_transport.deliver({"action": "add", "item": wood})
        before = inventory_engine.store.snapshot()

        result, sent = _deliver(host_transport, {"action": "craft", "recipe": axe_recipe})

        assert result.failure is FailureKind.INSUFFICIENT_MATERIAL
        assert sent == [_task("inventory_craft_failed_insufficient_material", "SetActiveToNotActive")]
        assert inventory_engine.store.snapshot() == before


class TestVariablesAndImport:
    def test_sync_variable(self, inventory_engine, host_transport, memory_storage):
        result, sent = _deliver(host_transport, {"action": "sync-variable", "name": "coins", "value": 12})

        assert sent == [_task("inventory_variable_synced_coins", "SetNotActiveToActive")]
        assert inventory_engine.variables.get("coins") == 12
        assert result.result == {"coins": 12}
        assert memory_storage.get("garden-inventory") is None

    def test_sync_variable_rejects_non_scalar(self, inventory_engine, host_transport):
        _, sent = _deliver(host_transport, {"action": "sync-variable", "name": "coins", "value": [1]})

        assert sent == [_task("inventory_sync_variable_failed_invalid_argument", "SetActiveToNotActive")]

    def test_import(self, inventory_engine, host_transport, memory_storage, wood):
        host_transport.deliver({"action": "add", "item": wood})
        blob = {"items": [{"id": "stone", "name": "Stone", "type": "resource", "quantity": 2}], "metadata": {}}

        _, sent = _deliver(host_transport, {"action": "import", "data": blob})

        assert sent == [
            _task("inventory_imported", "SetNotActiveToCompleted"),
            {"type": "INVENTORY_IMPORTED", "payload": {"itemCount": 1}},
        ]
        assert inventory_engine.store.ids() == ["stone"]
        assert json.loads(memory_storage.get("garden-inventory"))["items"][0]["id"] == "stone"

    def test_import_invalid(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood})

        _, sent = _deliver(host_transport, {"action": "import", "data": {"items": "nope"}})

        assert sent == [_task("inventory_import_failed_invalid_import_data", "SetActiveToNotActive")]
        assert inventory_engine.store.ids() == ["wood"]


class TestMessageHandling:
    """Envelope decoding, drops, ordering and error containment."""

    @pytest.mark.parametrize(
        "message",
        [
            {"action": "teleport", "itemId": "wood"},
            {"itemId": "wood"},
            {"action": ""},
            {"action": 42},
            ["add"],
            "not json",
            json.dumps([1, 2]),
            None,
        ],
    )
    def test_malformed_or_unknown_messages_are_dropped(self, inventory_engine, host_transport, message):
        result, sent = _deliver(host_transport, message)

        assert result is None
        assert sent == []

    def test_json_string_messages_are_decoded(self, inventory_engine, host_transport, wood):
        result, sent = _deliver(host_transport, json.dumps({"action": "add", "item": wood}))

        assert result.ok is True
        assert sent == [_task("inventory_item_added_wood", "SetNotActiveToCompleted")]

    def test_nested_payload_wins_over_top_level(self, inventory_engine, host_transport, wood):
        host_transport.deliver({"action": "add", "item": wood, "quantity": 5})

        _, sent = _deliver(
            host_transport, {"action": "remove", "itemId": "other", "payload": {"itemId": "wood", "quantity": 1}}
        )

        assert sent == [_task("inventory_item_updated_wood", "SetActiveToActive")]

    def test_schema_violation_is_invalid_argument(self, inventory_engine, host_transport):
        result, sent = _deliver(host_transport, {"action": "add", "item": "wood"})

        assert result.failure is FailureKind.INVALID_ARGUMENT
        assert sent == [_task("inventory_add_failed_invalid_argument", "SetActiveToNotActive")]

    @pytest.mark.parametrize("quantity", ["3", 2.5, True])
    def test_quantities_must_be_integers(self, inventory_engine, host_transport, wood, quantity):
        result, _ = _deliver(host_transport, {"action": "add", "item": wood, "quantity": quantity})

        assert result.failure is FailureKind.INVALID_ARGUMENT
        assert "wood" not in inventory_engine.store

    def test_unexpected_exception_becomes_internal_error(self, host_transport):
        def explode(ctx, payload):
            raise RuntimeError("boom")

        engine = InventoryEngine(
            InventoryConfig(auto_save=False),
            transport=host_transport,
            action_table=build_action_table({"explode": explode}, BASE_HANDLERS),
        )

        result = engine.handle_message({"action": "explode"})

        assert result.failure is FailureKind.INTERNAL_ERROR
        assert host_transport.wire_messages() == [
            _task("inventory_explode_failed_internal_error", "SetActiveToNotActive")
        ]

    def test_mutation_flushes_before_notification(self, memory_storage, wood):
        observed = []

        def sink(wire):
            observed.append((wire["TaskName"], memory_storage.get("garden-inventory")))

        transport = LocalHostTransport(sink=sink)
        InventoryEngine(InventoryConfig(), storage=memory_storage, transport=transport)

        transport.deliver({"action": "add", "item": wood})

        name, blob_at_emit = observed[0]
        assert name == "inventory_item_added_wood"
        assert json.loads(blob_at_emit)["items"][0]["id"] == "wood"

    def test_auto_save_disabled_skips_flush(self, memory_storage, host_transport, wood):
        engine = InventoryEngine(InventoryConfig(auto_save=False), storage=memory_storage, transport=host_transport)

        engine.handle_message({"action": "add", "item": wood})

        assert memory_storage.get("garden-inventory") is None

    def test_failures_do_not_flush(self, host_transport):
        storage = MagicMock()
        storage.get.return_value = None
        engine = InventoryEngine(InventoryConfig(), storage=storage, transport=host_transport)

        engine.handle_message({"action": "remove", "itemId": "ghost"})

        storage.set.assert_not_called()

    def test_reentrant_message_is_processed_after_current(self, memory_storage, wood, stone):
        order = []

        def sink(wire):
            order.append(wire["TaskName"])
            if wire["TaskName"] == "inventory_item_added_wood":
                assert transport.deliver({"action": "add", "item": stone}) is None
                order.append("delivered-stone")

        transport = LocalHostTransport(sink=sink)
        InventoryEngine(InventoryConfig(), storage=memory_storage, transport=transport)

        transport.deliver({"action": "add", "item": wood})

        assert order == ["inventory_item_added_wood", "delivered-stone", "inventory_item_added_stone"]

    def test_correlation_id_is_bound_during_handling(self, host_transport):
        seen = {}

        def capture(ctx, payload):
            seen.update(get_current_context())
            return CommandOutcome.task("noted", TaskTargetState.SET_NOT_ACTIVE_TO_ACTIVE, mutated=False)

        engine = InventoryEngine(
            InventoryConfig(auto_save=False),
            transport=host_transport,
            action_table=build_action_table({"note": capture}),
        )

        engine.handle_message({"action": "note", "correlationId": "abc-123"})

        assert seen["correlation_id"] == "abc-123"
        assert seen["action"] == "note"

    def test_overriding_layer_wins_and_falls_through_to_base(self, item_store, persistence_gateway, wood):
        calls = []

        def handle_add(ctx, payload):
            calls.append(dict(payload))
            return BASE_HANDLERS["add"](ctx, payload)

        context = CommandContext(
            store=item_store, resolver=MagicMock(), gateway=persistence_gateway, variables=MagicMock()
        )
        dispatcher = CommandDispatcher(
            context, MagicMock(), action_table=build_action_table({"add": handle_add}, BASE_HANDLERS), auto_save=False
        )

        dispatcher.handle_message({"action": "add", "item": wood})
        dispatcher.handle_message({"action": "remove", "itemId": "wood"})

        assert calls == [{"item": wood}]
        assert "wood" not in item_store
        assert dispatcher.resolve_action("get_inventory") == "get-inventory"
        assert dispatcher.resolve_action("PLANT_SEED") is None
        assert dispatcher.resolve_action("plant") is None

    def test_default_table_layers_garden_over_base(self):
        table = build_action_table()

        assert {"plant", "harvest", "upgrade", "craft"} <= set(table.maps[0])
        assert "add" in table
        assert "add" not in table.maps[0]

    def test_transport_failure_does_not_escape(self, wood):
        transport = MagicMock()
        engine = InventoryEngine(InventoryConfig(auto_save=False), transport=transport)
        transport.send_notification.side_effect = RuntimeError("host gone")

        result = engine.handle_message({"action": "add", "item": wood})

        assert result.ok is True
        assert result.notification.task_name == "inventory_item_added_wood"


def test_capacity_scenario_through_engine(host_transport):
    engine = InventoryEngine(InventoryConfig(max_slots=1), storage=InMemoryStorage(), transport=host_transport)

    first = engine.handle_message({"action": "add", "item": {"id": "A", "name": "A", "type": "resource"}})
    second = engine.handle_message({"action": "add", "item": {"id": "B", "name": "B", "type": "resource"}})

    assert first.ok is True
    assert second.ok is False
    assert engine.store.ids() == ["A"]
