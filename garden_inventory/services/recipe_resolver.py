"""
Recipe/Craft Resolver.

Multi-item transactions (craft, tool upgrade, harvest, planting) run against the
Item Store with validate-before-mutate discipline: every requirement is checked
before the first unit is consumed, and the mutation pass itself runs inside a
store transaction so a failure never leaves the store half-consumed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ..exceptions import (
    CapacityExceededError,
    ErrorContext,
    InsufficientMaterialError,
    InvalidArgumentError,
    InvalidItemError,
    InvalidSeedError,
    InvalidToolError,
)
from ..logging.enhanced_logging_config import get_logger
from ..models.item import ItemRecord, ItemType, Recipe, RecipeMaterial
from .item_store import AddResult, ItemStore, require_positive_quantity

logger = get_logger(__name__)

UPGRADE_EFFICIENCY_FACTOR = 1.2


@dataclass(frozen=True)
class CraftResult:
    crafted: ItemRecord
    quantity: int
    created: bool


@dataclass(frozen=True)
class PlantingResult:
    """Growth metadata of a planted seed; growth itself is simulated by the host."""

    seed_id: str
    plot_id: str | None
    plant_type: Any
    growth_time: Any


class RecipeResolver:
    """Applies consume-and-produce transactions atomically against an ItemStore."""

    def __init__(self, store: ItemStore):
        self.store = store

    def craft(self, recipe: Recipe | Mapping[str, Any], quantity: int = 1) -> CraftResult:
        """
        Consume a recipe's materials ``quantity`` times and add the result.

        Raises:
            InvalidArgumentError: If quantity is not a positive integer.
            InsufficientMaterialError: Naming the first material that is short.
            InvalidItemError: If the result template is not a valid item.
            CapacityExceededError: If the result needs a slot and none will be free.
        """
        quantity = require_positive_quantity(quantity)
        recipe = self._coerce_recipe(recipe)
        required = self._check_materials(recipe.materials, multiplier=quantity)
        result_id = self._check_result_fits(recipe.result, required)

        with self.store.transaction():
            self._consume(required)
            added: AddResult = self.store.add(recipe.result, quantity)

        logger.info("Crafted item", result_id=result_id, quantity=quantity, materials=sorted(required))
        return CraftResult(crafted=added.record, quantity=quantity, created=added.created)

    def upgrade_tool(self, tool_id: str, materials: Sequence[RecipeMaterial | Mapping[str, Any]]) -> ItemRecord:
        """
        Consume upgrade materials, then raise the tool's level and efficiency.

        Raises:
            InvalidToolError: If the target is absent or is not a tool, or its level or
                efficiency is not a number.
            InvalidArgumentError: If the tool is listed among its own materials.
            InsufficientMaterialError: Naming the first material that is short.
        """
        tool = self.store.get(tool_id)
        if tool is None or tool.type is not ItemType.TOOL:
            raise InvalidToolError("Invalid tool", context=ErrorContext(item_id=tool_id), tool_id=tool_id)

        parsed = [self._coerce_material(material) for material in materials]
        if any(material.id == tool_id for material in parsed):
            raise InvalidArgumentError(
                f"Tool {tool_id} cannot be consumed by its own upgrade", argument="upgradeMaterials", value=tool_id
            )
        level_before = _tool_stat(tool, "level")
        efficiency_before = _tool_stat(tool, "efficiency")
        required = self._check_materials(parsed, multiplier=1)

        level = level_before + 1
        efficiency = efficiency_before * UPGRADE_EFFICIENCY_FACTOR

        with self.store.transaction():
            self._consume(required)
            upgraded = self.store.update(tool_id, {"level": level, "efficiency": efficiency})

        logger.info("Upgraded tool", tool_id=tool_id, level=level, efficiency=efficiency)
        return upgraded

    def harvest(self, produce_item: Mapping[str, Any], produce_quantity: int = 1) -> AddResult:
        """Add harvested produce; fails only as ``ItemStore.add`` does."""
        return self.store.add(produce_item, produce_quantity)

    def plant_seed(self, seed_id: str, plot_id: str | None = None) -> PlantingResult:
        """
        Consume one seed and return its growth metadata unchanged.

        Raises:
            InvalidSeedError: If the target is absent or is not a seed.
        """
        seed = self.store.get(seed_id)
        if seed is None or seed.type is not ItemType.SEED:
            raise InvalidSeedError("Invalid seed", context=ErrorContext(item_id=seed_id), seed_id=seed_id)

        self.store.use(seed_id, 1)
        logger.info("Planted seed", seed_id=seed_id, plot_id=plot_id)
        return PlantingResult(
            seed_id=seed_id,
            plot_id=plot_id,
            plant_type=seed.extra_field("plantType"),
            growth_time=seed.extra_field("growthTime"),
        )

    def _check_materials(self, materials: Sequence[RecipeMaterial], multiplier: int) -> dict[str, int]:
        """
        Verify every material is held in sufficient quantity.

        Duplicate entries for the same id are summed so the check matches what
        the consumption pass will take.

        Returns:
            Mapping of material id to total units required.
        """
        required: dict[str, int] = {}
        labels: dict[str, str] = {}
        for material in materials:
            required[material.id] = required.get(material.id, 0) + material.quantity * multiplier
            labels.setdefault(material.id, material.label)

        for material_id, needed in required.items():
            held = self.store.get(material_id)
            available = held.quantity if held is not None else 0
            if available < needed:
                raise InsufficientMaterialError(
                    f"Insufficient {labels[material_id]}",
                    context=ErrorContext(item_id=material_id),
                    material_id=material_id,
                    required=needed,
                    available=available,
                )
        return required

    def _check_result_fits(self, result: Mapping[str, Any], required: Mapping[str, int]) -> str:
        """Validate the result template and make sure it will have a slot once materials are consumed."""
        try:
            template = ItemRecord.model_validate({**result, "quantity": 1})
        except ValidationError as exc:
            raise InvalidItemError(
                f"Invalid recipe result: {exc.errors()[0]['msg']}", field="result"
            ) from exc

        freed = 0
        for material_id, needed in required.items():
            held = self.store.get(material_id)
            if held is not None and held.quantity <= needed:
                freed += 1

        result_survives = template.id in self.store and required.get(template.id, 0) < self._held(template.id)
        if not result_survives and self.store.size - freed >= self.store.max_slots:
            raise CapacityExceededError(
                f"Inventory cannot exceed {self.store.max_slots} slots; unable to add '{template.name}'.",
                context=ErrorContext(item_id=template.id),
                max_slots=self.store.max_slots,
            )
        return template.id

    def _held(self, item_id: str) -> int:
        record = self.store.get(item_id)
        return record.quantity if record is not None else 0

    def _consume(self, required: Mapping[str, int]) -> None:
        for material_id, needed in required.items():
            self.store.remove(material_id, needed)

    @staticmethod
    def _coerce_recipe(recipe: Recipe | Mapping[str, Any]) -> Recipe:
        if isinstance(recipe, Recipe):
            return recipe
        try:
            return Recipe.model_validate(dict(recipe))
        except ValidationError as exc:
            raise InvalidArgumentError(f"Invalid recipe: {exc.errors()[0]['msg']}", argument="recipe") from exc

    @staticmethod
    def _coerce_material(material: RecipeMaterial | Mapping[str, Any]) -> RecipeMaterial:
        if isinstance(material, RecipeMaterial):
            return material
        try:
            return RecipeMaterial.model_validate(dict(material))
        except ValidationError as exc:
            raise InvalidArgumentError(
                f"Invalid material: {exc.errors()[0]['msg']}", argument="upgradeMaterials"
            ) from exc


def _tool_stat(tool: ItemRecord, name: str) -> int | float:
    """A tool's ``level`` or ``efficiency``, 1 when unset or zero."""
    value = tool.extra_field(name)
    if value is None:
        return 1
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidToolError(
            f"Tool {tool.id} has a non-numeric {name}: {value!r}",
            context=ErrorContext(item_id=tool.id),
            tool_id=tool.id,
        )
    return value or 1
