"""Crafting (canning) subsystem entities, formulas and persisted shapes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .coerce import Number, as_bool, as_dict, as_id_list, as_int, as_list, as_number, as_str
from .registry import DEFAULT_AUTO_CANNING_CONFIG, RecipeDefinition, UpgradeDefinition

SPEED_STEP = 0.05
SPEED_FLOOR = 0.1
EFFICIENCY_STEP = 0.10
QUALITY_STEP = 5


def upgrade_cost(base_cost: Number, scaling: float, level: int) -> int:
    return math.ceil(base_cost * scaling**level)


def upgrade_effect(upgrade_type: str, level: int) -> Number:
    if upgrade_type == "speed":
        return max(SPEED_FLOOR, 1 - level * SPEED_STEP)
    if upgrade_type == "efficiency":
        return 1 + level * EFFICIENCY_STEP
    if upgrade_type == "quality":
        return level * QUALITY_STEP
    if upgrade_type == "automation":
        return level
    return 0


def recipe_unlocked(
    index: int, experience_required: Number, overall_experience: Number, crafting_experience: Number
) -> bool:
    """Apply the unlock rule for the recipe at ``index`` in the registry.

    The first recipe is gated by the player's overall experience so crafting can
    be discovered before any crafting experience exists; every later recipe is
    gated by crafting experience.
    """
    if index == 0:
        return overall_experience >= experience_required
    return crafting_experience >= experience_required


@dataclass
class Ingredient:
    veggie_name: str
    quantity: int
    veggie_index: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "veggieIndex": self.veggie_index,
            "veggieName": self.veggie_name,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Ingredient"]:
        if not isinstance(data, dict) or not isinstance(data.get("veggieName"), str):
            return None
        return cls(
            veggie_name=data["veggieName"],
            quantity=as_int(data.get("quantity"), 1, minimum=0),
            veggie_index=as_int(data.get("veggieIndex"), -1),
        )


@dataclass
class RecipeInstance:
    id: str
    name: str = ""
    description: str = ""
    ingredients: List[Ingredient] = field(default_factory=list)
    processing_time: int = 0
    base_processing_time: int = 0
    sale_price: Number = 0
    base_sale_price: Number = 0
    experience_required: Number = 0
    category: str = "simple"
    unlocked: bool = False
    times_completed: int = 0

    @classmethod
    def from_definition(cls, definition: RecipeDefinition, veggie_names: Sequence[Optional[str]] = ()) -> "RecipeInstance":
        names = list(veggie_names)
        ingredients = [
            Ingredient(
                veggie_name=name,
                quantity=quantity,
                veggie_index=names.index(name) if name in names else -1,
            )
            for name, quantity in definition.ingredients
        ]
        return cls(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            ingredients=ingredients,
            processing_time=definition.base_processing_time,
            base_processing_time=definition.base_processing_time,
            sale_price=definition.base_sale_price,
            base_sale_price=definition.base_sale_price,
            experience_required=definition.experience_required,
            category=definition.category,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "ingredients": [ingredient.to_dict() for ingredient in self.ingredients],
            "processingTime": self.processing_time,
            "baseProcessingTime": self.base_processing_time,
            "salePrice": self.sale_price,
            "baseSalePrice": self.base_sale_price,
            "experienceRequired": self.experience_required,
            "category": self.category,
            "unlocked": self.unlocked,
            "timesCompleted": self.times_completed,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["RecipeInstance"]:
        if not isinstance(data, dict) or not isinstance(data.get("id"), str):
            return None
        ingredients = [Ingredient.from_dict(entry) for entry in as_list(data.get("ingredients"))]
        base_time = as_int(data.get("baseProcessingTime"), 0, minimum=0)
        base_price = as_number(data.get("baseSalePrice"), 0, minimum=0)
        return cls(
            id=data["id"],
            name=as_str(data.get("name")),
            description=as_str(data.get("description")),
            ingredients=[ingredient for ingredient in ingredients if ingredient is not None],
            processing_time=as_int(data.get("processingTime"), base_time, minimum=0),
            base_processing_time=base_time,
            sale_price=as_number(data.get("salePrice"), base_price, minimum=0),
            base_sale_price=base_price,
            experience_required=as_number(data.get("experienceRequired"), 0, minimum=0),
            category=as_str(data.get("category"), "simple"),
            unlocked=as_bool(data.get("unlocked"), False),
            times_completed=as_int(data.get("timesCompleted"), 0, minimum=0),
        )


@dataclass
class UpgradeInstance:
    id: str
    name: str = ""
    description: str = ""
    type: str = ""
    level: int = 0
    cost: int = 0
    base_cost: Number = 0
    cost_scaling: float = 1.5
    currency: str = "money"
    effect: Number = 0
    max_level: Optional[int] = None
    unlocked: bool = True

    @classmethod
    def from_definition(cls, definition: UpgradeDefinition, level: int = 0) -> "UpgradeInstance":
        level = max(int(level), 0)
        if definition.max_level is not None:
            level = min(level, definition.max_level)
        return cls(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            type=definition.type,
            level=level,
            cost=upgrade_cost(definition.base_cost, definition.cost_scaling, level),
            base_cost=definition.base_cost,
            cost_scaling=definition.cost_scaling,
            currency=definition.currency,
            effect=upgrade_effect(definition.type, level),
            max_level=definition.max_level,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "level": self.level,
            "cost": self.cost,
            "baseCost": self.base_cost,
            "upgradeCostScaling": self.cost_scaling,
            "costCurrency": self.currency,
            "effect": self.effect,
            "unlocked": self.unlocked,
        }
        if self.max_level is not None:
            data["maxLevel"] = self.max_level
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional["UpgradeInstance"]:
        # Stored cost/effect are kept only for inspection; hydration recomputes them.
        if not isinstance(data, dict) or not isinstance(data.get("id"), str):
            return None
        max_level = data.get("maxLevel")
        return cls(
            id=data["id"],
            name=as_str(data.get("name")),
            description=as_str(data.get("description")),
            type=as_str(data.get("type")),
            level=as_int(data.get("level"), 0, minimum=0),
            cost=as_int(data.get("cost"), 0, minimum=0),
            base_cost=as_number(data.get("baseCost"), 0, minimum=0),
            cost_scaling=float(as_number(data.get("upgradeCostScaling"), 1.5)),
            currency=as_str(data.get("costCurrency"), "money"),
            effect=as_number(data.get("effect"), 0),
            max_level=as_int(max_level, 0, minimum=0) if max_level is not None else None,
            unlocked=as_bool(data.get("unlocked"), True),
        )


@dataclass
class ProcessInstance:
    """An in-flight crafting job. ``completed`` is derived from ``remaining_time``."""

    recipe_id: str
    remaining_time: int
    total_time: int
    start_time: Number = 0
    automated: bool = False

    @property
    def completed(self) -> bool:
        return self.remaining_time <= 0

    def advance(self, seconds: int) -> bool:
        """Count down by ``seconds``; return True when this call finished the job."""
        if self.completed:
            return False
        self.remaining_time = max(self.remaining_time - max(int(seconds), 0), 0)
        return self.completed

    def to_lean_dict(self) -> Dict[str, Any]:
        return {
            "recipeId": self.recipe_id,
            "startTime": self.start_time,
            "remainingTime": self.remaining_time,
            "totalTime": self.total_time,
            "automated": self.automated,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_lean_dict()
        data["completed"] = self.completed
        return data

    def copy(self) -> "ProcessInstance":
        return ProcessInstance(
            recipe_id=self.recipe_id,
            remaining_time=self.remaining_time,
            total_time=self.total_time,
            start_time=self.start_time,
            automated=self.automated,
        )

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ProcessInstance"]:
        if not isinstance(data, dict) or not isinstance(data.get("recipeId"), str):
            return None
        remaining = as_int(data.get("remainingTime"), 0, minimum=0)
        total = as_int(data.get("totalTime"), 0)
        if total <= 0:
            total = max(remaining, 1)
        return cls(
            recipe_id=data["recipeId"],
            remaining_time=remaining,
            total_time=total,
            start_time=as_number(data.get("startTime"), 0),
            automated=as_bool(data.get("automated"), False),
        )


@dataclass
class AutoCanningConfig:
    enabled: bool = False
    selected_recipes: List[str] = field(default_factory=list)
    priority_order: List[str] = field(default_factory=list)
    only_use_excess: bool = True
    excess_threshold: int = 10
    pause_when_full: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "selectedRecipes": list(self.selected_recipes),
            "priorityOrder": list(self.priority_order),
            "onlyUseExcess": self.only_use_excess,
            "excessThreshold": self.excess_threshold,
            "pauseWhenFull": self.pause_when_full,
        }

    def copy(self) -> "AutoCanningConfig":
        return AutoCanningConfig.from_dict(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "AutoCanningConfig":
        """Shallow-merge saved values over the defaults; unknown keys are ignored."""
        merged = dict(DEFAULT_AUTO_CANNING_CONFIG)
        merged.update(as_dict(data))
        defaults = DEFAULT_AUTO_CANNING_CONFIG
        return cls(
            enabled=as_bool(merged.get("enabled"), defaults["enabled"]),
            selected_recipes=as_id_list(merged.get("selectedRecipes")),
            priority_order=as_id_list(merged.get("priorityOrder")),
            only_use_excess=as_bool(merged.get("onlyUseExcess"), defaults["onlyUseExcess"]),
            excess_threshold=as_int(merged.get("excessThreshold"), defaults["excessThreshold"], minimum=0),
            pause_when_full=as_bool(merged.get("pauseWhenFull"), defaults["pauseWhenFull"]),
        )


@dataclass
class CraftingState:
    recipes: List[RecipeInstance] = field(default_factory=list)
    unlocked_recipes: List[str] = field(default_factory=list)
    active_processes: List[ProcessInstance] = field(default_factory=list)
    upgrades: List[UpgradeInstance] = field(default_factory=list)
    total_items_canned: int = 0
    canning_experience: Number = 0
    max_simultaneous_processes: int = 1
    auto_canning: AutoCanningConfig = field(default_factory=AutoCanningConfig)

    def recipe(self, recipe_id: str) -> Optional[RecipeInstance]:
        for recipe in self.recipes:
            if recipe.id == recipe_id:
                return recipe
        return None

    def upgrade(self, upgrade_id: str) -> Optional[UpgradeInstance]:
        for upgrade in self.upgrades:
            if upgrade.id == upgrade_id:
                return upgrade
        return None

    def advance(self, seconds: int) -> List[ProcessInstance]:
        """Advance every active process; return the ones finished by this call."""
        return [process for process in self.active_processes if process.advance(seconds)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipes": [recipe.to_dict() for recipe in self.recipes],
            "unlockedRecipes": list(self.unlocked_recipes),
            "activeProcesses": [process.to_dict() for process in self.active_processes],
            "maxSimultaneousProcesses": self.max_simultaneous_processes,
            "upgrades": [upgrade.to_dict() for upgrade in self.upgrades],
            "totalItemsCanned": self.total_items_canned,
            "canningExperience": self.canning_experience,
            "autoCanning": self.auto_canning.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CraftingState":
        data = as_dict(data)
        recipes = [RecipeInstance.from_dict(entry) for entry in as_list(data.get("recipes"))]
        upgrades = [UpgradeInstance.from_dict(entry) for entry in as_list(data.get("upgrades"))]
        processes = [ProcessInstance.from_dict(entry) for entry in as_list(data.get("activeProcesses"))]
        return cls(
            recipes=[recipe for recipe in recipes if recipe is not None],
            unlocked_recipes=as_id_list(data.get("unlockedRecipes")),
            active_processes=[process for process in processes if process is not None],
            upgrades=[upgrade for upgrade in upgrades if upgrade is not None],
            total_items_canned=as_int(data.get("totalItemsCanned"), 0, minimum=0),
            canning_experience=as_number(data.get("canningExperience"), 0, minimum=0),
            max_simultaneous_processes=as_int(data.get("maxSimultaneousProcesses"), 1, minimum=1),
            auto_canning=AutoCanningConfig.from_dict(data.get("autoCanning")),
        )


@dataclass
class LeanCraftingProgress:
    """Compact persisted projection of :class:`CraftingState`."""

    upgrade_levels: Dict[str, int] = field(default_factory=dict)
    unlocked_recipes: List[str] = field(default_factory=list)
    recipe_completions: Dict[str, int] = field(default_factory=dict)
    active_processes: List[ProcessInstance] = field(default_factory=list)
    total_items_canned: int = 0
    canning_experience: Number = 0
    max_simultaneous_processes: int = 1
    auto_canning: AutoCanningConfig = field(default_factory=AutoCanningConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upgradeProgress": dict(self.upgrade_levels),
            "unlockedRecipes": list(self.unlocked_recipes),
            "recipeCompletions": dict(self.recipe_completions),
            "activeProcesses": [process.to_lean_dict() for process in self.active_processes],
            "totalItemsCanned": self.total_items_canned,
            "canningExperience": self.canning_experience,
            "maxSimultaneousProcesses": self.max_simultaneous_processes,
            "autoCanning": self.auto_canning.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "LeanCraftingProgress":
        data = as_dict(data)
        levels = {
            key: as_int(value, 0, minimum=0)
            for key, value in as_dict(data.get("upgradeProgress")).items()
            if isinstance(key, str)
        }
        completions = {
            key: as_int(value, 0, minimum=0)
            for key, value in as_dict(data.get("recipeCompletions")).items()
            if isinstance(key, str)
        }
        processes = [ProcessInstance.from_dict(entry) for entry in as_list(data.get("activeProcesses"))]
        return cls(
            upgrade_levels=levels,
            unlocked_recipes=as_id_list(data.get("unlockedRecipes")),
            recipe_completions={key: count for key, count in completions.items() if count > 0},
            active_processes=[process for process in processes if process is not None],
            total_items_canned=as_int(data.get("totalItemsCanned"), 0, minimum=0),
            canning_experience=as_number(data.get("canningExperience"), 0, minimum=0),
            max_simultaneous_processes=as_int(data.get("maxSimultaneousProcesses"), 1, minimum=1),
            auto_canning=AutoCanningConfig.from_dict(data.get("autoCanning")),
        )
