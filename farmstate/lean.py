"""Lean save encoding: compact progress deltas and their expansion.

The lean form stores only what the player changed (levels, counts, unlocked
ids, in-flight jobs, per-veggie progress). Everything static is rebuilt from
the registry on expansion, so content added in later releases shows up in
old saves at its default, and content that was removed is dropped.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Sequence

from .coerce import Number, as_bool, as_dict, as_list, as_number
from .crafting import (
    AutoCanningConfig,
    CraftingState,
    LeanCraftingProgress,
    RecipeInstance,
    UpgradeInstance,
    recipe_unlocked,
)
from .registry import (
    AUTO_PURCHASERS,
    CAPACITY_UPGRADE_ID,
    RECIPES,
    RECIPES_BY_ID,
    SCHEMA_VERSION,
    UPGRADES,
    VERSION_KEY,
    VEGGIE_NAMES,
    initial_veggies,
    veggie_template,
)

LEAN_VEGGIE_FIELDS = (
    "growth",
    "stash",
    "unlocked",
    "experience",
    "fertilizerLevel",
    "harvesterOwned",
    "harvesterTimer",
    "harvesterSpeedLevel",
    "betterSeedsLevel",
    "additionalPlotLevel",
    "canningYieldLevel",
    "canningQualityLevel",
    "sellEnabled",
    # Level-driven prices and rates.
    "growthRate",
    "salePrice",
    "fertilizerCost",
    "harvesterCost",
    "harvesterSpeedCost",
    "betterSeedsCost",
    "additionalPlotCost",
    "canningYieldCost",
    "canningQualityCost",
)

# Keys of the root record that the codecs rebuild rather than copy.
_REBUILT_KEYS = {
    "veggies",
    "canningState",
    "canningProgress",
    "canningAutoPurchasers",
    "autoCanningConfig",
    VERSION_KEY,
    "exportTimestamp",
    "gameVersion",
}


# ---------- Crafting progress ----------
def compact(state: CraftingState) -> LeanCraftingProgress:
    return LeanCraftingProgress(
        upgrade_levels={upgrade.id: upgrade.level for upgrade in state.upgrades},
        unlocked_recipes=list(state.unlocked_recipes),
        recipe_completions={
            recipe.id: recipe.times_completed for recipe in state.recipes if recipe.times_completed > 0
        },
        active_processes=[process.copy() for process in state.active_processes],
        total_items_canned=state.total_items_canned,
        canning_experience=state.canning_experience,
        max_simultaneous_processes=state.max_simultaneous_processes,
        auto_canning=state.auto_canning.copy(),
    )


def expand(
    progress: LeanCraftingProgress,
    veggies: Sequence[Any] = (),
    overall_experience: Number = 0,
) -> CraftingState:
    """Rebuild the full crafting state from registry definitions plus saved deltas."""
    names = veggie_names(veggies)
    upgrades = [
        UpgradeInstance.from_definition(definition, progress.upgrade_levels.get(definition.id, 0))
        for definition in UPGRADES
    ]
    unlocked_ids = [recipe_id for recipe_id in progress.unlocked_recipes if recipe_id in RECIPES_BY_ID]

    recipes: List[RecipeInstance] = []
    for index, definition in enumerate(RECIPES):
        recipe = RecipeInstance.from_definition(definition, names)
        recipe.times_completed = progress.recipe_completions.get(definition.id, 0)
        recipe.unlocked = definition.id in unlocked_ids or recipe_unlocked(
            index,
            definition.experience_required,
            overall_experience,
            progress.canning_experience,
        )
        recipes.append(recipe)

    processes = [
        process.copy() for process in progress.active_processes if process.recipe_id in RECIPES_BY_ID
    ]
    state = CraftingState(
        recipes=recipes,
        unlocked_recipes=unlocked_ids,
        active_processes=processes,
        upgrades=upgrades,
        total_items_canned=progress.total_items_canned,
        canning_experience=progress.canning_experience,
        auto_canning=progress.auto_canning.copy(),
    )
    state.max_simultaneous_processes = process_capacity(state)
    return state


def process_capacity(state: CraftingState) -> int:
    capacity_upgrade = state.upgrade(CAPACITY_UPGRADE_ID)
    bonus = int(capacity_upgrade.effect) if capacity_upgrade is not None else 0
    return 1 + bonus


def default_progress() -> LeanCraftingProgress:
    return LeanCraftingProgress(
        upgrade_levels={definition.id: 0 for definition in UPGRADES},
        auto_canning=AutoCanningConfig(),
    )


def default_crafting_state(veggies: Sequence[Any] = (), overall_experience: Number = 0) -> CraftingState:
    return expand(default_progress(), veggies, overall_experience)


def hydrate_crafting(data: Any, veggies: Sequence[Any] = (), overall_experience: Number = 0) -> CraftingState:
    """Merge a verbose (possibly stale) crafting dict onto the current registry by id."""
    return expand(compact(CraftingState.from_dict(data)), veggies, overall_experience)


# ---------- Veggies ----------
def veggie_kind(record: Any) -> str:
    """Classify a veggie record as ``"full"``, ``"lean"`` or ``"unknown"``."""
    if not isinstance(record, dict):
        return "unknown"
    if isinstance(record.get("name"), str):
        return "full"
    if isinstance(record.get("id"), str):
        return "lean"
    return "unknown"


def is_lean_veggie(record: Any) -> bool:
    return veggie_kind(record) == "lean"


def veggie_names(veggies: Sequence[Any]) -> List[Optional[str]]:
    names: List[Optional[str]] = []
    for record in veggies or ():
        kind = veggie_kind(record)
        if kind == "full":
            names.append(record["name"])
        elif kind == "lean":
            names.append(record["id"])
        else:
            names.append(None)
    return names


def compact_veggie(record: Dict[str, Any]) -> Dict[str, Any]:
    if is_lean_veggie(record):
        return copy.deepcopy(record)
    lean: Dict[str, Any] = {"id": record.get("name")}
    for key in LEAN_VEGGIE_FIELDS:
        if key in record:
            lean[key] = copy.deepcopy(record[key])
    lean["autoPurchasers"] = [
        {"owned": as_bool(entry.get("owned")), "active": as_bool(entry.get("active"))}
        for entry in as_list(record.get("autoPurchasers"))
        if isinstance(entry, dict)
    ]
    return lean


def expand_veggie(lean: Dict[str, Any], template: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay lean progress on a full template record."""
    full = copy.deepcopy(template)
    for key in LEAN_VEGGIE_FIELDS:
        if lean.get(key) is not None:
            full[key] = copy.deepcopy(lean[key])
    saved = as_list(lean.get("autoPurchasers"))
    merged = []
    for index, entry in enumerate(as_list(full.get("autoPurchasers"))):
        entry = dict(entry)
        if index < len(saved) and isinstance(saved[index], dict):
            entry["owned"] = as_bool(saved[index].get("owned"), entry.get("owned", False))
            entry["active"] = as_bool(saved[index].get("active"), entry.get("active", False))
        merged.append(entry)
    full["autoPurchasers"] = merged
    return full


def compact_veggies(veggies: Any) -> List[Dict[str, Any]]:
    return [compact_veggie(record) for record in as_list(veggies) if veggie_kind(record) != "unknown"]


def expand_veggies(veggies: Any) -> List[Dict[str, Any]]:
    """Return full veggie records, reconstructing lean ones and appending new veggies."""
    if not isinstance(veggies, list):
        return initial_veggies()
    expanded: List[Dict[str, Any]] = []
    seen = set()
    for record in veggies:
        kind = veggie_kind(record)
        if kind == "lean":
            template = veggie_template(record["id"])
            if template is None:
                continue
            full = expand_veggie(record, template)
        elif kind == "full":
            template = veggie_template(record["name"])
            full = copy.deepcopy(record)
            if template is not None:
                for key, value in template.items():
                    if full.get(key) is None:
                        full[key] = value
        else:
            continue
        if full["name"] in seen:
            continue
        seen.add(full["name"])
        expanded.append(full)
    for name in VEGGIE_NAMES:
        if name not in seen:
            expanded.append(veggie_template(name))
    return expanded


# ---------- Auto purchasers ----------
def merge_auto_purchasers(saved: Any) -> List[Dict[str, Any]]:
    """Overlay saved ownership/timer state on the registry auto-purchasers by id."""
    by_id = {
        entry["id"]: entry
        for entry in as_list(saved)
        if isinstance(entry, dict) and isinstance(entry.get("id"), str)
    }
    merged = []
    for definition in AUTO_PURCHASERS:
        entry = definition.to_dict()
        previous = by_id.get(definition.id)
        if previous is not None:
            entry["owned"] = as_bool(previous.get("owned"), False)
            entry["active"] = as_bool(previous.get("active"), False)
            entry["timer"] = as_number(previous.get("timer"), 0, minimum=0)
        merged.append(entry)
    return merged


def compact_auto_purchasers(purchasers: Any) -> List[Dict[str, Any]]:
    return [
        {
            "id": entry["id"],
            "owned": as_bool(entry.get("owned")),
            "active": as_bool(entry.get("active")),
            "timer": as_number(entry.get("timer"), 0, minimum=0),
        }
        for entry in merge_auto_purchasers(purchasers)
    ]


def merge_auto_canning_config(saved: Any) -> Dict[str, Any]:
    return AutoCanningConfig.from_dict(saved).to_dict()


# ---------- Root record ----------
def compact_game_state(state: Dict[str, Any]) -> Dict[str, Any]:
    """Project a hydrated game state onto the lean persisted record."""
    record = {key: copy.deepcopy(value) for key, value in state.items() if key not in _REBUILT_KEYS}
    record["veggies"] = compact_veggies(state.get("veggies"))
    record["canningProgress"] = compact(CraftingState.from_dict(state.get("canningState"))).to_dict()
    record["canningAutoPurchasers"] = compact_auto_purchasers(state.get("canningAutoPurchasers"))
    record["autoCanningConfig"] = merge_auto_canning_config(state.get("autoCanningConfig"))
    return record


def expand_game_state(record: Dict[str, Any]) -> Dict[str, Any]:
    """Rebuild a current-version game state from a lean record."""
    state = {key: copy.deepcopy(value) for key, value in record.items() if key not in _REBUILT_KEYS}
    veggies = expand_veggies(record.get("veggies"))
    progress = LeanCraftingProgress.from_dict(record.get("canningProgress"))
    experience = as_number(record.get("experience"), 0)
    state["veggies"] = veggies
    state["canningState"] = expand(progress, veggies, experience).to_dict()
    state["canningAutoPurchasers"] = merge_auto_purchasers(record.get("canningAutoPurchasers"))
    state["autoCanningConfig"] = merge_auto_canning_config(as_dict(record.get("autoCanningConfig")))
    state[VERSION_KEY] = SCHEMA_VERSION
    return state
