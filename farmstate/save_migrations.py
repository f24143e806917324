"""Save migration registry for the farm state persistence core.

Each step upgrades a payload from version ``n`` to ``n + 1`` and is safe to run
on data that already has the newer shape. Steps never raise: anything they do
not recognise is replaced with registry defaults so that scalar progress
survives even when a subsystem is damaged.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, Optional

from .coerce import as_dict, as_list, as_number, is_number
from .crafting import CraftingState, LeanCraftingProgress, UpgradeInstance
from .lean import (
    default_crafting_state,
    expand,
    expand_veggies,
    hydrate_crafting,
    merge_auto_canning_config,
    merge_auto_purchasers,
)
from .registry import (
    CANONICAL_UPGRADE_IDS,
    GAME_STATE_DEFAULTS,
    RECIPES_BY_ID,
    SCHEMA_VERSION,
    UPGRADES_BY_ID,
    VERSION_KEY,
    canning_quality_cost,
    canning_yield_cost,
    default_auto_canning_config,
    default_auto_purchasers,
)

Migration = Callable[[Dict], Dict]

_CRAFTING_COLLECTIONS = ("recipes", "upgrades", "activeProcesses", "unlockedRecipes")


def _migrate_v0_to_v1(payload: Dict) -> Dict:
    """Introduce the crafting subsystem, keeping any partial data for the merge."""
    canning = payload.get("canningState")
    if isinstance(canning, dict):
        canning = dict(canning)
        for key in _CRAFTING_COLLECTIONS:
            if not isinstance(canning.get(key), list):
                canning[key] = []
    else:
        canning = default_crafting_state(
            as_list(payload.get("veggies")), as_number(payload.get("experience"), 0)
        ).to_dict()

    upgraded = dict(payload)
    upgraded["canningState"] = canning
    upgraded[VERSION_KEY] = 1
    return upgraded


def _migrate_v1_to_v2(payload: Dict) -> Dict:
    """Backfill ``totalTime`` on in-flight processes saved before it existed.

    The original total is unrecoverable, so the recipe's base processing time
    is used; a process for an unknown recipe falls back to its remaining time.
    """
    canning = dict(as_dict(payload.get("canningState")))
    processes = []
    for process in as_list(canning.get("activeProcesses")):
        if isinstance(process, dict) and not is_number(process.get("totalTime")):
            process = dict(process)
            definition = RECIPES_BY_ID.get(process.get("recipeId"))
            if definition is not None:
                process["totalTime"] = definition.base_processing_time
            else:
                process["totalTime"] = as_number(process.get("remainingTime"), 0)
        processes.append(process)
    canning["activeProcesses"] = processes

    upgraded = dict(payload)
    upgraded["canningState"] = canning
    upgraded[VERSION_KEY] = 2
    return upgraded


def _migrate_v2_to_v3(payload: Dict) -> Dict:
    """Add automation: auto-purchasers, auto-crafting config, the canner upgrade."""
    upgraded = dict(payload)
    canning = dict(as_dict(payload.get("canningState")))

    if not isinstance(upgraded.get("canningAutoPurchasers"), list):
        upgraded["canningAutoPurchasers"] = default_auto_purchasers()
    if not isinstance(upgraded.get("autoCanningConfig"), dict):
        saved_config = canning.get("autoCanning")
        if isinstance(saved_config, dict):
            upgraded["autoCanningConfig"] = dict(saved_config)
        else:
            upgraded["autoCanningConfig"] = default_auto_canning_config()

    veggies = upgraded.get("veggies")
    if isinstance(veggies, list):
        upgraded["veggies"] = [_backfill_veggie_canning(index, veggie) for index, veggie in enumerate(veggies)]

    upgrades = [entry for entry in as_list(canning.get("upgrades")) if isinstance(entry, dict)]
    present = {entry.get("id") for entry in upgrades}
    for upgrade_id in CANONICAL_UPGRADE_IDS:
        if upgrade_id not in present:
            upgrades.append(_fresh_upgrade(upgrade_id).to_dict())
    canning["upgrades"] = upgrades

    upgraded["canningState"] = canning
    upgraded[VERSION_KEY] = 3
    return upgraded


MIGRATIONS: Dict[int, Migration] = {
    0: _migrate_v0_to_v1,
    1: _migrate_v1_to_v2,
    2: _migrate_v2_to_v3,
}


def _backfill_veggie_canning(index: int, veggie: Any) -> Any:
    if not isinstance(veggie, dict) or "name" not in veggie:
        return veggie
    veggie = dict(veggie)
    if veggie.get("canningYieldLevel") is None:
        veggie["canningYieldLevel"] = 0
    if veggie.get("canningYieldCost") is None:
        veggie["canningYieldCost"] = canning_yield_cost(index)
    if veggie.get("canningQualityLevel") is None:
        veggie["canningQualityLevel"] = 0
    if veggie.get("canningQualityCost") is None:
        veggie["canningQualityCost"] = canning_quality_cost(index)
    return veggie


def _fresh_upgrade(upgrade_id: str) -> UpgradeInstance:
    definition = UPGRADES_BY_ID.get(upgrade_id)
    if definition is None:
        return UpgradeInstance(id=upgrade_id)
    return UpgradeInstance.from_definition(definition, 0)


def ensure_canonical_upgrades(state: CraftingState) -> CraftingState:
    """Append any canonical upgrade missing from ``state`` at level 0."""
    for upgrade_id in CANONICAL_UPGRADE_IDS:
        if state.upgrade(upgrade_id) is None:
            state.upgrades.append(_fresh_upgrade(upgrade_id))
    return state


def _seed_from_lean_progress(payload: Dict) -> Dict:
    """Rebuild ``canningState`` from a lean ``canningProgress`` block when only that exists."""
    progress = payload.pop("canningProgress", None)
    if isinstance(payload.get("canningState"), dict) or not isinstance(progress, dict):
        return payload
    veggies = expand_veggies(payload.get("veggies"))
    experience = as_number(payload.get("experience"), 0)
    payload["canningState"] = expand(LeanCraftingProgress.from_dict(progress), veggies, experience).to_dict()
    return payload


def read_version(payload: Dict) -> int:
    version = payload.get(VERSION_KEY)
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        return 0
    return version


def _normalize_current(payload: Dict) -> Dict:
    """Bring a current-shape payload fully in line with the registry."""
    for key, default in GAME_STATE_DEFAULTS.items():
        if payload.get(key) is None:
            payload[key] = default

    veggies = expand_veggies(payload.get("veggies"))
    experience = as_number(payload.get("experience"), 0)
    crafting = ensure_canonical_upgrades(hydrate_crafting(payload.get("canningState"), veggies, experience))

    payload["veggies"] = veggies
    payload["canningState"] = crafting.to_dict()
    payload["canningAutoPurchasers"] = merge_auto_purchasers(payload.get("canningAutoPurchasers"))
    payload["autoCanningConfig"] = merge_auto_canning_config(payload.get("autoCanningConfig"))
    return payload


def migrate_save_payload(payload: Any, target_version: int = SCHEMA_VERSION) -> Optional[Dict]:
    """Upgrade a decoded save of any vintage to the current schema.

    Returns ``None`` only when ``payload`` is not an object at all. The input is
    never mutated.
    """
    if not isinstance(payload, dict):
        return None

    current = _seed_from_lean_progress(copy.deepcopy(payload))
    version = read_version(current)
    while version < target_version:
        migrator = MIGRATIONS.get(version)
        if migrator is None:
            break
        current = migrator(current)
        version = read_version(current) or version + 1

    current = _normalize_current(current)
    current[VERSION_KEY] = target_version
    return current


def migrate_game_state(raw: Any) -> Optional[Dict]:
    return migrate_save_payload(raw, SCHEMA_VERSION)
