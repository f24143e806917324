"""Canonical definitions of crafting, auto-purchaser and veggie content."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Bump when a save-migration step is added to save_migrations.MIGRATIONS.
SCHEMA_VERSION = 3
VERSION_KEY = "canningVersion"

UPGRADE_COST_SCALING = 1.5

CANONICAL_UPGRADE_IDS: Tuple[str, ...] = (
    "canning_speed",
    "canning_efficiency",
    "preservation_mastery",
    "simultaneous_processing",
    "canner",
)
CAPACITY_UPGRADE_ID = "simultaneous_processing"


@dataclass(frozen=True)
class UpgradeDefinition:
    id: str
    name: str
    description: str
    type: str
    base_cost: int
    currency: str
    cost_scaling: float = UPGRADE_COST_SCALING
    max_level: Optional[int] = None


@dataclass(frozen=True)
class RecipeDefinition:
    id: str
    name: str
    description: str
    ingredients: Tuple[Tuple[str, int], ...]
    base_processing_time: int
    base_sale_price: int
    experience_required: int
    category: str


@dataclass(frozen=True)
class AutoPurchaserDefinition:
    id: str
    name: str
    upgrade_id: str
    cycle_days: int
    cost: int
    currency: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "upgradeId": self.upgrade_id,
            "cycleDays": self.cycle_days,
            "owned": False,
            "active": False,
            "cost": self.cost,
            "timer": 0,
            "costCurrency": self.currency,
        }


UPGRADES: Tuple[UpgradeDefinition, ...] = (
    UpgradeDefinition(
        "canning_speed",
        "Quick Hands",
        "Reduces canning time by 5% per level",
        "speed",
        100,
        "money",
    ),
    UpgradeDefinition(
        "canning_efficiency",
        "Family Recipe",
        "Increases canned product sale price by 10% per level",
        "efficiency",
        150,
        "knowledge",
    ),
    UpgradeDefinition(
        "preservation_mastery",
        "Heirloom Touch",
        "Chance to get bonus canned products",
        "quality",
        200,
        "knowledge",
    ),
    UpgradeDefinition(
        "simultaneous_processing",
        "Batch Canning",
        "Allows more canning processes to run at once",
        "automation",
        500,
        "money",
        max_level=14,
    ),
    UpgradeDefinition(
        "canner",
        "Canner",
        "Automatically starts canning processes every 10 seconds (gives reduced knowledge)",
        "automation",
        5000,
        "knowledge",
        max_level=1,
    ),
)

# Order matters: the first recipe is the bootstrap recipe gated by overall experience.
RECIPES: Tuple[RecipeDefinition, ...] = (
    RecipeDefinition(
        "canned_radish",
        "Canned Radish",
        "Simple preserved radish. A great way to get started with canning.",
        (("Radish", 3),),
        30,
        5,
        5000,
        "simple",
    ),
    RecipeDefinition(
        "canned_lettuce",
        "Canned Lettuce",
        "Preserved lettuce hearts in brine.",
        (("Lettuce", 3),),
        35,
        10,
        500,
        "simple",
    ),
    RecipeDefinition(
        "canned_green_beans",
        "Canned Green Beans",
        "Classic canned green beans, tender and flavorful.",
        (("Green Beans", 4),),
        40,
        20,
        1500,
        "simple",
    ),
    RecipeDefinition(
        "canned_zucchini",
        "Canned Zucchini",
        "Sliced zucchini preserved in natural juices.",
        (("Zucchini", 4),),
        45,
        27,
        3000,
        "simple",
    ),
    RecipeDefinition(
        "pickled_cucumbers",
        "Pickled Cucumbers",
        "Crispy cucumber pickles with herbs and spices.",
        (("Cucumbers", 5),),
        50,
        42,
        5000,
        "simple",
    ),
    RecipeDefinition(
        "garden_mix",
        "Garden Mix",
        "A colorful blend of radish, lettuce, and green beans.",
        (("Radish", 2), ("Lettuce", 2), ("Green Beans", 2)),
        60,
        25,
        8000,
        "complex",
    ),
    RecipeDefinition(
        "summer_medley",
        "Summer Medley",
        "A vibrant mix of summer vegetables.",
        (("Zucchini", 2), ("Cucumbers", 2), ("Green Beans", 3)),
        75,
        48,
        12000,
        "complex",
    ),
    RecipeDefinition(
        "italian_style",
        "Italian Style Vegetables",
        "Tomatoes, peppers, and herbs in rich sauce.",
        (("Tomatoes", 4), ("Peppers", 2), ("Zucchini", 1)),
        90,
        65,
        18000,
        "complex",
    ),
    RecipeDefinition(
        "root_vegetable_mix",
        "Root Vegetable Mix",
        "Hearty combination of carrots, onions, and radish.",
        (("Carrots", 3), ("Onions", 2), ("Radish", 4)),
        85,
        72,
        25000,
        "complex",
    ),
    RecipeDefinition(
        "farmers_pride",
        "Farmer's Pride",
        "The ultimate vegetable medley featuring the best of the garden.",
        (("Tomatoes", 3), ("Peppers", 2), ("Carrots", 2), ("Broccoli", 2)),
        120,
        125,
        35000,
        "gourmet",
    ),
    RecipeDefinition(
        "harvest_festival",
        "Harvest Festival",
        "A celebration of the harvest with seven different vegetables.",
        (
            ("Radish", 1),
            ("Lettuce", 1),
            ("Green Beans", 2),
            ("Zucchini", 2),
            ("Cucumbers", 1),
            ("Tomatoes", 2),
            ("Peppers", 1),
        ),
        150,
        95,
        50000,
        "gourmet",
    ),
    RecipeDefinition(
        "master_chef_special",
        "Master Chef's Special",
        "The pinnacle of canning artistry using all ten vegetables.",
        (
            ("Radish", 2),
            ("Lettuce", 2),
            ("Green Beans", 2),
            ("Zucchini", 2),
            ("Cucumbers", 2),
            ("Tomatoes", 2),
            ("Peppers", 2),
            ("Carrots", 2),
            ("Broccoli", 2),
            ("Onions", 2),
        ),
        300,
        350,
        80000,
        "gourmet",
    ),
    RecipeDefinition(
        "salsa_verde",
        "Salsa Verde",
        "Spicy green salsa with peppers, tomatoes, and onions.",
        (("Peppers", 4), ("Tomatoes", 2), ("Onions", 1)),
        75,
        85,
        40000,
        "gourmet",
    ),
    RecipeDefinition(
        "rainbow_jar",
        "Rainbow Jar",
        "A beautiful display of colorful vegetables in perfect harmony.",
        (("Carrots", 3), ("Broccoli", 3), ("Peppers", 2)),
        100,
        110,
        60000,
        "gourmet",
    ),
)

AUTO_PURCHASERS: Tuple[AutoPurchaserDefinition, ...] = (
    AutoPurchaserDefinition("canning_engineer", "Canning Engineer", "canning_speed", 10, 2500, "money"),
    AutoPurchaserDefinition(
        "preservation_specialist", "Preservation Specialist", "canning_efficiency", 10, 3000, "knowledge"
    ),
    AutoPurchaserDefinition("quality_inspector", "Quality Inspector", "preservation_mastery", 12, 4000, "knowledge"),
    AutoPurchaserDefinition("factory_manager", "Factory Manager", "simultaneous_processing", 15, 7500, "money"),
)

DEFAULT_AUTO_CANNING_CONFIG: Mapping[str, Any] = {
    "enabled": False,
    "selectedRecipes": [],
    "priorityOrder": [],
    "onlyUseExcess": True,
    "excessThreshold": 10,
    "pauseWhenFull": True,
}

UPGRADES_BY_ID: Mapping[str, UpgradeDefinition] = {upgrade.id: upgrade for upgrade in UPGRADES}
RECIPES_BY_ID: Mapping[str, RecipeDefinition] = {recipe.id: recipe for recipe in RECIPES}
AUTO_PURCHASERS_BY_ID: Mapping[str, AutoPurchaserDefinition] = {ap.id: ap for ap in AUTO_PURCHASERS}

# name, growth rate, sale price, fertilizer max level
_VEGGIE_ROWS: Tuple[Tuple[str, float, int, int], ...] = (
    ("Radish", 2.5, 1, 97),
    ("Lettuce", 1.4286, 2, 99),
    ("Green Beans", 1.4286, 3, 98),
    ("Zucchini", 1.4286, 4, 98),
    ("Cucumbers", 1.25, 5, 99),
    ("Tomatoes", 1.0526, 6, 99),
    ("Peppers", 1.0, 7, 99),
    ("Carrots", 1.1111, 8, 99),
    ("Broccoli", 1.0, 9, 99),
    ("Onions", 0.7692, 10, 99),
)


def experience_to_unlock(index: int) -> int:
    if index == 0:
        return 0
    return int(50 * 1.9**index)


def canning_yield_cost(index: int) -> int:
    return math.ceil(200 * 1.5**index)


def canning_quality_cost(index: int) -> int:
    return math.ceil(150 * 1.5**index)


def _veggie_auto_purchasers(index: int) -> List[Dict[str, Any]]:
    scale = 2**index
    rows = (
        ("assistant", "Assistant", "fertilizer", "money", 7, 8),
        ("cultivator", "Cultivator", "betterSeeds", "money", 7, 10),
        ("surveyor", "Surveyor", "additionalPlot", "knowledge", 30, 30),
        ("mechanic", "Mechanic", "harvesterSpeed", "knowledge", 15, 38),
    )
    return [
        {
            "id": ap_id,
            "name": name,
            "purchaseType": purchase_type,
            "currencyType": currency,
            "cycleDays": cycle_days,
            "owned": False,
            "active": False,
            "cost": base_cost * scale,
            "timer": 0,
        }
        for ap_id, name, purchase_type, currency, cycle_days, base_cost in rows
    ]


def _veggie_template(index: int, name: str, growth_rate: float, sale_price: int, max_level: int) -> Dict[str, Any]:
    step = 10 * (index + 1)
    return {
        "name": name,
        "growth": 0,
        "growthRate": growth_rate,
        "stash": 0,
        "unlocked": index == 0,
        "experience": 0,
        "experienceToUnlock": experience_to_unlock(index),
        "fertilizerLevel": 0,
        "fertilizerCost": step,
        "fertilizerMaxLevel": max_level,
        "harvesterOwned": False,
        "harvesterCost": 15 * 2**index,
        "harvesterTimer": 0,
        "harvesterSpeedLevel": 0,
        "harvesterSpeedCost": 50 * 2**index,
        "salePrice": sale_price,
        "betterSeedsLevel": 0,
        "betterSeedsCost": step,
        "additionalPlotLevel": 0,
        "additionalPlotCost": 40 * (index + 1),
        "canningYieldLevel": 0,
        "canningYieldCost": canning_yield_cost(index),
        "canningQualityLevel": 0,
        "canningQualityCost": canning_quality_cost(index),
        "autoPurchasers": _veggie_auto_purchasers(index),
        "sellEnabled": True,
    }


_VEGGIE_TEMPLATES: Tuple[Dict[str, Any], ...] = tuple(
    _veggie_template(index, *row) for index, row in enumerate(_VEGGIE_ROWS)
)
VEGGIE_NAMES: Tuple[str, ...] = tuple(row[0] for row in _VEGGIE_ROWS)


def initial_veggies() -> List[Dict[str, Any]]:
    """Return fresh full veggie records for a new game."""
    return copy.deepcopy(list(_VEGGIE_TEMPLATES))


def veggie_template(name: str) -> Optional[Dict[str, Any]]:
    for template in _VEGGIE_TEMPLATES:
        if template["name"] == name:
            return copy.deepcopy(template)
    return None


def default_auto_purchasers() -> List[Dict[str, Any]]:
    return [definition.to_dict() for definition in AUTO_PURCHASERS]


def default_auto_canning_config() -> Dict[str, Any]:
    return copy.deepcopy(dict(DEFAULT_AUTO_CANNING_CONFIG))


# Scalar progress fields of the root state and their first-launch values.
GAME_STATE_DEFAULTS: Mapping[str, Any] = {
    "money": 0,
    "experience": 0,
    "knowledge": 0,
    "activeVeggie": 0,
    "day": 1,
    "totalDaysElapsed": 0,
    "totalHarvests": 0,
    "farmTier": 1,
    "farmCost": 500,
    "maxPlots": 4,
    "highestUnlockedVeggie": 0,
    "almanacLevel": 0,
    "almanacCost": 10,
    "globalAutoPurchaseTimer": 0,
    "currentWeather": "Clear",
    "greenhouseOwned": False,
    "heirloomOwned": False,
    "autoSellOwned": False,
    "irrigationOwned": False,
}
