import pytest

from farmstate.crafting import (
    AutoCanningConfig,
    CraftingState,
    ProcessInstance,
    UpgradeInstance,
    recipe_unlocked,
    upgrade_cost,
    upgrade_effect,
)
from farmstate.registry import (
    CANONICAL_UPGRADE_IDS,
    RECIPES,
    UPGRADES,
    UPGRADES_BY_ID,
    VEGGIE_NAMES,
    canning_quality_cost,
    canning_yield_cost,
    initial_veggies,
    veggie_template,
)


def test_registry_ids_are_unique_and_canonical_upgrades_exist() -> None:
    recipe_ids = [recipe.id for recipe in RECIPES]
    upgrade_ids = [upgrade.id for upgrade in UPGRADES]
    assert len(recipe_ids) == len(set(recipe_ids))
    assert len(upgrade_ids) == len(set(upgrade_ids))
    assert set(CANONICAL_UPGRADE_IDS) <= set(upgrade_ids)
    assert RECIPES[0].id == "canned_radish"


def test_recipe_ingredients_reference_known_veggies() -> None:
    for recipe in RECIPES:
        for name, quantity in recipe.ingredients:
            assert name in VEGGIE_NAMES, recipe.id
            assert quantity > 0


def test_per_veggie_canning_costs_scale_by_tier() -> None:
    assert [canning_yield_cost(i) for i in range(3)] == [200, 300, 450]
    assert [canning_quality_cost(i) for i in range(3)] == [150, 225, 338]
    veggies = initial_veggies()
    assert veggies[1]["canningYieldCost"] == 300
    assert veggies[0]["unlocked"] is True
    assert all(not veggie["unlocked"] for veggie in veggies[1:])


def test_veggie_template_is_a_fresh_copy() -> None:
    template = veggie_template("Lettuce")
    assert template is not None
    template["autoPurchasers"][0]["owned"] = True
    assert veggie_template("Lettuce")["autoPurchasers"][0]["owned"] is False
    assert veggie_template("Kale") is None


@pytest.mark.parametrize(
    ("upgrade_type", "level", "expected"),
    [
        ("speed", 0, 1.0),
        ("speed", 4, 0.8),
        ("speed", 30, 0.1),
        ("efficiency", 4, 1.4),
        ("quality", 3, 15),
        ("automation", 2, 2),
        ("mystery", 5, 0),
    ],
)
def test_upgrade_effects(upgrade_type: str, level: int, expected: float) -> None:
    assert upgrade_effect(upgrade_type, level) == pytest.approx(expected)


def test_upgrade_cost_rounds_up() -> None:
    assert upgrade_cost(100, 1.5, 0) == 100
    assert upgrade_cost(100, 1.5, 3) == 338
    assert upgrade_cost(500, 1.5, 1) == 750


def test_upgrade_instance_clamps_to_max_level() -> None:
    canner = UpgradeInstance.from_definition(UPGRADES_BY_ID["canner"], 7)
    assert canner.level == 1
    assert canner.effect == 1
    assert canner.cost == upgrade_cost(5000, 1.5, 1)


def test_first_recipe_uses_overall_experience_and_others_crafting_experience() -> None:
    assert recipe_unlocked(0, 5000, overall_experience=5000, crafting_experience=0)
    assert not recipe_unlocked(0, 5000, overall_experience=0, crafting_experience=1_000_000)
    assert recipe_unlocked(1, 500, overall_experience=0, crafting_experience=500)
    assert not recipe_unlocked(1, 500, overall_experience=1_000_000, crafting_experience=0)


def test_process_completion_follows_remaining_time() -> None:
    process = ProcessInstance(recipe_id="canned_lettuce", remaining_time=5, total_time=35)
    assert not process.completed
    assert process.advance(3) is False
    assert process.remaining_time == 2
    assert process.advance(10) is True
    assert process.remaining_time == 0
    assert process.completed
    assert process.to_dict()["completed"] is True
    assert process.advance(1) is False


def test_process_from_dict_repairs_total_time() -> None:
    process = ProcessInstance.from_dict({"recipeId": "canned_lettuce", "remainingTime": 12, "totalTime": 0})
    assert process is not None
    assert process.total_time == 12
    assert ProcessInstance.from_dict({"remainingTime": 3}) is None


def test_crafting_state_advance_reports_newly_finished_jobs() -> None:
    state = CraftingState(
        active_processes=[
            ProcessInstance("canned_lettuce", 2, 35),
            ProcessInstance("canned_green_beans", 10, 40),
            ProcessInstance("canned_radish", 0, 30),
        ]
    )
    finished = state.advance(2)
    assert [process.recipe_id for process in finished] == ["canned_lettuce"]


def test_auto_canning_config_merges_over_defaults() -> None:
    config = AutoCanningConfig.from_dict({"enabled": True, "selectedRecipes": ["a", "a", 3], "junk": 1})
    assert config.enabled is True
    assert config.selected_recipes == ["a"]
    assert config.excess_threshold == 10
    assert config.pause_when_full is True
    assert "junk" not in config.to_dict()
