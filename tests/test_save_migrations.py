import copy

import pytest

from farmstate.registry import CANONICAL_UPGRADE_IDS, RECIPES, SCHEMA_VERSION, VERSION_KEY, initial_veggies
from farmstate.save_migrations import MIGRATIONS, migrate_game_state, migrate_save_payload


def base_payload(**overrides) -> dict:
    payload = {
        "veggies": initial_veggies(),
        "money": 250,
        "experience": 0,
        "knowledge": 12,
        "activeVeggie": 0,
        "day": 40,
        "maxPlots": 6,
        "farmTier": 2,
    }
    payload.update(overrides)
    return payload


def upgrades_by_id(state: dict) -> dict:
    return {upgrade["id"]: upgrade for upgrade in state["canningState"]["upgrades"]}


def recipes_by_id(state: dict) -> dict:
    return {recipe["id"]: recipe for recipe in state["canningState"]["recipes"]}


@pytest.mark.parametrize("payload", [None, [], "save", 3])
def test_non_object_payloads_are_rejected(payload: object) -> None:
    assert migrate_game_state(payload) is None


def test_version_zero_save_gains_crafting_subsystem() -> None:
    migrated = migrate_game_state(base_payload(experience=6000))

    assert migrated[VERSION_KEY] == SCHEMA_VERSION
    assert migrated["money"] == 250
    assert migrated["day"] == 40
    assert [recipe["id"] for recipe in migrated["canningState"]["recipes"]] == [r.id for r in RECIPES]
    assert recipes_by_id(migrated)["canned_radish"]["unlocked"] is True
    assert migrated["canningState"]["maxSimultaneousProcesses"] == 1
    assert len(migrated["canningAutoPurchasers"]) == 4
    assert migrated["autoCanningConfig"]["excessThreshold"] == 10


def test_migration_is_idempotent_and_does_not_mutate_input() -> None:
    payload = base_payload(
        canningVersion=1,
        canningState={
            "recipes": [],
            "upgrades": [{"id": "canning_speed", "level": 2}],
            "activeProcesses": [{"recipeId": "canned_lettuce", "remainingTime": 9, "startTime": 0}],
            "unlockedRecipes": ["canned_lettuce"],
            "canningExperience": 700,
        },
    )
    original = copy.deepcopy(payload)

    once = migrate_game_state(payload)
    twice = migrate_game_state(once)

    assert payload == original
    assert once == twice


def test_levels_are_preserved_and_canner_is_backfilled() -> None:
    payload = base_payload(
        canningVersion=2,
        canningState={
            "recipes": [{"id": "canned_lettuce", "timesCompleted": 6, "unlocked": True}],
            "upgrades": [
                {"id": "canning_speed", "level": 4, "cost": 1, "effect": 999},
                {"id": "simultaneous_processing", "level": 2},
            ],
            "activeProcesses": [],
            "unlockedRecipes": ["canned_lettuce"],
            "totalItemsCanned": 6,
            "canningExperience": 60,
        },
    )

    migrated = migrate_game_state(payload)
    upgrades = upgrades_by_id(migrated)

    assert list(upgrades) == list(CANONICAL_UPGRADE_IDS)
    assert upgrades["canner"]["level"] == 0
    assert upgrades["canning_speed"]["level"] == 4
    assert upgrades["canning_speed"]["cost"] == 507
    assert upgrades["canning_speed"]["effect"] == pytest.approx(0.8)
    assert migrated["canningState"]["maxSimultaneousProcesses"] == 3
    assert migrated["canningState"]["totalItemsCanned"] == 6
    assert recipes_by_id(migrated)["canned_lettuce"]["timesCompleted"] == 6
    assert recipes_by_id(migrated)["canned_lettuce"]["unlocked"] is True


def test_process_total_time_is_backfilled_from_recipe() -> None:
    payload = base_payload(
        canningVersion=1,
        canningState={
            "recipes": [],
            "upgrades": [],
            "activeProcesses": [
                {"recipeId": "canned_lettuce", "remainingTime": 12, "startTime": 5},
                {"recipeId": "retired_recipe", "remainingTime": 8, "startTime": 5},
            ],
        },
    )

    stepped = MIGRATIONS[1](payload)
    assert [process["totalTime"] for process in stepped["canningState"]["activeProcesses"]] == [35, 8]

    migrated = migrate_game_state(payload)
    processes = migrated["canningState"]["activeProcesses"]
    assert [process["recipeId"] for process in processes] == ["canned_lettuce"]
    assert processes[0]["totalTime"] == 35
    assert processes[0]["completed"] is False


def test_veggie_canning_fields_backfilled_by_tier() -> None:
    payload = base_payload(canningVersion=2, canningState={"recipes": [], "upgrades": [], "activeProcesses": []})
    for veggie in payload["veggies"]:
        for key in ("canningYieldLevel", "canningYieldCost", "canningQualityLevel", "canningQualityCost"):
            veggie.pop(key)

    stepped = MIGRATIONS[2](payload)

    lettuce = stepped["veggies"][1]
    assert lettuce["canningYieldLevel"] == 0
    assert lettuce["canningYieldCost"] == 300
    assert lettuce["canningQualityCost"] == 225


def test_unlock_rule_is_asymmetric() -> None:
    crafting = {"recipes": [], "upgrades": [], "activeProcesses": [], "canningExperience": 10_000}
    migrated = migrate_game_state(base_payload(experience=0, canningVersion=3, canningState=crafting))
    recipes = recipes_by_id(migrated)
    assert recipes["canned_radish"]["unlocked"] is False
    assert recipes["canned_lettuce"]["unlocked"] is True

    crafting = {"recipes": [], "upgrades": [], "activeProcesses": [], "canningExperience": 0}
    migrated = migrate_game_state(base_payload(experience=6000, canningVersion=3, canningState=crafting))
    recipes = recipes_by_id(migrated)
    assert recipes["canned_radish"]["unlocked"] is True
    assert recipes["canned_lettuce"]["unlocked"] is False


def test_damaged_subsystem_is_reset_but_scalars_survive() -> None:
    migrated = migrate_game_state(base_payload(canningVersion=3, canningState="corrupt", veggies="corrupt"))

    assert migrated["money"] == 250
    assert migrated["knowledge"] == 12
    assert len(migrated["veggies"]) == 10
    assert list(upgrades_by_id(migrated)) == list(CANONICAL_UPGRADE_IDS)


@pytest.mark.parametrize("version", [True, "2", -4, 99])
def test_odd_version_stamps_are_restamped(version: object) -> None:
    migrated = migrate_game_state(base_payload(canningVersion=version))
    assert migrated[VERSION_KEY] == SCHEMA_VERSION
    assert len(migrated["canningState"]["recipes"]) == len(RECIPES)


def test_missing_scalars_take_defaults() -> None:
    migrated = migrate_save_payload({"money": 5})
    assert migrated["money"] == 5
    assert migrated["day"] == 1
    assert migrated["farmTier"] == 1
    assert migrated["currentWeather"] == "Clear"


@pytest.mark.parametrize("version", [1, 3])
def test_versioned_record_with_lean_crafting_progress_keeps_it(version: int) -> None:
    payload = base_payload(
        canningVersion=version,
        canningProgress={
            "upgradeProgress": {"canning_speed": 2},
            "unlockedRecipes": ["canned_lettuce"],
            "recipeCompletions": {"canned_lettuce": 50},
            "activeProcesses": [{"recipeId": "canned_lettuce", "remainingTime": 4, "totalTime": 35}],
            "totalItemsCanned": 50,
            "canningExperience": 500,
        },
    )

    migrated = migrate_game_state(payload)
    crafting = migrated["canningState"]

    assert "canningProgress" not in migrated
    assert crafting["canningExperience"] == 500
    assert crafting["totalItemsCanned"] == 50
    assert upgrades_by_id(migrated)["canning_speed"]["level"] == 2
    assert recipes_by_id(migrated)["canned_lettuce"]["timesCompleted"] == 50
    assert [process["remainingTime"] for process in crafting["activeProcesses"]] == [4]


def test_full_crafting_state_wins_over_lean_progress() -> None:
    payload = base_payload(
        canningVersion=3,
        canningState={"recipes": [], "upgrades": [], "activeProcesses": [], "canningExperience": 90},
        canningProgress={"canningExperience": 500},
    )
    assert migrate_game_state(payload)["canningState"]["canningExperience"] == 90
