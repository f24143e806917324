"""Conversions between the hydrated game state and its stored forms."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .lean import compact_game_state, default_crafting_state, expand_game_state
from .registry import (
    GAME_STATE_DEFAULTS,
    SCHEMA_VERSION,
    VERSION_KEY,
    default_auto_canning_config,
    default_auto_purchasers,
    initial_veggies,
)
from .save_migrations import migrate_game_state
from .settings import DEFAULT_EXPORT_PREFIX, DEFAULT_GAME_VERSION


def new_game_state() -> Dict[str, Any]:
    """First-launch state with every subsystem at its defaults."""
    state: Dict[str, Any] = dict(GAME_STATE_DEFAULTS)
    veggies = initial_veggies()
    state["veggies"] = veggies
    state["canningState"] = default_crafting_state(veggies, state["experience"]).to_dict()
    state["canningAutoPurchasers"] = default_auto_purchasers()
    state["autoCanningConfig"] = default_auto_canning_config()
    state[VERSION_KEY] = SCHEMA_VERSION
    return state


def is_lean_record(record: Any) -> bool:
    return (
        isinstance(record, dict)
        and VERSION_KEY not in record
        and "canningState" not in record
        and isinstance(record.get("canningProgress"), dict)
    )


def hydrate_snapshot(record: Any) -> Optional[Dict[str, Any]]:
    """Turn any stored record, lean or versioned, into a current full state.

    Lean records are expanded first; both paths then go through the migration
    pass so the result is normalised the same way.
    """
    if not isinstance(record, dict):
        return None
    if is_lean_record(record):
        return migrate_game_state(expand_game_state(record))
    return migrate_game_state(record)


def dehydrate_snapshot(state: Dict[str, Any]) -> Dict[str, Any]:
    return compact_game_state(state)


def export_snapshot(
    state: Any,
    *,
    game_version: str = DEFAULT_GAME_VERSION,
    now: Optional[datetime] = None,
) -> Optional[Dict[str, Any]]:
    hydrated = hydrate_snapshot(copy.deepcopy(state))
    if hydrated is None:
        return None
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    hydrated[VERSION_KEY] = SCHEMA_VERSION
    hydrated["exportTimestamp"] = moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    hydrated["gameVersion"] = game_version
    return hydrated


def export_filename(prefix: str = DEFAULT_EXPORT_PREFIX, now: Optional[datetime] = None) -> str:
    """``<prefix>_YYYY-MM-DD_HH-MM.json`` in local time."""
    moment = now or datetime.now()
    return f"{prefix}_{moment.strftime('%Y-%m-%d_%H-%M')}.json"
