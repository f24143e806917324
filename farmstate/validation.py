"""Structural gate for imported save payloads.

The gate is deliberately shallower than migration: it checks only the fields
the rest of the pipeline cannot work without, and stops at the first problem.
"""

from __future__ import annotations

from typing import Any, List, Mapping

from .coerce import is_number

REQUIRED_FIELDS = (
    "veggies",
    "money",
    "experience",
    "knowledge",
    "activeVeggie",
    "day",
    "maxPlots",
    "farmTier",
)
CRAFTING_LIST_FIELDS = ("recipes", "upgrades", "activeProcesses")


class ValidationContext:
    """Collect the first structural problem found in a payload."""

    def __init__(self) -> None:
        self.errors: List[str] = []

    def add(self, path_str: str, message: str) -> None:
        self.errors.append(f"{path_str}: {message}")

    def ok(self) -> bool:
        return not self.errors


def _require(condition: bool, path_str: str, message: str, ctx: ValidationContext) -> bool:
    if not condition:
        ctx.add(path_str, message)
    return condition


def _is_unset(value: Any) -> bool:
    """Null, false, zero, NaN and the empty string all mean the block is absent."""
    if value is None or value is False or value == "":
        return True
    return is_number(value) and (value == 0 or value != value)


def import_errors(data: Any) -> List[str]:
    """Return at most one message describing why ``data`` cannot be imported."""
    ctx = ValidationContext()
    if not _require(isinstance(data, Mapping), "$", "payload must be an object.", ctx):
        return ctx.errors
    for key in REQUIRED_FIELDS:
        if not _require(key in data, f"$.{key}", "required field is missing.", ctx):
            return ctx.errors
    if not _require(isinstance(data["veggies"], list), "$.veggies", "must be a list.", ctx):
        return ctx.errors

    crafting = data.get("canningState")
    if _is_unset(crafting):
        return ctx.errors
    if not _require(isinstance(crafting, Mapping), "$.canningState", "must be an object.", ctx):
        return ctx.errors
    for key in CRAFTING_LIST_FIELDS:
        if not _require(isinstance(crafting.get(key), list), f"$.canningState.{key}", "must be a list.", ctx):
            return ctx.errors
    return ctx.errors


def validate_import(data: Any) -> bool:
    return not import_errors(data)
