"""Tolerant value coercion for loosely typed save data."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Union

Number = Union[int, float]


def as_int(value: object, default: int = 0, *, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        value = int(value)
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return default
    if minimum is not None:
        number = max(number, minimum)
    return number


def as_number(value: object, default: Number = 0, *, minimum: Number | None = None) -> Number:
    """Keep ints as ints and finite floats as floats; anything else is the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        if not isinstance(value, str):
            return default
        try:
            value = float(value)
        except ValueError:
            return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    if minimum is not None and value < minimum:
        return minimum
    return value


def as_bool(value: object, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
        return default
    return bool(value) if value is not None else default


def as_str(value: object, default: str = "") -> str:
    return value if isinstance(value, str) else default


def as_list(value: object) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def as_dict(value: object) -> Dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def as_id_list(value: object) -> List[str]:
    """Unique string ids in first-seen order."""
    seen: List[str] = []
    for item in as_list(value):
        if isinstance(item, str) and item and item not in seen:
            seen.append(item)
    return seen


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
