"""Platform helpers for desktop vs web builds."""

from __future__ import annotations

import sys
from typing import Any, Optional

IS_WEB = sys.platform == "emscripten"

_PROBE_KEY = "__farmstate_probe__"


def get_local_storage() -> Optional[Any]:
    if not IS_WEB:
        return None
    try:
        from js import localStorage  # type: ignore
    except Exception:
        return None
    return localStorage


def storage_is_writable(store: Any) -> bool:
    """Round-trip a throwaway key; private browsing modes reject writes."""
    if store is None:
        return False
    try:
        store.setItem(_PROBE_KEY, "1")
        store.removeItem(_PROBE_KEY)
    except Exception:
        return False
    return True
