"""Key/value persistence behind the browser ``localStorage`` API.

Every backend exposes ``getItem``/``setItem``/``removeItem``. The adapter is
the only place store failures are caught; callers get ``None`` or ``False``.
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

from .platform import IS_WEB, get_local_storage, storage_is_writable


class StorageError(Exception):
    """Raised by a storage backend when a key cannot be read or written."""


def _print_stderr(message: str) -> None:
    print(message, file=sys.stderr)


class MemoryStorage:
    """In-process store, used for tests and when nothing else is writable."""

    def __init__(self, items: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(items or {})

    def getItem(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def setItem(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def removeItem(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """One file per key inside ``base_path``."""

    SUFFIX = ".json"

    def __init__(self, base_path: Path | str) -> None:
        self.base_path = Path(base_path)

    def path_for(self, key: str) -> Path:
        return self.base_path / f"{quote(key, safe='')}{self.SUFFIX}"

    def getItem(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Could not read {path}: {exc}") from exc

    def setItem(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_path: Path | None = None
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", delete=False, dir=self.base_path, prefix=path.name, suffix=".tmp", encoding="utf-8"
            ) as tmp_file:
                tmp_file.write(value)
                tmp_path = Path(tmp_file.name)
            os.replace(str(tmp_path), str(path))
        except OSError as exc:
            if tmp_path is not None:
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
            raise StorageError(f"Could not write {path}: {exc}") from exc

    def removeItem(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"Could not remove {path}: {exc}") from exc


class StorageAdapter:
    """Wrap a store so that no read or write failure escapes."""

    def __init__(self, store: Any, *, print_func: Callable[[str], None] = _print_stderr) -> None:
        self.store = store
        self.print = print_func

    def read(self, key: str) -> Optional[str]:
        try:
            raw = self.store.getItem(key)
        except Exception as exc:
            self.print(f"[Storage] Failed to read '{key}': {exc}")
            return None
        if raw is None:
            return None
        return str(raw)

    def write(self, key: str, raw: str) -> bool:
        try:
            self.store.setItem(key, raw)
        except Exception as exc:
            self.print(f"[Storage] Failed to write '{key}': {exc}")
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            self.store.removeItem(key)
        except Exception as exc:
            self.print(f"[Storage] Failed to remove '{key}': {exc}")
            return False
        return True

    def exists(self, key: str) -> bool:
        return self.read(key) is not None

    def read_json(self, key: str) -> Optional[Any]:
        raw = self.read(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            self.print(f"[Storage] Ignoring malformed JSON in '{key}': {exc}")
            return None

    def write_json(self, key: str, value: Any, *, indent: Optional[int] = None) -> bool:
        try:
            raw = json.dumps(value, indent=indent)
        except (TypeError, ValueError) as exc:
            self.print(f"[Storage] Could not serialise '{key}': {exc}")
            return False
        return self.write(key, raw)


def open_default_storage(
    base_path: Path | str = "saves", *, print_func: Callable[[str], None] = _print_stderr
) -> StorageAdapter:
    local_storage = get_local_storage()
    if IS_WEB:
        if storage_is_writable(local_storage):
            return StorageAdapter(local_storage, print_func=print_func)
        print_func("[Storage] localStorage unavailable in web build; keeping saves in memory.")
        return StorageAdapter(MemoryStorage(), print_func=print_func)
    return StorageAdapter(FileStorage(base_path), print_func=print_func)
