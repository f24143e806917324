"""Save, load, import and export orchestration for the farm game state."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .settings import SaveSettings
from .snapshot import (
    dehydrate_snapshot,
    export_filename,
    export_snapshot,
    hydrate_snapshot,
    new_game_state,
)
from .storage import StorageAdapter, open_default_storage
from .validation import import_errors


class SaveError(Exception):
    """Base class for save related failures."""


class SaveCorruptError(SaveError):
    """Raised when a stored save cannot be parsed into a game state."""


class SaveManager:
    """Persist the game state under one key with a rolling backup."""

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        settings: Optional[SaveSettings] = None,
        *,
        print_func: Callable[[str], None] = print,
    ) -> None:
        self.settings = (settings or SaveSettings()).copy()
        self.print = print_func
        if storage is None:
            storage = open_default_storage(self.settings.storage_dir)
        self.storage = storage

    # ---------- Public API ----------
    def load(self) -> Optional[Dict[str, Any]]:
        primary = self.settings.storage_key
        backup = self.settings.backup_key
        try:
            state = self._read_state(primary)
        except SaveCorruptError as err:
            self.print(f"[!] Saved game is corrupted: {err}")
        except SaveError:
            pass
        else:
            self.print(f"[Loaded] Game state from '{primary}'.")
            return state

        try:
            state = self._read_state(backup)
        except SaveCorruptError as err:
            self.print(f"[!] Backup save is also unusable: {err}")
            return None
        except SaveError:
            return None
        if self.storage.write_json(primary, dehydrate_snapshot(state)):
            self.print(f"[Restore] Backup save applied to '{primary}'.")
        return state

    def load_or_new(self) -> Dict[str, Any]:
        state = self.load()
        if state is None:
            self.print("[Save] No saved game found; starting a new farm.")
            return new_game_state()
        return state

    def save(self, state: Dict[str, Any], *, quiet: bool = False) -> bool:
        if not isinstance(state, dict):
            self.print("[!] Refusing to save a game state that is not an object.")
            return False
        primary = self.settings.storage_key
        record = dehydrate_snapshot(state)
        if self.settings.keep_backup:
            previous = self.storage.read(primary)
            if previous is not None:
                self.storage.write(self.settings.backup_key, previous)
        if not self.storage.write_json(primary, record):
            self.print(f"[!] Failed to save game state to '{primary}'.")
            return False
        if not quiet:
            self.print(f"[Save] Game state written to '{primary}'.")
        return True

    def export_snapshot(self, state: Dict[str, Any], *, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        return export_snapshot(state, game_version=self.settings.game_version, now=now)

    def write_export(
        self, state: Dict[str, Any], directory: Path | str = ".", *, now: Optional[datetime] = None
    ) -> Optional[Path]:
        snapshot = self.export_snapshot(state, now=now)
        if snapshot is None:
            self.print("[!] Nothing to export.")
            return None
        directory = Path(directory)
        path = directory / export_filename(self.settings.export_prefix, now)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as handle:
                json.dump(snapshot, handle, indent=self.settings.export_indent or None)
                handle.write("\n")
        except OSError as exc:
            self.print(f"[!] Failed to export save: {exc}")
            return None
        self.print(f"[Export] Save written to {path}.")
        return path

    def import_snapshot(self, raw: Any) -> bool:
        """Accept an exported save; the caller reloads from storage afterwards."""
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                self.print("[Import] Rejected: file is not UTF-8 text.")
                return False
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                self.print(f"[Import] Rejected: invalid JSON ({exc}).")
                return False

        errors = import_errors(raw)
        if errors:
            self.print(f"[Import] Rejected: {errors[0]}")
            return False
        state = hydrate_snapshot(raw)
        if state is None or not self.save(state, quiet=True):
            self.print("[Import] Rejected: the save could not be stored.")
            return False
        self.print("[Import] Save imported; reload to apply it.")
        return True

    def reset(self) -> bool:
        removed = self.storage.remove(self.settings.storage_key)
        removed = self.storage.remove(self.settings.backup_key) and removed
        if removed:
            self.print("[Save] Saved game cleared.")
        return removed

    # ---------- Internal helpers ----------
    def _read_state(self, key: str) -> Dict[str, Any]:
        if not self.storage.exists(key):
            raise SaveError(f"No save stored under '{key}'.")
        payload = self.storage.read_json(key)
        if payload is None:
            raise SaveCorruptError(f"'{key}' does not hold valid JSON.")
        state = hydrate_snapshot(payload)
        if state is None:
            raise SaveCorruptError("Payload was not an object.")
        return state
