"""Persistence settings for the farm save core."""

from __future__ import annotations

import json
import os
import sys
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict

from .coerce import as_bool, as_int

SETTINGS_PATH = Path("farmstate_settings.json")

DEFAULT_STORAGE_KEY = "farmIdleGameState"
DEFAULT_EXPORT_PREFIX = "farm-idle-save"
DEFAULT_GAME_VERSION = "1.5.0"


def _clean_str(value: Any, default: str) -> str:
    if not isinstance(value, str):
        return default
    value = value.strip()
    return value or default


@dataclass
class SaveSettings:
    """Where and how the game state is stored and exported."""

    storage_key: str = DEFAULT_STORAGE_KEY
    backup_key: str = f"{DEFAULT_STORAGE_KEY}.bak"
    keep_backup: bool = True
    storage_dir: str = "saves"
    export_prefix: str = DEFAULT_EXPORT_PREFIX
    game_version: str = DEFAULT_GAME_VERSION
    export_indent: int = 2

    def clamp(self) -> "SaveSettings":
        self.storage_key = _clean_str(self.storage_key, DEFAULT_STORAGE_KEY)
        self.backup_key = _clean_str(self.backup_key, f"{self.storage_key}.bak")
        if self.backup_key == self.storage_key:
            self.backup_key = f"{self.storage_key}.bak"
        self.keep_backup = bool(self.keep_backup)
        self.storage_dir = _clean_str(self.storage_dir, "saves")
        self.export_prefix = _clean_str(self.export_prefix, DEFAULT_EXPORT_PREFIX)
        self.game_version = _clean_str(self.game_version, DEFAULT_GAME_VERSION)
        self.export_indent = max(0, min(8, as_int(self.export_indent, 2)))
        return self

    def copy(self) -> "SaveSettings":
        return SaveSettings.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "SaveSettings":
        if not isinstance(data, dict):
            return cls()
        storage_key = _clean_str(data.get("storage_key"), DEFAULT_STORAGE_KEY)
        settings = cls(
            storage_key=storage_key,
            backup_key=_clean_str(data.get("backup_key"), f"{storage_key}.bak"),
            keep_backup=as_bool(data.get("keep_backup"), True),
            storage_dir=_clean_str(data.get("storage_dir"), "saves"),
            export_prefix=_clean_str(data.get("export_prefix"), DEFAULT_EXPORT_PREFIX),
            game_version=_clean_str(data.get("game_version"), DEFAULT_GAME_VERSION),
            export_indent=as_int(data.get("export_indent"), 2),
        )
        return settings.clamp()


def load_settings(path: Path | str = SETTINGS_PATH) -> SaveSettings:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError:
        return SaveSettings()
    except (OSError, json.JSONDecodeError, TypeError) as exc:
        print(f"[Settings] Ignoring unreadable settings file {path}: {exc}", file=sys.stderr)
        return SaveSettings()
    return SaveSettings.from_dict(data)


def save_settings(settings: SaveSettings, path: Path | str = SETTINGS_PATH) -> SaveSettings:
    path = Path(path)
    sanitized = settings.copy().clamp()
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", delete=False, dir=path.parent, prefix=path.name, suffix=".tmp", encoding="utf-8"
        ) as tmp_file:
            json.dump(sanitized.to_dict(), tmp_file, indent=2)
            tmp_file.write("\n")
            tmp_path = Path(tmp_file.name)
        os.replace(str(tmp_path), str(path))
    except OSError as exc:
        print(f"[Settings] Failed to save settings: {exc}", file=sys.stderr)
        if tmp_path is not None:
            try:
                tmp_path.unlink()
            except OSError:
                pass
    return sanitized
