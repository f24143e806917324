import json
from pathlib import Path

from farmstate.platform import storage_is_writable
from farmstate.settings import SaveSettings, load_settings, save_settings
from farmstate.storage import FileStorage, MemoryStorage, StorageAdapter, StorageError, open_default_storage


class BrokenStorage:
    def getItem(self, key: str) -> str:
        raise StorageError("read denied")

    def setItem(self, key: str, value: str) -> None:
        raise StorageError("quota exceeded")

    def removeItem(self, key: str) -> None:
        raise StorageError("remove denied")


def test_file_storage_round_trips_and_quotes_keys(tmp_path: Path) -> None:
    store = FileStorage(tmp_path / "saves")
    store.setItem("farm/state.bak", '{"money": 1}')

    assert store.getItem("farm/state.bak") == '{"money": 1}'
    assert store.path_for("farm/state.bak").parent == tmp_path / "saves"
    assert store.getItem("missing") is None

    store.removeItem("farm/state.bak")
    store.removeItem("farm/state.bak")
    assert store.getItem("farm/state.bak") is None
    assert not list((tmp_path / "saves").glob("*.tmp"))


def test_adapter_reports_failures_instead_of_raising() -> None:
    messages = []
    adapter = StorageAdapter(BrokenStorage(), print_func=messages.append)

    assert adapter.write("k", "v") is False
    assert adapter.read("k") is None
    assert adapter.remove("k") is False
    assert adapter.write_json("k", {"a": 1}) is False
    assert all(message.startswith("[Storage]") for message in messages)
    assert "quota exceeded" in messages[0]


def test_adapter_write_fails_when_directory_is_a_file(tmp_path: Path) -> None:
    blocker = tmp_path / "saves"
    blocker.write_text("not a directory")
    adapter = StorageAdapter(FileStorage(blocker), print_func=lambda message: None)
    assert adapter.write("farmIdleGameState", "{}") is False


def test_read_json_ignores_malformed_text() -> None:
    messages = []
    adapter = StorageAdapter(MemoryStorage({"k": "{oops", "ok": "[1, 2]"}), print_func=messages.append)
    assert adapter.read_json("k") is None
    assert adapter.read_json("ok") == [1, 2]
    assert adapter.read_json("absent") is None
    assert len(messages) == 1


def test_write_json_rejects_unserialisable_values() -> None:
    adapter = StorageAdapter(MemoryStorage(), print_func=lambda message: None)
    assert adapter.write_json("k", {"bad": object()}) is False
    assert adapter.exists("k") is False


def test_default_storage_is_file_backed_on_desktop(tmp_path: Path) -> None:
    adapter = open_default_storage(tmp_path)
    assert isinstance(adapter.store, FileStorage)
    assert adapter.write("key", "value")
    assert adapter.read("key") == "value"


def test_storage_writability_check() -> None:
    assert storage_is_writable(MemoryStorage())
    assert not storage_is_writable(BrokenStorage())
    assert not storage_is_writable(None)


def test_settings_clamp_and_defaults() -> None:
    settings = SaveSettings.from_dict(
        {"storage_key": "  ", "backup_key": "farmIdleGameState", "export_indent": 99, "keep_backup": "no"}
    )
    assert settings.storage_key == "farmIdleGameState"
    assert settings.backup_key == "farmIdleGameState.bak"
    assert settings.export_indent == 8
    assert settings.keep_backup is False
    assert SaveSettings.from_dict(None) == SaveSettings()


def test_settings_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "config" / "settings.json"
    saved = save_settings(SaveSettings(storage_key="slot-a", game_version="2.0.0"), path)

    assert json.loads(path.read_text())["storage_key"] == "slot-a"
    assert load_settings(path) == saved
    assert saved.backup_key == "farmIdleGameState.bak"


def test_settings_fall_back_on_bad_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{broken")
    assert load_settings(path) == SaveSettings()
    assert load_settings(tmp_path / "missing.json") == SaveSettings()
