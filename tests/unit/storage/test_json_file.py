"""Tests for the JSON file key-value store."""

from pathlib import Path

import pytest
from filelock import FileLock

from recallforge.core.exceptions import StorageError, ValidationError
from recallforge.storage.json_file import JsonFileStore
from recallforge.storage.memory import InMemoryStore


@pytest.fixture
def store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "data", lock_timeout=0.2)


class TestJsonFileStore:
    """Read, write and delete against a temp directory."""

    def test_missing_key_reads_none(self, store: JsonFileStore) -> None:
        assert store.get("progress") is None
        assert not store.exists("progress")

    def test_set_creates_dir_and_file(self, store: JsonFileStore) -> None:
        store.set("progress", '{"version": 2}')

        assert store.path_for("progress").read_text(encoding="utf-8") == '{"version": 2}'
        assert store.get("progress") == '{"version": 2}'
        assert store.exists("progress")

    def test_overwrite_leaves_no_temp_file(self, store: JsonFileStore) -> None:
        store.set("progress", "one")
        store.set("progress", "two")

        assert store.get("progress") == "two"
        assert not list(store.data_dir.glob("*.tmp"))

    def test_delete(self, store: JsonFileStore) -> None:
        store.set("session", "{}")

        assert store.delete("session") is True
        assert store.get("session") is None
        assert store.delete("session") is False

    def test_unicode_values(self, store: JsonFileStore) -> None:
        store.set("progress", '{"term": "élève"}')
        assert store.get("progress") == '{"term": "élève"}'

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden", "x..y"])
    def test_invalid_keys(self, key: str, store: JsonFileStore) -> None:
        with pytest.raises(ValidationError):
            store.set(key, "value")

    def test_lock_timeout_raises_storage_error(self, store: JsonFileStore) -> None:
        store.set("progress", "value")
        held = FileLock(str(store.path_for("progress").with_suffix(".json.lock")))

        with held:
            with pytest.raises(StorageError, match="Could not acquire lock"):
                store.set("progress", "other")

        assert store.get("progress") == "value"

    def test_unwritable_dir_raises_storage_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(StorageError):
            JsonFileStore(blocker / "data").set("progress", "value")


class TestInMemoryStore:
    def test_basic_operations(self) -> None:
        kv = InMemoryStore({"a": "1"})
        kv.set("b", "2")

        assert kv.keys() == ["a", "b"]
        assert kv.delete("a") is True
        assert kv.delete("a") is False
        assert kv.get("b") == "2"
