"""Tests for the storage backends."""

# pylint: disable=protected-access

import json
import os

import pytest

from garden_inventory.infrastructure.storage import FileStorage, InMemoryStorage, StorageError


class TestInMemoryStorage:
    """Test the dictionary-backed storage."""

    def test_get_missing_key_is_none(self):
        assert InMemoryStorage().get("garden-inventory") is None

    def test_set_get_clear(self):
        storage = InMemoryStorage()

        storage.set("garden-inventory", '{"items": []}')
        assert storage.get("garden-inventory") == '{"items": []}'
        assert storage.keys() == ["garden-inventory"]

        storage.clear("garden-inventory")
        assert storage.get("garden-inventory") is None

    def test_clear_missing_key_is_noop(self):
        storage = InMemoryStorage()

        storage.clear("never-written")

        assert storage.keys() == []

    def test_initial_contents_are_copied(self):
        initial = {"a": "1"}
        storage = InMemoryStorage(initial)

        storage.set("b", "2")

        assert initial == {"a": "1"}
        assert sorted(storage.keys()) == ["a", "b"]


class TestFileStorage:
    """Test the file-backed storage."""

    def test_get_missing_file_is_none(self, tmp_path):
        assert FileStorage(tmp_path).get("garden-inventory") is None

    def test_set_creates_directory_and_file(self, tmp_path):
        directory = tmp_path / "nested" / "inventory"
        storage = FileStorage(directory)

        storage.set("garden-inventory", json.dumps({"items": []}))

        path = directory / "garden-inventory.json"
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == {"items": []}
        assert storage.get("garden-inventory") == '{"items": []}'

    def test_set_replaces_previous_blob_without_leftovers(self, tmp_path):
        storage = FileStorage(tmp_path)

        storage.set("garden-inventory", "first")
        storage.set("garden-inventory", "second")

        assert storage.get("garden-inventory") == "second"
        assert sorted(os.listdir(tmp_path)) == ["garden-inventory.json"]

    def test_unsafe_key_characters_are_replaced(self, tmp_path):
        storage = FileStorage(tmp_path)

        path = storage.path_for("../player one/inv")

        assert path.parent == tmp_path
        assert path.name == ".._player_one_inv.json"

    def test_empty_key_is_rejected(self, tmp_path):
        with pytest.raises(StorageError):
            FileStorage(tmp_path).get("")

    def test_clear_removes_file(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.set("garden-inventory", "{}")

        storage.clear("garden-inventory")
        storage.clear("garden-inventory")

        assert storage.get("garden-inventory") is None

    def test_write_failure_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("x", encoding="utf-8")
        storage = FileStorage(blocker)

        with pytest.raises(StorageError):
            storage.set("garden-inventory", "{}")

    def test_read_failure_raises_storage_error(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.path_for("garden-inventory").mkdir()

        with pytest.raises(StorageError):
            storage.get("garden-inventory")
