"""Tests for file-backed snapshot storage."""

import pytest

from taskflow.adapters.file_storage import FileKeyValueStore


@pytest.fixture
def storage(tmp_path):
    return FileKeyValueStore(tmp_path / "data")


class TestFileKeyValueStore:
    def test_creates_directory(self, storage):
        assert storage.data_dir.is_dir()

    def test_missing_key(self, storage):
        assert storage.get("tasks") is None

    def test_set_get_overwrite(self, storage):
        storage.set("tasks", "[1]")
        storage.set("tasks", "[2]")
        assert storage.get("tasks") == "[2]"
        assert (storage.data_dir / "tasks.json").read_text() == "[2]"

    def test_no_temp_file_left(self, storage):
        storage.set("tasks", "[]")
        assert [p.name for p in storage.data_dir.iterdir()] == ["tasks.json"]

    def test_delete(self, storage):
        storage.set("tasks", "[]")
        storage.delete("tasks")
        storage.delete("tasks")
        assert storage.get("tasks") is None

    def test_keys(self, storage):
        storage.set("users", "[]")
        storage.set("projects", "[]")
        assert storage.keys() == ["projects", "users"]

    @pytest.mark.parametrize("key", ["../escape", "a/b", ""])
    def test_rejects_unsafe_keys(self, storage, key):
        with pytest.raises(ValueError):
            storage.get(key)
