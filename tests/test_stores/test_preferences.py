"""Tests for the JSON file preference store."""

import json

import pytest

from localstorage_migrator.codec import encode
from localstorage_migrator.exceptions import StoreOperationError
from localstorage_migrator.migrator import MigrationEngine
from localstorage_migrator.stores import MemorySourceStore, PreferenceFileStore


class TestPreferenceFileStore:
    """Test PreferenceFileStore."""

    @pytest.fixture
    def prefs_path(self, tmp_path):
        return tmp_path / "shared_prefs" / "NativeStorage.json"

    @pytest.fixture
    def store(self, prefs_path):
        return PreferenceFileStore({"path": str(prefs_path)})

    def test_requires_path(self):
        with pytest.raises(ValueError):
            PreferenceFileStore({})

    def test_missing_file_is_empty(self, store):
        assert store.load() == {}
        assert not store.contains("rapid-username")
        assert store.get("rapid-username") is None

    def test_empty_file_is_empty(self, store, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text("")
        assert store.load() == {}

    def test_commit_creates_file(self, store, prefs_path):
        with store.edit() as editor:
            editor.put("rapid-username", '"alice"')
            assert editor.commit() is True

        assert json.loads(prefs_path.read_text()) == {"rapid-username": '"alice"'}
        assert store.contains("rapid-username")
        assert not (prefs_path.parent / "NativeStorage.json.lock").exists()

    def test_commit_merges_existing(self, store, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text(json.dumps({"existing": '"1"', "rapid-username": '"old"'}))

        with store.edit() as editor:
            editor.put("rapid-username", '"alice"')
            editor.commit()

        assert store.load() == {"existing": '"1"', "rapid-username": '"alice"'}

    def test_uncommitted_writes_discarded(self, store, prefs_path):
        with store.edit() as editor:
            editor.put("rapid-username", '"alice"')

        assert not prefs_path.exists()

    def test_closed_editor_rejects_writes(self, store):
        editor = store.edit()
        editor.close()
        with pytest.raises(StoreOperationError):
            editor.put("k", "v")
        with pytest.raises(StoreOperationError):
            editor.commit()

    def test_corrupt_file(self, store, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text("{not json")

        with pytest.raises(StoreOperationError):
            store.load()

    def test_non_object_file(self, store, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text("[1, 2]")

        with pytest.raises(StoreOperationError, match="JSON object"):
            store.contains("rapid-username")

    def test_commit_onto_corrupt_file_fails(self, store, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text("{not json")

        with store.edit() as editor:
            editor.put("k", '"v"')
            assert editor.commit() is False

        assert prefs_path.read_text() == "{not json"
        assert not list(prefs_path.parent.glob("*.tmp"))

    def test_unicode_preserved(self, store, prefs_path):
        with store.edit() as editor:
            editor.put("greeting", '"héllo ✓"')
            editor.commit()

        assert "héllo ✓" in prefs_path.read_text(encoding="utf-8")
        assert store.get("greeting") == '"héllo ✓"'


class TestMigrationToFile:
    """Test a full pass into a preference file."""

    def test_migrate(self, tmp_path):
        target = PreferenceFileStore({"path": str(tmp_path / "prefs.json")})
        source = MemorySourceStore({"records": [
            encode("rapid-username", "alice"),
            encode("rapid-app-storage", '{"a":"b"}'),
        ]})

        assert MigrationEngine().migrate(source, target)

        assert target.load() == {
            "rapid-username": '"alice"',
            "rapid-app-storage": '"{\\"a\\":\\"b\\"}"',
        }
        assert len(source) == 0

        # The stored values parse back to the original strings
        assert json.loads(target.get("rapid-app-storage")) == '{"a":"b"}'

    def test_corrupt_target_fails_guard(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")
        source = MemorySourceStore({"records": [encode("rapid-username", "alice")]})

        progress = MigrationEngine().run(source, PreferenceFileStore({"path": str(path)}))

        assert not progress.ok
        assert progress.errors[0]["phase"] == "guard"
        assert len(source) == 1
