"""Tests for the LevelDB source store."""

import pytest

from localstorage_migrator.codec import encode
from localstorage_migrator.exceptions import StoreUnavailableError
from localstorage_migrator.migrator import MigrationEngine
from localstorage_migrator.stores import LevelDBSourceStore, MemoryTargetStore


class TestLevelDBSourceStore:
    """Test LevelDBSourceStore."""

    def test_requires_path(self):
        with pytest.raises(ValueError):
            LevelDBSourceStore({})

    def test_missing_directory(self, tmp_path):
        store = LevelDBSourceStore({"path": str(tmp_path / "leveldb")})

        with pytest.raises(StoreUnavailableError):
            store.open()
        assert not (tmp_path / "leveldb").exists()

    def test_file_is_not_a_database(self, tmp_path):
        path = tmp_path / "leveldb"
        path.write_text("not a directory")

        with pytest.raises(StoreUnavailableError):
            LevelDBSourceStore({"path": str(path)}).open()

    def test_missing_directory_migrates_nothing(self, tmp_path):
        target = MemoryTargetStore()
        source = LevelDBSourceStore({"path": str(tmp_path / "leveldb")})

        progress = MigrationEngine().run(source, target)

        assert progress.ok
        assert progress.source_missing
        assert target.data == {}


class TestLevelDBMigration:
    """Test a pass against a real LevelDB database."""

    @pytest.fixture
    def plyvel(self):
        return pytest.importorskip("plyvel")

    @pytest.fixture
    def db_path(self, tmp_path, plyvel):
        path = tmp_path / "leveldb"
        db = plyvel.DB(str(path), create_if_missing=True)
        db.put(b"VERSION", b"1")
        db.put(b"META:https://localhost:8100", b"\x08\x80\x01")
        for key, value in [("rapid-username", "alice"), ("unmapped-key", "hello")]:
            record = encode(key, value)
            db.put(record.key, record.value)
        db.close()
        return path

    def test_empty_directory_is_unavailable(self, tmp_path, plyvel):
        path = tmp_path / "leveldb"
        path.mkdir()

        with pytest.raises(StoreUnavailableError):
            LevelDBSourceStore({"path": str(path)}).open()

    def test_migrate(self, db_path, plyvel):
        target = MemoryTargetStore()

        assert MigrationEngine().migrate(LevelDBSourceStore({"path": str(db_path)}), target)

        assert target.data == {"rapid-username": '"alice"', "unmapped-key": '"hello"'}
        db = plyvel.DB(str(db_path))
        try:
            assert sorted(key for key, _ in db) == [b"META:https://localhost:8100", b"VERSION"]
        finally:
            db.close()
