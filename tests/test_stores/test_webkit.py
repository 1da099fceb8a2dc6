"""Tests for the WebKit SQLite source store."""

import sqlite3

import pytest

from localstorage_migrator.codec import RawRecord
from localstorage_migrator.exceptions import StoreUnavailableError
from localstorage_migrator.migrator import MigrationEngine
from localstorage_migrator.stores import MemoryTargetStore, WebKitSourceStore


def _create_database(path, items):
    conn = sqlite3.connect(str(path))
    with conn:
        conn.execute(
            "CREATE TABLE ItemTable (key TEXT UNIQUE ON CONFLICT REPLACE, "
            "value BLOB NOT NULL ON CONFLICT FAIL)"
        )
        conn.executemany(
            "INSERT INTO ItemTable (key, value) VALUES (?, ?)",
            [(key, value.encode("utf-16-le")) for key, value in items],
        )
    conn.close()


def _keys(path):
    conn = sqlite3.connect(str(path))
    try:
        return [row[0] for row in conn.execute("SELECT key FROM ItemTable ORDER BY rowid")]
    finally:
        conn.close()


class TestWebKitSourceStore:
    """Test WebKitSourceStore."""

    @pytest.fixture
    def db_path(self, tmp_path):
        path = tmp_path / "localstorage.sqlite3"
        _create_database(path, [
            ("rapid-username", "alice"),
            ("rapid-user-changed", "false"),
            ("rapid-app-storage", '{"lang":"en"}'),
        ])
        return path

    def test_requires_path(self):
        with pytest.raises(ValueError):
            WebKitSourceStore({})

    def test_missing_file(self, tmp_path):
        store = WebKitSourceStore({"path": str(tmp_path / "absent.sqlite3")})
        with pytest.raises(StoreUnavailableError):
            store.open()
        assert not (tmp_path / "absent.sqlite3").exists()

    def test_missing_table(self, tmp_path):
        path = tmp_path / "empty.sqlite3"
        sqlite3.connect(str(path)).close()

        with pytest.raises(StoreUnavailableError, match="ItemTable"):
            WebKitSourceStore({"path": str(path)}).open()

    def test_iterate(self, db_path):
        with WebKitSourceStore({"path": str(db_path)}).open() as handle:
            records = list(handle.iterate())

        assert records[0] == RawRecord(b"rapid-username", "alice".encode("utf-16-le"))
        assert [r.key for r in records] == [
            b"rapid-username", b"rapid-user-changed", b"rapid-app-storage",
        ]

    def test_delete(self, db_path):
        with WebKitSourceStore({"path": str(db_path)}).open() as handle:
            handle.delete(b"rapid-username")
            handle.delete(b"not-there")

        assert _keys(db_path) == ["rapid-user-changed", "rapid-app-storage"]

    def test_migrate(self, db_path):
        source = WebKitSourceStore({"path": str(db_path)})
        target = MemoryTargetStore()

        assert source.codec_name == "webkit"
        assert MigrationEngine().migrate(source, target)

        assert target.data == {
            "rapid-username": '"alice"',
            "rapid-user-changed": '"false"',
            "rapid-app-storage": '"{\\"lang\\":\\"en\\"}"',
        }
        assert _keys(db_path) == []

    @pytest.mark.parametrize("dirname", ["a#b", "a?b", "100%"])
    def test_path_with_uri_characters(self, tmp_path, dirname):
        path = tmp_path / dirname / "localstorage.sqlite3"
        path.parent.mkdir()
        _create_database(path, [("rapid-username", "alice")])
        target = MemoryTargetStore()

        progress = MigrationEngine().run(WebKitSourceStore({"path": str(path)}), target)

        assert progress.ok
        assert not progress.source_missing
        assert target.get("rapid-username") == '"alice"'
        assert _keys(path) == []

    def test_null_key_skipped(self, db_path):
        conn = sqlite3.connect(str(db_path))
        with conn:
            conn.execute("INSERT INTO ItemTable (key, value) VALUES (NULL, ?)", (b"x\x00",))
        conn.close()

        with WebKitSourceStore({"path": str(db_path)}).open() as handle:
            records = list(handle.iterate())

        assert [r.key for r in records] == [
            b"rapid-username", b"rapid-user-changed", b"rapid-app-storage",
        ]

    def test_non_text_columns(self, tmp_path):
        path = tmp_path / "localstorage.sqlite3"
        conn = sqlite3.connect(str(path))
        with conn:
            conn.execute("CREATE TABLE ItemTable (key, value)")
            conn.execute("INSERT INTO ItemTable VALUES (?, ?)", (42, 7))
        conn.close()

        with WebKitSourceStore({"path": str(path)}).open() as handle:
            records = list(handle.iterate())

        assert records == [RawRecord(b"42", "7".encode("utf-16-le"))]
