"""SQLite source store for WebKit WebView Local Storage.

WebKit keeps each origin's Local Storage in a SQLite file with a single
``ItemTable(key TEXT, value BLOB)`` table. Values are UTF-16LE text, decoded
by ``WebKitLocalStorageCodec``.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, TYPE_CHECKING

from ..codec import RawRecord
from ..exceptions import StoreOperationError, StoreUnavailableError
from .base import SourceHandle, SourceStore

if TYPE_CHECKING:
    from collections.abc import Iterator


logger = logging.getLogger(__name__)

DEFAULT_TABLE = "ItemTable"


class WebKitSourceHandle(SourceHandle):
    """Open WebKit Local Storage database."""

    def __init__(self, conn: sqlite3.Connection, table: str, path: str):
        self._conn: sqlite3.Connection | None = conn
        self._table = table
        self._path = path

    def iterate(self) -> Iterator[RawRecord]:
        if self._conn is None:
            raise StoreOperationError("iterate", f"{self._path} is closed")
        try:
            cursor = self._conn.execute(f'SELECT key, value FROM "{self._table}" ORDER BY rowid')
            rows = cursor.fetchall()
            cursor.close()
        except sqlite3.Error as e:
            raise StoreOperationError("iterate", str(e)) from e

        for key, value in rows:
            if key is None:
                logger.warning(f"Skipping row with NULL key in {self._path}")
                continue
            if isinstance(key, (bytes, memoryview)):
                raw_key = bytes(key)
            else:
                raw_key = str(key).encode("utf-8")
            if isinstance(value, (bytes, memoryview)):
                raw_value = bytes(value)
            else:
                raw_value = ("" if value is None else str(value)).encode("utf-16-le")
            yield RawRecord(raw_key, raw_value)

    def delete(self, raw_key: bytes) -> None:
        if self._conn is None:
            raise StoreOperationError("delete", f"{self._path} is closed")
        try:
            with self._conn:
                self._conn.execute(
                    f'DELETE FROM "{self._table}" WHERE key = ?', (raw_key.decode("utf-8"),)
                )
        except (sqlite3.Error, UnicodeDecodeError) as e:
            raise StoreOperationError("delete", str(e)) from e

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug(f"Closed WebKit Local Storage at {self._path}")


class WebKitSourceStore(SourceStore):
    """WebKit ``localstorage.sqlite3`` file.

    Config keys:
        - path: Path to the SQLite file (required)
        - table: Item table name (default: "ItemTable")
        - timeout: Connection timeout in seconds (default: 5.0)
    """

    codec_name = "webkit"

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        if "path" not in self.config:
            raise ValueError("WebKitSourceStore requires a 'path'")
        self.path = Path(self.config["path"])
        self.table = self.config.get("table", DEFAULT_TABLE)
        self.timeout = self.config.get("timeout", 5.0)

    def open(self) -> WebKitSourceHandle:
        if not self.path.is_file():
            raise StoreUnavailableError(str(self.path), f"'{self.path}' is not a file or was not found")

        try:
            # mode=rw never creates a new database file
            uri = self.path.resolve().as_uri() + "?mode=rw"
            conn = sqlite3.connect(uri, uri=True, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StoreUnavailableError(str(self.path), f"Cannot open Local Storage: {e}") from e

        try:
            conn.execute(f'SELECT 1 FROM "{self.table}" LIMIT 1')
        except sqlite3.Error as e:
            conn.close()
            raise StoreUnavailableError(str(self.path), f"No usable '{self.table}' table: {e}") from e

        logger.debug(f"Opened WebKit Local Storage at {self.path}")
        return WebKitSourceHandle(conn, self.table, str(self.path))
