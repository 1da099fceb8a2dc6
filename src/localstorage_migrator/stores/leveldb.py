"""LevelDB source store for Chromium WebView Local Storage.

Requires the ``plyvel`` binding (``pip install localstorage-migrator[leveldb]``).
The database is opened in place and never created: a missing directory means
the WebView never wrote any Local Storage.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, TYPE_CHECKING

from ..codec import RawRecord
from ..exceptions import StoreOperationError, StoreUnavailableError
from .base import SourceHandle, SourceStore

if TYPE_CHECKING:
    from collections.abc import Iterator


logger = logging.getLogger(__name__)


def _import_plyvel():
    try:
        import plyvel
    except ImportError as e:
        raise ImportError(
            "LevelDB support requires the plyvel package "
            "(pip install localstorage-migrator[leveldb])"
        ) from e
    return plyvel


class LevelDBSourceHandle(SourceHandle):
    """Open LevelDB database."""

    def __init__(self, db, path: str, error_type: type[Exception]):
        self._db = db
        self._path = path
        self._error_type = error_type

    def iterate(self) -> Iterator[RawRecord]:
        if self._db is None:
            raise StoreOperationError("iterate", f"{self._path} is closed")
        # The iterator holds a snapshot and must be closed before the database
        try:
            with self._db.iterator() as it:
                for key, value in it:
                    yield RawRecord(key, value)
        except self._error_type as e:
            raise StoreOperationError("iterate", str(e)) from e

    def delete(self, raw_key: bytes) -> None:
        if self._db is None:
            raise StoreOperationError("delete", f"{self._path} is closed")
        try:
            self._db.delete(raw_key)
        except self._error_type as e:
            raise StoreOperationError("delete", str(e)) from e

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
            self._db = None
            logger.debug(f"Closed LevelDB at {self._path}")


class LevelDBSourceStore(SourceStore):
    """Chromium Local Storage LevelDB directory.

    Config keys:
        - path: Path to the ``leveldb`` directory (required)
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        if "path" not in self.config:
            raise ValueError("LevelDBSourceStore requires a 'path'")
        self.path = Path(self.config["path"])

    def open(self) -> LevelDBSourceHandle:
        if not self.path.is_dir():
            raise StoreUnavailableError(
                str(self.path), f"'{self.path}' is not a directory or was not found"
            )

        plyvel = _import_plyvel()
        try:
            db = plyvel.DB(str(self.path), create_if_missing=False)
        except plyvel.Error as e:
            raise StoreUnavailableError(str(self.path), f"Cannot open LevelDB: {e}") from e

        logger.debug(f"Opened LevelDB at {self.path}")
        return LevelDBSourceHandle(db, str(self.path), plyvel.Error)
