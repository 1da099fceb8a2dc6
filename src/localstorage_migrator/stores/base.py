"""Store interfaces consumed by the migration engine.

A ``SourceStore`` is an ordered key-value store that can be opened, iterated
forward and have keys deleted. A ``TargetStore`` is a flat key-value store
written through a batched editor that is committed once.

Handles and editors are context managers; leaving the ``with`` block releases
them whether or not the body raised.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

from ..exceptions import StoreOperationError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from ..codec import RawRecord


logger = logging.getLogger(__name__)


class SourceHandle(ABC):
    """An open source store."""

    @abstractmethod
    def iterate(self) -> Iterator[RawRecord]:
        """Yield every record in the store's native order.

        Each call starts a fresh forward-only pass.
        """

    @abstractmethod
    def delete(self, raw_key: bytes) -> None:
        """Delete a record by its raw key.

        Deleting a key that is not present is a no-op.

        Raises:
            StoreOperationError: If the store rejects the deletion
        """

    @abstractmethod
    def close(self) -> None:
        """Release the handle. Safe to call more than once."""

    def __enter__(self) -> SourceHandle:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SourceStore(ABC):
    """Opaque ordered key-value source."""

    # Name of the codec that decodes this store's records
    codec_name = "chromium"

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}

    @classmethod
    def from_config(cls, config: dict) -> SourceStore:
        """Create from config dictionary."""
        return cls(config)

    @property
    def location(self) -> str:
        """Human-readable location of the store, for logging."""
        return str(self.config.get("path", f"<{type(self).__name__}>"))

    @abstractmethod
    def open(self) -> SourceHandle:
        """Open the store.

        Returns:
            A handle to the open store

        Raises:
            StoreUnavailableError: If the backing location is missing or is
                not a valid container
        """


class TargetEditor(ABC):
    """Batched write transaction against a target store."""

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Stage a write."""

    @abstractmethod
    def commit(self) -> bool:
        """Persist all staged writes at once.

        Returns:
            True if the writes were persisted
        """

    @abstractmethod
    def close(self) -> None:
        """Release the editor, discarding anything not committed."""

    def __enter__(self) -> TargetEditor:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class TargetStore(ABC):
    """Opaque flat key-value sink."""

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}

    @classmethod
    def from_config(cls, config: dict) -> TargetStore:
        """Create from config dictionary."""
        return cls(config)

    @property
    def location(self) -> str:
        return str(self.config.get("path", f"<{type(self).__name__}>"))

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Check whether a key is present."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Read a stored value, or None if absent."""

    @abstractmethod
    def edit(self) -> TargetEditor:
        """Begin a batched transaction."""


class BufferedEditor(TargetEditor):
    """Editor that stages writes in memory and hands them over on commit.

    Stores supply the ``write_batch`` callable that persists the staged
    mapping in one step and raises on failure.
    """

    def __init__(self, write_batch, location: str = "<target>"):
        self._write_batch = write_batch
        self._location = location
        self._staged: dict[str, str] = {}
        self._closed = False

    @property
    def staged(self) -> dict[str, str]:
        return dict(self._staged)

    def put(self, key: str, value: str) -> None:
        if self._closed:
            raise StoreOperationError("put", "editor is closed")
        self._staged[key] = value

    def commit(self) -> bool:
        if self._closed:
            raise StoreOperationError("commit", "editor is closed")
        try:
            self._write_batch(dict(self._staged))
        except (StoreOperationError, OSError) as e:
            logger.error(f"Commit of {len(self._staged)} entries to {self._location} failed: {e}")
            return False
        self._staged.clear()
        return True

    def close(self) -> None:
        if self._staged:
            logger.debug(f"Discarding {len(self._staged)} uncommitted entries for {self._location}")
        self._staged.clear()
        self._closed = True
