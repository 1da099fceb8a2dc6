"""In-memory store implementations."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, TYPE_CHECKING

from ..codec import RawRecord
from ..exceptions import StoreOperationError, StoreUnavailableError
from .base import BufferedEditor, SourceHandle, SourceStore, TargetEditor, TargetStore

if TYPE_CHECKING:
    from collections.abc import Iterator


class MemorySourceHandle(SourceHandle):
    """Handle over a ``MemorySourceStore``'s records."""

    def __init__(self, store: MemorySourceStore):
        self._store = store
        self._closed = False

    def iterate(self) -> Iterator[RawRecord]:
        # Snapshot so deletions during a pass don't disturb the cursor
        for key, value in list(self._store._storage.items()):
            yield RawRecord(key, value)

    def delete(self, raw_key: bytes) -> None:
        if self._closed:
            raise StoreOperationError("delete", "handle is closed")
        if raw_key in self._store.fail_delete:
            raise StoreOperationError("delete", f"deletion of {raw_key!r} rejected")
        self._store._storage.pop(raw_key, None)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._store.open_handles -= 1


class MemorySourceStore(SourceStore):
    """Ordered in-memory source.

    Config keys:
        - records: Iterable of ``RawRecord`` or ``(key, value)`` byte pairs
        - available: Set False to behave like a missing store (default: True)
        - fail_delete: Raw keys whose deletion fails
        - fail_reopen: Set True to make every open after the first fail
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._storage: OrderedDict[bytes, bytes] = OrderedDict()
        for record in self.config.get("records", []):
            key, value = (record.key, record.value) if isinstance(record, RawRecord) else record
            self._storage[key] = value
        self.available = self.config.get("available", True)
        self.fail_delete = set(self.config.get("fail_delete", []))
        self.fail_reopen = self.config.get("fail_reopen", False)
        self.open_count = 0
        self.open_handles = 0

    @property
    def location(self) -> str:
        return "<memory>"

    @property
    def records(self) -> list[RawRecord]:
        """Current contents in order."""
        return [RawRecord(key, value) for key, value in self._storage.items()]

    def __contains__(self, raw_key: object) -> bool:
        return raw_key in self._storage

    def __len__(self) -> int:
        return len(self._storage)

    def put(self, raw_key: bytes, raw_value: bytes) -> None:
        self._storage[raw_key] = raw_value

    def open(self) -> MemorySourceHandle:
        if not self.available:
            raise StoreUnavailableError(self.location)
        if self.fail_reopen and self.open_count > 0:
            raise StoreUnavailableError(self.location, "Store could not be reopened")
        self.open_count += 1
        self.open_handles += 1
        return MemorySourceHandle(self)


class MemoryTargetStore(TargetStore):
    """In-memory preference store.

    Config keys:
        - initial_data: Mapping of key to stored string
        - fail_commit: Set True to make every commit fail
        - fail_after: Number of entries written before a commit fails,
          simulating a partially applied transaction
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._storage: dict[str, str] = dict(self.config.get("initial_data", {}))
        self.fail_commit = self.config.get("fail_commit", False)
        self.fail_after = self.config.get("fail_after")
        self.commit_count = 0
        self.open_editors = 0

    @property
    def location(self) -> str:
        return "<memory>"

    @property
    def data(self) -> dict[str, str]:
        """Copy of the stored preferences."""
        return dict(self._storage)

    def contains(self, key: str) -> bool:
        return key in self._storage

    def get(self, key: str) -> str | None:
        return self._storage.get(key)

    def edit(self) -> TargetEditor:
        self.open_editors += 1
        return _TrackedEditor(self)

    def _write_batch(self, staged: dict[str, str]) -> None:
        if self.fail_after is not None:
            for key in list(staged)[: self.fail_after]:
                self._storage[key] = staged[key]
            raise StoreOperationError("commit", f"failed after {self.fail_after} entries")
        if self.fail_commit:
            raise StoreOperationError("commit", "simulated commit failure")
        self._storage.update(staged)
        self.commit_count += 1


class _TrackedEditor(BufferedEditor):
    """Buffered editor that reports back when it is released."""

    def __init__(self, store: MemoryTargetStore):
        super().__init__(store._write_batch, store.location)
        self._store = store

    def close(self) -> None:
        if not self._closed:
            self._store.open_editors -= 1
        super().close()
