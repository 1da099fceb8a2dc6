"""Source and target store implementations."""

from __future__ import annotations

from typing import Any

from ..exceptions import StoreNotFoundError
from .base import BufferedEditor, SourceHandle, SourceStore, TargetEditor, TargetStore
from .leveldb import LevelDBSourceStore
from .memory import MemorySourceStore, MemoryTargetStore
from .preferences import PreferenceFileStore
from .webkit import WebKitSourceStore

SOURCE_STORES: dict[str, type[SourceStore]] = {
    "memory": MemorySourceStore,
    "leveldb": LevelDBSourceStore,
    "chromium": LevelDBSourceStore,  # Alias
    "webkit": WebKitSourceStore,
    "sqlite": WebKitSourceStore,  # Alias
}

TARGET_STORES: dict[str, type[TargetStore]] = {
    "memory": MemoryTargetStore,
    "preferences": PreferenceFileStore,
    "file": PreferenceFileStore,  # Alias
}


def create_source_store(store_type: str, config: dict[str, Any] | None = None) -> SourceStore:
    """Create a source store by type name.

    Args:
        store_type: One of the ``SOURCE_STORES`` names
        config: Store configuration (usually at least ``path``)

    Returns:
        The source store

    Raises:
        StoreNotFoundError: If the type is unknown
    """
    store_class = SOURCE_STORES.get(store_type.lower())
    if store_class is None:
        raise StoreNotFoundError(store_type, sorted(SOURCE_STORES))
    return store_class.from_config(config or {})


def create_target_store(store_type: str, config: dict[str, Any] | None = None) -> TargetStore:
    """Create a target store by type name.

    Args:
        store_type: One of the ``TARGET_STORES`` names
        config: Store configuration (usually at least ``path``)

    Returns:
        The target store

    Raises:
        StoreNotFoundError: If the type is unknown
    """
    store_class = TARGET_STORES.get(store_type.lower())
    if store_class is None:
        raise StoreNotFoundError(store_type, sorted(TARGET_STORES))
    return store_class.from_config(config or {})


__all__ = [
    "SourceStore",
    "SourceHandle",
    "TargetStore",
    "TargetEditor",
    "BufferedEditor",
    "MemorySourceStore",
    "MemoryTargetStore",
    "LevelDBSourceStore",
    "WebKitSourceStore",
    "PreferenceFileStore",
    "SOURCE_STORES",
    "TARGET_STORES",
    "create_source_store",
    "create_target_store",
]
