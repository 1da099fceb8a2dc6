"""Migration of legacy Local Storage into a preference store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .codec import RecordKind, get_codec
from .conversion import TypeConverter
from .exceptions import (
    CleanupFailureError,
    CommitFailureError,
    MalformedRecordError,
    StoreOperationError,
    StoreUnavailableError,
    ValueConversionError,
)
from .progress import MigrationProgress
from .schema import USERNAME_KEY, ValueKind, default_registry

if TYPE_CHECKING:
    from .codec import LocalStorageCodec, LogicalEntry, WebKitLocalStorageCodec
    from .schema import SchemaRegistry
    from .stores.base import SourceStore, TargetStore


logger = logging.getLogger(__name__)

# Logged values are cut to this many characters
LOG_VALUE_LENGTH = 56


class MigrationEngine:
    """One-shot migrator from a Local Storage source to a preference target.

    A pass reads every source record, writes the decoded data entries to the
    target in a single committed batch and then deletes them from the source.
    The presence of the guard key in the target marks the migration as done;
    later calls are no-ops.

    Per-record problems (truncated records, unconvertible values) skip the
    record and are reported as warnings. A failed commit or cleanup fails the
    pass without undoing anything already persisted, so running the pass
    again is always safe.

    Example:
        ```python
        from localstorage_migrator import MigrationEngine
        from localstorage_migrator.stores import LevelDBSourceStore, PreferenceFileStore

        engine = MigrationEngine()
        ok = engine.migrate(
            LevelDBSourceStore({"path": "app_webview/Default/Local Storage/leveldb"}),
            PreferenceFileStore({"path": "shared_prefs/NativeStorage.json"}),
        )
        ```
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        converter: TypeConverter | None = None,
        codec: LocalStorageCodec | WebKitLocalStorageCodec | None = None,
        guard_key: str = USERNAME_KEY,
        delete_source: bool = True,
    ):
        """Initialize the engine.

        Args:
            registry: Schema used to classify keys (default: the built-in table)
            converter: Value converter
            codec: Record codec; by default chosen from the source store
            guard_key: Target key whose presence marks the migration as done
            delete_source: Remove migrated records from the source afterwards
        """
        self.registry = registry or default_registry()
        self.converter = converter or TypeConverter()
        self.codec = codec
        self.guard_key = guard_key
        self.delete_source = delete_source

    def has_migrated(self, target: TargetStore) -> bool:
        """Check whether the target already holds migrated data."""
        return target.contains(self.guard_key)

    def migrate(self, source: SourceStore, target: TargetStore) -> bool:
        """Run the migration once.

        Args:
            source: Legacy Local Storage
            target: Preference store

        Returns:
            True if the migration completed, was already done, or there was
            nothing to migrate
        """
        return self.run(source, target).ok

    def run(self, source: SourceStore, target: TargetStore) -> MigrationProgress:
        """Run the migration once and report what happened.

        Args:
            source: Legacy Local Storage
            target: Preference store

        Returns:
            MigrationProgress with the pass statistics
        """
        progress = MigrationProgress().start()

        logger.debug("Checking if migration has already run")
        try:
            migrated = self.has_migrated(target)
        except (StoreOperationError, OSError) as e:
            logger.error(f"Cannot read {target.location}: {e}")
            progress.record_error("guard", e)
            return progress.finish()

        if migrated:
            logger.debug(f"'{self.guard_key}' present in {target.location}; skipping")
            progress.already_migrated = True
            return progress.finish()

        logger.info(f"Starting migration from {source.location} to {target.location}")
        codec = self.codec or get_codec(source.codec_name)

        try:
            entries = self._read_source(source, codec, progress)
        except (StoreOperationError, OSError) as e:
            logger.error(f"Reading {source.location} failed: {e}")
            progress.record_error("read", e)
            return progress.finish()

        if entries is None:
            return progress.finish()

        try:
            migrated_keys = self._write_target(target, entries, progress)
        except CommitFailureError as e:
            logger.error(f"Migration failed: {e}")
            progress.record_error("commit", e)
            return progress.finish()

        if self.delete_source and migrated_keys:
            try:
                self._clean_source(source, migrated_keys, progress)
            except CleanupFailureError as e:
                logger.error(f"Migrated data committed but cleanup failed: {e}")
                progress.record_error("cleanup", e)
                return progress.finish()

        progress.finish()
        if progress.warnings:
            logger.warning(f"Completed with {len(progress.warnings)} skipped records")
        logger.info(
            f"Migration completed; {progress.migrated} migrated, "
            f"{progress.deleted} removed from source"
        )
        return progress

    def _read_source(
        self,
        source: SourceStore,
        codec: LocalStorageCodec | WebKitLocalStorageCodec,
        progress: MigrationProgress,
    ) -> list[tuple[bytes, LogicalEntry]] | None:
        """Read and decode every data record.

        Returns:
            (raw key, entry) pairs in source order, or None if the source
            does not exist
        """
        try:
            handle = source.open()
        except StoreUnavailableError as e:
            logger.warning(f"{e}; nothing to migrate")
            progress.source_missing = True
            return None

        entries: list[tuple[bytes, LogicalEntry]] = []
        with handle:
            for record in handle.iterate():
                kind = codec.classify(record.key)
                if kind is not RecordKind.DATA:
                    progress.record_passthrough()
                    logger.debug(f"\tKeeping {kind.value} record {record.key[:40]!r}")
                    continue

                try:
                    entry = codec.decode(record.key, record.value)
                except MalformedRecordError as e:
                    progress.record_malformed(str(e))
                    logger.warning(f"\tSkipping record: {e}")
                    continue

                logger.debug(
                    f"\tReading key: {entry.key} value: {entry.value[:LOG_VALUE_LENGTH]}"
                )
                entries.append((record.key, entry))

        logger.debug(f"{len(entries)} data records read")
        return entries

    def _write_target(
        self,
        target: TargetStore,
        entries: list[tuple[bytes, LogicalEntry]],
        progress: MigrationProgress,
    ) -> list[bytes]:
        """Stage every entry and commit them in one batch.

        Returns:
            Raw source keys of the committed entries

        Raises:
            CommitFailureError: If the batch was not persisted
        """
        migrated_keys: list[bytes] = []
        with target.edit() as editor:
            for raw_key, entry in entries:
                kind = self.registry.lookup(entry.key)
                if kind is None:
                    logger.debug(f"\tKey '{entry.key}' not in schema; migrating as string")
                    kind = ValueKind.STRING

                try:
                    value = self.converter.convert(entry.value, kind)
                except ValueConversionError as e:
                    progress.record_conversion_failure(entry.key, str(e))
                    logger.warning(f"\tSkipping key '{entry.key}': {e}")
                    continue

                editor.put(entry.key, value)
                progress.record_staged()
                migrated_keys.append(raw_key)
                logger.debug(
                    f"\tWriting key: {entry.key} ({kind.value}) value: {value[:LOG_VALUE_LENGTH]}"
                )

            try:
                committed = editor.commit()
            except (StoreOperationError, OSError) as e:
                raise CommitFailureError(str(e), staged=len(migrated_keys)) from e
            if not committed:
                raise CommitFailureError(
                    f"{target.location} rejected the transaction", staged=len(migrated_keys)
                )

        progress.committed = True
        progress.record_migrated(len(migrated_keys))
        logger.debug(f"{len(migrated_keys)} entries committed")
        return migrated_keys

    def _clean_source(
        self, source: SourceStore, raw_keys: list[bytes], progress: MigrationProgress
    ) -> None:
        """Delete migrated records from the source.

        Raises:
            CleanupFailureError: If the source cannot be reopened or a
                deletion fails
        """
        try:
            handle = source.open()
        except (StoreUnavailableError, OSError) as e:
            raise CleanupFailureError(f"cannot reopen {source.location}: {e}") from e

        with handle:
            for raw_key in raw_keys:
                try:
                    handle.delete(raw_key)
                except (StoreOperationError, OSError) as e:
                    raise CleanupFailureError(str(e), deleted=progress.deleted) from e
                progress.record_deleted()

        logger.debug(f"{progress.deleted} records removed from {source.location}")
