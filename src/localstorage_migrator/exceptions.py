"""Exception hierarchy for the localstorage_migrator package.

Every error carries a human-readable message plus an optional ``context``
dictionary with structured details (keys, paths, phases), so callers and
log handlers can report failures without parsing strings.

The migration engine distinguishes two severities:

- Per-record errors (``MalformedRecordError``, ``ValueConversionError``) are
  contained: the offending entry is skipped and the pass continues.
- Per-phase errors (``CommitFailureError``, ``CleanupFailureError``) abort the
  remainder of their phase and turn the overall result into a failure.

Example:
    ```python
    from localstorage_migrator.exceptions import MigratorError

    try:
        handle = source.open()
    except MigratorError as e:
        logger.error(f"Error: {e}")
        if e.context:
            logger.error(f"Context: {e.context}")
    ```
"""

from __future__ import annotations

from typing import Any


class MigratorError(Exception):
    """Base exception for the localstorage_migrator package.

    Attributes:
        context: Dictionary containing contextual information about the error
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        """Initialize the exception with optional context.

        Args:
            message: Error message
            context: Optional context dictionary
        """
        super().__init__(message)
        self.context = context or {}


class StoreUnavailableError(MigratorError):
    """Raised when a store's backing location is missing or not a container.

    For a source store this means there is nothing to migrate, which the
    engine treats as success.
    """

    def __init__(self, path: str, message: str | None = None):
        self.path = path
        super().__init__(
            message or f"Store location '{path}' is not available",
            context={"path": path},
        )


class StoreNotFoundError(MigratorError):
    """Raised when a requested store adapter is not available."""

    def __init__(self, store_type: str, available: list | None = None):
        self.store_type = store_type
        self.available = available or []
        message = f"Store type '{store_type}' not found"
        if self.available:
            message += f". Available store types: {', '.join(self.available)}"
        super().__init__(message, context={"store_type": store_type, "available": self.available})


class StoreOperationError(MigratorError):
    """Raised when a store operation (read, delete, write) fails."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(
            f"Store operation '{operation}' failed: {message}", context={"operation": operation}
        )


class MalformedRecordError(MigratorError):
    """Raised when a data record is too short or cannot be decoded."""

    def __init__(self, raw_key: bytes, message: str):
        self.raw_key = raw_key
        super().__init__(
            f"Malformed record {raw_key[:40]!r}: {message}", context={"raw_key": raw_key}
        )


class ValueConversionError(MigratorError):
    """Raised when a logical value cannot be converted to its declared kind."""

    def __init__(self, value: str, kind: str, message: str):
        self.value = value
        self.kind = kind
        super().__init__(
            f"Cannot convert {value[:56]!r} to {kind}: {message}",
            context={"kind": kind},
        )


class CommitFailureError(MigratorError):
    """Raised when the target store transaction fails to persist."""

    def __init__(self, message: str, staged: int = 0):
        self.staged = staged
        super().__init__(f"Commit failed: {message}", context={"staged": staged})


class CleanupFailureError(MigratorError):
    """Raised when migrated records cannot be removed from the source store.

    Target writes that were already committed are not rolled back.
    """

    def __init__(self, message: str, deleted: int = 0):
        self.deleted = deleted
        super().__init__(f"Cleanup failed: {message}", context={"deleted": deleted})


class ConfigurationError(MigratorError):
    """Raised when settings or schema configuration is invalid."""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(
            f"Configuration error for '{parameter}': {message}", context={"parameter": parameter}
        )


__all__ = [
    "MigratorError",
    "StoreUnavailableError",
    "StoreNotFoundError",
    "StoreOperationError",
    "MalformedRecordError",
    "ValueConversionError",
    "CommitFailureError",
    "CleanupFailureError",
    "ConfigurationError",
]
