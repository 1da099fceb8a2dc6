"""Tests for custom exceptions."""

import pytest

from localstorage_migrator.exceptions import (
    CleanupFailureError,
    CommitFailureError,
    ConfigurationError,
    MalformedRecordError,
    MigratorError,
    StoreNotFoundError,
    StoreOperationError,
    StoreUnavailableError,
    ValueConversionError,
)


class TestExceptions:
    """Test exception messages and context."""

    def test_base_context(self):
        error = MigratorError("boom", context={"a": 1})
        assert str(error) == "boom"
        assert error.context == {"a": 1}
        assert MigratorError("boom").context == {}

    @pytest.mark.parametrize("error", [
        StoreUnavailableError("/tmp/x"),
        StoreNotFoundError("redis"),
        StoreOperationError("delete", "locked"),
        MalformedRecordError(b"_x", "short"),
        ValueConversionError("abc", "number", "not numeric"),
        CommitFailureError("disk full"),
        CleanupFailureError("locked"),
        ConfigurationError("source.path", "is required"),
    ])
    def test_hierarchy(self, error):
        assert isinstance(error, MigratorError)

    def test_store_unavailable(self):
        error = StoreUnavailableError("/data/leveldb")
        assert error.path == "/data/leveldb"
        assert "/data/leveldb" in str(error)
        assert str(StoreUnavailableError("/x", "custom")) == "custom"

    def test_store_not_found(self):
        error = StoreNotFoundError("redis", ["leveldb", "memory"])
        assert str(error) == "Store type 'redis' not found. Available store types: leveldb, memory"
        assert error.context["available"] == ["leveldb", "memory"]

    def test_store_operation(self):
        error = StoreOperationError("delete", "locked")
        assert error.operation == "delete"
        assert str(error) == "Store operation 'delete' failed: locked"

    def test_malformed_record_truncates_key(self):
        error = MalformedRecordError(b"k" * 100, "short")
        assert error.raw_key == b"k" * 100
        assert "k" * 41 not in str(error)

    def test_commit_and_cleanup_context(self):
        assert CommitFailureError("x", staged=4).context == {"staged": 4}
        assert CleanupFailureError("x", deleted=2).deleted == 2

    def test_configuration(self):
        error = ConfigurationError("guard_key", "must not be empty")
        assert error.parameter == "guard_key"
        assert str(error) == "Configuration error for 'guard_key': must not be empty"
