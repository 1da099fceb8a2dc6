"""Pytest configuration for localstorage_migrator tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from localstorage_migrator.codec import RawRecord, encode  # noqa: E402
from localstorage_migrator.stores import MemorySourceStore, MemoryTargetStore  # noqa: E402


META_RECORD = RawRecord(b"META:https://localhost:8100", b"\x08\x80\x01\x10\x1a")
VERSION_RECORD = RawRecord(b"VERSION", b"1")


@pytest.fixture
def meta_record():
    return META_RECORD


@pytest.fixture
def version_record():
    return VERSION_RECORD


@pytest.fixture
def app_records():
    """Records a typical app leaves behind, bookkeeping rows included."""
    return [
        VERSION_RECORD,
        META_RECORD,
        encode("rapid-username", "alice"),
        encode("rapid-user-changed", "true"),
        encode("rapid-last-activity-timestamp", "1700000000000"),
        encode("rapid-app-storage", '{"lang":"en"}'),
        encode("rapid-rma-cognito-device-key-alice", "us-east-1_abc"),
        encode("unmapped-key", "hello"),
    ]


@pytest.fixture
def source(app_records):
    """Memory source holding the typical app records."""
    return MemorySourceStore({"records": app_records})


@pytest.fixture
def target():
    """Empty memory preference store."""
    return MemoryTargetStore()
