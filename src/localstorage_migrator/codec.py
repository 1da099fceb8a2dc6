"""Record framing for legacy browser Local Storage databases.

Chromium-based WebViews keep ``window.localStorage`` in a LevelDB database.
Besides bookkeeping rows, every stored item is framed as::

    key   = b"_" + origin + b"\\x00" + b"\\x01" + logical key (UTF-8)
    value = type tag (1 byte) + logical value (UTF-8)

For the origins this package migrates, the scope prefix in front of the
logical key is always 25 bytes wide. Bookkeeping rows are either ``META*``
keys (one per origin) or the single ``VERSION`` key; they are never migrated.

WebKit-based WebViews use a SQLite ``ItemTable`` instead, where keys are plain
text and values are UTF-16LE blobs; ``WebKitLocalStorageCodec`` covers that
framing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .exceptions import MalformedRecordError

META_PREFIX = b"META"
VERSION_KEY = b"VERSION"

# Width of the origin scope prefix in front of every logical key.
ORIGIN_PREFIX_LENGTH = 25
# Width of the encoding tag in front of every logical value.
TYPE_TAG_LENGTH = 1

DEFAULT_ORIGIN = "https://localhost:8100"
DEFAULT_TYPE_TAG = b"\x01"


class RecordKind(Enum):
    """Structural kind of a raw Local Storage record."""

    META = "meta"
    VERSION = "version"
    DATA = "data"


@dataclass(frozen=True)
class RawRecord:
    """A key/value pair exactly as stored on disk."""

    key: bytes
    value: bytes


@dataclass(frozen=True)
class LogicalEntry:
    """A decoded (key, value) pair as the web application wrote it."""

    key: str
    value: str


class LocalStorageCodec:
    """Codec for the Chromium LevelDB Local Storage framing."""

    name = "chromium"

    def classify(self, raw_key: bytes) -> RecordKind:
        """Determine the kind of a raw record from its key alone.

        Args:
            raw_key: Raw key bytes

        Returns:
            ``META`` if the key starts with ``META``, ``VERSION`` if the key is
            exactly ``VERSION``, otherwise ``DATA``
        """
        if raw_key[: len(META_PREFIX)] == META_PREFIX:
            return RecordKind.META
        if raw_key == VERSION_KEY:
            return RecordKind.VERSION
        return RecordKind.DATA

    def decode(self, raw_key: bytes, raw_value: bytes) -> LogicalEntry:
        """Strip the storage prefixes from a data record.

        Args:
            raw_key: Raw key bytes of a ``DATA`` record
            raw_value: Raw value bytes of the same record

        Returns:
            The logical entry

        Raises:
            MalformedRecordError: If the record is shorter than the fixed
                prefixes or the remainder is not valid UTF-8
        """
        if len(raw_key) < ORIGIN_PREFIX_LENGTH:
            raise MalformedRecordError(
                raw_key,
                f"key is {len(raw_key)} bytes, shorter than the "
                f"{ORIGIN_PREFIX_LENGTH}-byte origin prefix",
            )
        if len(raw_value) < TYPE_TAG_LENGTH:
            raise MalformedRecordError(raw_key, "value is missing its type tag")

        try:
            key = raw_key[ORIGIN_PREFIX_LENGTH:].decode("utf-8")
            value = raw_value[TYPE_TAG_LENGTH:].decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRecordError(raw_key, f"not valid UTF-8 ({e.reason})") from e

        return LogicalEntry(key, value)

    def encode(
        self,
        key: str,
        value: str,
        origin: str = DEFAULT_ORIGIN,
        type_tag: bytes = DEFAULT_TYPE_TAG,
    ) -> RawRecord:
        """Frame a logical entry the way the WebView stores it.

        Args:
            key: Logical key
            value: Logical value
            origin: Origin that owns the entry
            type_tag: Single-byte value encoding tag

        Returns:
            The raw record

        Raises:
            ValueError: If the origin does not produce a 25-byte scope prefix
                or the type tag is not a single byte
        """
        prefix = b"_" + origin.encode("utf-8") + b"\x00\x01"
        if len(prefix) != ORIGIN_PREFIX_LENGTH:
            raise ValueError(
                f"Origin '{origin}' yields a {len(prefix)}-byte prefix, "
                f"expected {ORIGIN_PREFIX_LENGTH}"
            )
        if len(type_tag) != TYPE_TAG_LENGTH:
            raise ValueError(f"Type tag must be {TYPE_TAG_LENGTH} byte, got {len(type_tag)}")

        return RawRecord(prefix + key.encode("utf-8"), type_tag + value.encode("utf-8"))


class WebKitLocalStorageCodec:
    """Codec for the WebKit SQLite ``ItemTable`` framing.

    The table has no bookkeeping rows, so every record is ``DATA``.
    """

    name = "webkit"

    def classify(self, raw_key: bytes) -> RecordKind:
        return RecordKind.DATA

    def decode(self, raw_key: bytes, raw_value: bytes) -> LogicalEntry:
        try:
            key = raw_key.decode("utf-8")
            value = raw_value.decode("utf-16-le")
        except UnicodeDecodeError as e:
            raise MalformedRecordError(raw_key, f"cannot decode item ({e.reason})") from e
        return LogicalEntry(key, value)

    def encode(self, key: str, value: str) -> RawRecord:
        return RawRecord(key.encode("utf-8"), value.encode("utf-16-le"))


_default_codec = LocalStorageCodec()


def classify(raw_key: bytes) -> RecordKind:
    """Classify a raw key using the Chromium framing."""
    return _default_codec.classify(raw_key)


def decode(raw_key: bytes, raw_value: bytes) -> LogicalEntry:
    """Decode a data record using the Chromium framing."""
    return _default_codec.decode(raw_key, raw_value)


def encode(key: str, value: str, origin: str = DEFAULT_ORIGIN) -> RawRecord:
    """Encode a logical entry using the Chromium framing."""
    return _default_codec.encode(key, value, origin=origin)


CODECS = {
    LocalStorageCodec.name: LocalStorageCodec,
    WebKitLocalStorageCodec.name: WebKitLocalStorageCodec,
}


def get_codec(name: str) -> LocalStorageCodec | WebKitLocalStorageCodec:
    """Create the codec registered under ``name``.

    Raises:
        KeyError: If no codec has that name
    """
    try:
        return CODECS[name]()
    except KeyError:
        raise KeyError(f"Unknown codec '{name}' (expected one of: {', '.join(CODECS)})") from None
