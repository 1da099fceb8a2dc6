"""Local Storage migrator - move legacy WebView Local Storage into a preference store.

Hybrid apps that once kept their state in ``window.localStorage`` need that
state carried over when they switch to a native preference store. This package
reads the WebView's Local Storage database, decodes its records, converts each
value according to a fixed schema and writes the result to the preference
store in one transaction, then removes the migrated records from the source.

Modules:
    codec: Record framing of Chromium (LevelDB) and WebKit (SQLite) Local Storage
    schema: Known preference keys and their value kinds
    conversion: Value conversion to the stored representation
    migrator: The migration engine
    progress: Statistics of a migration pass
    stores: Source and target store implementations
    paths: Locating Local Storage on Android and iOS file systems
    settings: Configuration loading
    exceptions: Custom exceptions for error handling

Quick Example:

    ```python
    from localstorage_migrator import MigrationEngine
    from localstorage_migrator.stores import LevelDBSourceStore, PreferenceFileStore

    engine = MigrationEngine()
    if engine.migrate(
        LevelDBSourceStore({"path": "app_webview/Default/Local Storage/leveldb"}),
        PreferenceFileStore({"path": "shared_prefs/NativeStorage.json"}),
    ):
        print("Migration complete")
    ```
"""

from .codec import (
    LocalStorageCodec,
    LogicalEntry,
    RawRecord,
    RecordKind,
    WebKitLocalStorageCodec,
    classify,
    decode,
    encode,
)
from .conversion import TypeConverter, convert, parse_boolean, parse_number, quote, unquote
from .exceptions import (
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
from .migrator import MigrationEngine
from .progress import MigrationProgress
from .schema import (
    DEFAULT_CONVERSION_TABLE,
    DEVICE_KEY_PREFIX,
    USERNAME_KEY,
    SchemaRegistry,
    ValueKind,
    default_registry,
)
from .settings import MigrationSettings, load_settings

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Codec
    "RecordKind",
    "RawRecord",
    "LogicalEntry",
    "LocalStorageCodec",
    "WebKitLocalStorageCodec",
    "classify",
    "decode",
    "encode",
    # Conversion
    "TypeConverter",
    "convert",
    "quote",
    "unquote",
    "parse_boolean",
    "parse_number",
    # Schema
    "ValueKind",
    "SchemaRegistry",
    "DEFAULT_CONVERSION_TABLE",
    "DEVICE_KEY_PREFIX",
    "USERNAME_KEY",
    "default_registry",
    # Migration
    "MigrationEngine",
    "MigrationProgress",
    "MigrationSettings",
    "load_settings",
    # Exceptions
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
