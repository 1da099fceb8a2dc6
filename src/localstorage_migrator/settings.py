"""Migration settings loaded from YAML/JSON files, dictionaries and the environment.

Example configuration:

```yaml
source:
  type: leveldb
  app_data_dir: /data/data/com.example.app
target:
  type: preferences
  path: shared_prefs/NativeStorage.json
guard_key: rapid-username
delete_source: true
schema:
  rapid-theme: string
```

Any value can be overridden with an environment variable:
``LSMIGRATE_<SECTION>__<ATTRIBUTE>`` for nested values (e.g.
``LSMIGRATE_SOURCE__PATH``) and ``LSMIGRATE_<ATTRIBUTE>`` for top-level ones
(e.g. ``LSMIGRATE_DELETE_SOURCE=false``).
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigurationError
from .migrator import MigrationEngine
from .paths import (
    chromium_local_storage_candidates,
    find_chromium_local_storage,
    find_webkit_local_storage,
)
from .schema import DEVICE_KEY_PREFIX, USERNAME_KEY, SchemaRegistry
from .stores import SOURCE_STORES, TARGET_STORES, create_source_store, create_target_store
from .stores.base import SourceStore, TargetStore

logger = logging.getLogger(__name__)

ENV_PREFIX = "LSMIGRATE_"
ENV_SEPARATOR = "__"

PATH_KEYS = ("path", "app_data_dir", "library_dir")


@dataclass
class MigrationSettings:
    """Everything needed to build and run a migration."""

    source: dict[str, Any] = field(default_factory=lambda: {"type": "leveldb"})
    target: dict[str, Any] = field(default_factory=lambda: {"type": "preferences"})
    guard_key: str = USERNAME_KEY
    delete_source: bool = True
    device_key_prefix: str | None = DEVICE_KEY_PREFIX
    schema: dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate settings."""
        sections = (
            ("source", SOURCE_STORES, "leveldb"),
            ("target", TARGET_STORES, "preferences"),
        )
        for section, registry, default_type in sections:
            config = getattr(self, section)
            if not isinstance(config, dict):
                raise ConfigurationError(section, "must be a mapping")
            config.setdefault("type", default_type)
            store_type = str(config.get("type", "")).lower()
            if store_type not in registry:
                raise ConfigurationError(
                    f"{section}.type",
                    f"unknown store type '{config.get('type')}' "
                    f"(expected one of: {', '.join(sorted(registry))})",
                )
        if not self.guard_key:
            raise ConfigurationError("guard_key", "must not be empty")
        if not isinstance(self.schema, dict):
            raise ConfigurationError("schema", "must be a mapping of key to kind")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationSettings:
        """Create settings from a dictionary, ignoring unknown keys."""
        known = {name for name in cls.__dataclass_fields__}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown settings: {', '.join(sorted(unknown))}")
        return cls(**{k: copy.deepcopy(v) for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": dict(self.source),
            "target": dict(self.target),
            "guard_key": self.guard_key,
            "delete_source": self.delete_source,
            "device_key_prefix": self.device_key_prefix,
            "schema": dict(self.schema),
            "log_level": self.log_level,
        }


def _parse_value(value: str) -> Any:
    """Parse an environment variable value to an appropriate type.

    Args:
        value: String value from environment

    Returns:
        Parsed value (bool, int, float, or original string)
    """
    if value.lower() in ["true", "yes", "1"]:
        return True
    elif value.lower() in ["false", "no", "0"]:
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def get_environment_overrides(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect ``LSMIGRATE_*`` overrides as a nested dictionary.

    Args:
        environ: Environment mapping (default: ``os.environ``)

    Returns:
        Overrides shaped like a settings dictionary
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        parts = [p.lower() for p in key[len(ENV_PREFIX):].split(ENV_SEPARATOR) if p]
        if not parts:
            continue

        # Paths and keys stay strings even when they look numeric
        typed = value if parts[-1] in PATH_KEYS + ("guard_key", "type") else _parse_value(value)

        node = overrides
        for part in parts[:-1]:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                break
        else:
            node[parts[-1]] = typed

    return overrides


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigurationError("config", f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        try:
            if suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ConfigurationError("config", f"Unsupported file format: {suffix}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError("config", f"Cannot parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("config", f"{path} must contain a mapping")

    # Relative store paths are relative to the configuration file
    for section in ("source", "target"):
        config = data.get(section)
        if isinstance(config, dict):
            for key in PATH_KEYS:
                if key in config and not Path(config[key]).is_absolute():
                    config[key] = str((path.parent / config[key]).resolve())
    return data


def load_settings(
    source: Union[str, Path, dict, None] = None,
    use_env: bool = True,
    environ: dict[str, str] | None = None,
) -> MigrationSettings:
    """Load migration settings.

    Args:
        source: YAML/JSON file path, settings dictionary, or None for defaults
        use_env: Apply ``LSMIGRATE_*`` environment overrides
        environ: Environment mapping used instead of ``os.environ``

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file is missing or the settings are invalid
    """
    if source is None:
        data: dict[str, Any] = {}
    elif isinstance(source, dict):
        data = copy.deepcopy(source)
    elif isinstance(source, (str, Path)):
        data = _load_file(Path(source).resolve())
    else:
        raise ConfigurationError("config", f"Invalid source type: {type(source)}")

    if use_env:
        data = _merge(data, get_environment_overrides(environ))

    return MigrationSettings.from_dict(data)


def build_registry(settings: MigrationSettings) -> SchemaRegistry:
    return SchemaRegistry.from_dict(settings.schema, device_key_prefix=settings.device_key_prefix)


def build_engine(settings: MigrationSettings) -> MigrationEngine:
    """Create the migration engine described by the settings."""
    return MigrationEngine(
        registry=build_registry(settings),
        guard_key=settings.guard_key,
        delete_source=settings.delete_source,
    )


def build_source(settings: MigrationSettings) -> SourceStore:
    """Create the source store, discovering its path if only a base directory is given.

    Raises:
        ConfigurationError: If no path can be determined
    """
    config = dict(settings.source)
    store_type = config.pop("type").lower()
    app_data_dir = config.pop("app_data_dir", None)
    library_dir = config.pop("library_dir", None)

    if "path" not in config and store_type != "memory":
        if app_data_dir:
            found = find_chromium_local_storage(app_data_dir)
            # A missing directory is reported by the store as nothing to migrate
            config["path"] = str(found or chromium_local_storage_candidates(app_data_dir)[0])
        elif library_dir:
            found = find_webkit_local_storage(
                library_dir,
                scheme=config.pop("scheme", "ionic"),
                host=config.pop("host", "app"),
                bundle_id=config.pop("bundle_id", None),
            )
            config["path"] = str(found or Path(library_dir) / "WebKit" / "WebsiteData")
        else:
            raise ConfigurationError("source.path", "a path, app_data_dir or library_dir is required")

    return create_source_store(store_type, config)


def build_target(settings: MigrationSettings) -> TargetStore:
    """Create the target store.

    Raises:
        ConfigurationError: If a file-backed target has no path
    """
    config = dict(settings.target)
    store_type = config.pop("type").lower()
    if "path" not in config and store_type != "memory":
        raise ConfigurationError("target.path", "is required")
    return create_target_store(store_type, config)
