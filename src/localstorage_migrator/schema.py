"""Schema of the preference keys carried over from Local Storage.

The table below lists every key the web application is known to write,
together with the logical kind of its value. One key family is matched by
prefix: device keys are suffixed per user, so any key starting with
``DEVICE_KEY_PREFIX`` is a string.

Keys not covered by either rule are still migrated, as strings.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from .exceptions import ConfigurationError


class ValueKind(Enum):
    """Declared logical type of a preference value."""

    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    OBJECT = "object"

    @classmethod
    def parse(cls, name: str | ValueKind) -> ValueKind:
        """Look up a kind by its name, case-insensitively.

        Args:
            name: Kind name (e.g. ``"boolean"``, ``"BOOLEAN"``) or a ValueKind

        Returns:
            The matching ValueKind

        Raises:
            ValueError: If the name is unknown
        """
        if isinstance(name, ValueKind):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            valid = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unknown value kind '{name}' (expected one of: {valid})") from None


USERNAME_KEY = "rapid-username"
DEVICE_KEY_PREFIX = "rapid-rma-cognito-device-key"

DEFAULT_CONVERSION_TABLE: Mapping[str, ValueKind] = MappingProxyType({
    USERNAME_KEY: ValueKind.STRING,
    "rapid-user-changed": ValueKind.BOOLEAN,
    "rapid-automatic-download": ValueKind.BOOLEAN,
    "rapid-app-paused-timestamp": ValueKind.NUMBER,
    "rapid-last-activity-timestamp": ValueKind.NUMBER,
    "rapid-app-storage": ValueKind.OBJECT,
    "rapid-notification-prompt-request": ValueKind.BOOLEAN,
    "rapid-notification-prompt-response": ValueKind.BOOLEAN,
    DEVICE_KEY_PREFIX: ValueKind.STRING,
})


class SchemaRegistry:
    """Immutable mapping from logical keys to declared value kinds.

    Build one per process (``default_registry()`` returns the shared default)
    and pass it to the migration engine.
    """

    __slots__ = ("_table", "_device_key_prefix")

    def __init__(
        self,
        table: Mapping[str, ValueKind] | None = None,
        device_key_prefix: str | None = DEVICE_KEY_PREFIX,
    ):
        """Initialize the registry.

        Args:
            table: Exact-match table; defaults to ``DEFAULT_CONVERSION_TABLE``
            device_key_prefix: Prefix of the string-typed device key family,
                or None to disable the prefix rule
        """
        source = DEFAULT_CONVERSION_TABLE if table is None else table
        object.__setattr__(self, "_table", MappingProxyType(dict(source)))
        object.__setattr__(self, "_device_key_prefix", device_key_prefix)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def from_dict(
        cls,
        overrides: Mapping[str, str | ValueKind],
        device_key_prefix: str | None = DEVICE_KEY_PREFIX,
        include_defaults: bool = True,
    ) -> SchemaRegistry:
        """Create a registry from configuration data.

        Args:
            overrides: Mapping of logical key to kind name
            device_key_prefix: Prefix of the device key family
            include_defaults: Merge the overrides over the default table

        Returns:
            New registry

        Raises:
            ConfigurationError: If a kind name is unknown
        """
        table = dict(DEFAULT_CONVERSION_TABLE) if include_defaults else {}
        for key, kind in overrides.items():
            try:
                table[key] = ValueKind.parse(kind)
            except ValueError as e:
                raise ConfigurationError(f"schema.{key}", str(e)) from e
        return cls(table, device_key_prefix=device_key_prefix)

    @property
    def table(self) -> Mapping[str, ValueKind]:
        """Read-only view of the exact-match table."""
        return self._table

    @property
    def device_key_prefix(self) -> str | None:
        return self._device_key_prefix

    def lookup(self, key: str) -> ValueKind | None:
        """Find the declared kind of a logical key.

        Args:
            key: Logical key

        Returns:
            The kind from the exact-match table, ``STRING`` for the device key
            family, or None if neither rule applies
        """
        kind = self._table.get(key)
        if kind is not None:
            return kind
        if self._device_key_prefix and key.startswith(self._device_key_prefix):
            return ValueKind.STRING
        return None

    def resolve(self, key: str) -> ValueKind:
        """Like ``lookup`` but falls back to ``STRING`` for unknown keys."""
        return self.lookup(key) or ValueKind.STRING

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return (
            f"SchemaRegistry(entries={len(self._table)}, "
            f"device_key_prefix={self._device_key_prefix!r})"
        )


_default_registry = SchemaRegistry()


def default_registry() -> SchemaRegistry:
    """Return the process-wide default registry."""
    return _default_registry
