"""Value conversion for migrated preferences.

Local Storage only ever held strings. The preference store on the other side
is read through a ``getItem``/``setItem`` bridge that runs ``JSON.parse`` on
every value, so a bare ``alice`` would fail to parse while ``"alice"`` yields
the original string. Every value is therefore written as a quoted string
literal, whatever its declared kind:

    >>> quote('he said "hi"')
    '"he said \\\\"hi\\\\""'

Native number and boolean parsing is still available for callers that want
typed values, but the migration write path never uses it.
"""

from __future__ import annotations

import logging

import numpy as np

from .exceptions import ValueConversionError
from .schema import ValueKind

logger = logging.getLogger(__name__)

QUOTE = '"'
ESCAPED_QUOTE = '\\"'


def quote(raw: str) -> str:
    """Escape embedded quotes and wrap the value in quotes.

    Args:
        raw: Logical value

    Returns:
        The quoted string literal
    """
    return QUOTE + raw.replace(QUOTE, ESCAPED_QUOTE) + QUOTE


def unquote(stored: str) -> str:
    """Reverse ``quote``.

    Args:
        stored: A value produced by ``quote``

    Returns:
        The original logical value

    Raises:
        ValueConversionError: If the value is not wrapped in quotes
    """
    if len(stored) < 2 or not (stored.startswith(QUOTE) and stored.endswith(QUOTE)):
        raise ValueConversionError(stored, "quoted string", "value is not wrapped in quotes")
    # Every quote in the body was escaped by quote(), so each '\\"' is one escape.
    return stored[1:-1].replace(ESCAPED_QUOTE, QUOTE)


def parse_boolean(raw: str) -> bool:
    """Parse a boolean leniently.

    Only a case-insensitive ``"true"`` is True. Anything else, including
    ``"yes"``, ``"1"``, ``" true "`` and the empty string, is False. This mirrors the legacy
    parser the values were written against.
    """
    return raw.lower() == "true"


def parse_number(raw: str) -> float:
    """Parse a value as a 32-bit float.

    Args:
        raw: Logical value

    Returns:
        The value rounded to single precision

    Raises:
        ValueConversionError: If the value is not numeric
    """
    text = raw.strip()
    if not text:
        raise ValueConversionError(raw, ValueKind.NUMBER.value, "empty string")
    try:
        return float(np.float32(float(text)))
    except ValueError as e:
        raise ValueConversionError(raw, ValueKind.NUMBER.value, str(e)) from e


class TypeConverter:
    """Convert logical values to their stored representation."""

    def convert(self, raw: str, kind: ValueKind) -> str:
        """Normalize a logical value for the preference store.

        All kinds serialize to a quoted string literal, so this never raises.

        Args:
            raw: Logical value
            kind: Declared kind of the value

        Returns:
            The value to store
        """
        if kind is ValueKind.BOOLEAN and raw.lower() not in ("true", "false"):
            logger.debug(f"Boolean value {raw[:56]!r} is not a literal; lenient readers see False")
        return quote(raw)

    def to_native(self, raw: str, kind: ValueKind) -> str | bool | float:
        """Convert a logical value to a native Python value.

        Args:
            raw: Logical value
            kind: Declared kind of the value

        Returns:
            A float for ``NUMBER``, a bool for ``BOOLEAN``, the unchanged
            string otherwise

        Raises:
            ValueConversionError: If a ``NUMBER`` value is not numeric
        """
        if kind is ValueKind.NUMBER:
            return parse_number(raw)
        if kind is ValueKind.BOOLEAN:
            return parse_boolean(raw)
        return raw

    def restore(self, stored: str) -> str:
        """Recover the logical value from a stored one."""
        return unquote(stored)


_default_converter = TypeConverter()


def convert(raw: str, kind: ValueKind) -> str:
    """Convert a logical value with the default converter."""
    return _default_converter.convert(raw, kind)
