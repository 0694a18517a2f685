"""Built-in type handlers and the registry that dispatches on ``type``.

A type handler coerces one raw value for one field::

    handler(definition, value, field_name, options) -> value

- ``definition`` is the field's definition mapping (read it, never write it)
- ``value`` is the raw input value, or ``MISSING`` when the key is absent
- returning ``MISSING`` leaves the field absent from the output
- raising ``CastError`` marks the field as failed; ``CastError.value`` is the
  value stored for the field afterwards (``MISSING`` keeps the raw copy)

Custom handlers are registered by name on a ``TypeRegistry``:

    ```python
    def email_type(definition, value, field_name, options):
        text = str(value).strip().lower()
        if "@" not in text:
            raise CastError(f"Not an email: {value!r}", value=value)
        return text

    schema.register_type("email", email_type)
    ```
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Callable, Mapping

from simpleschema.codec import Codec, JsonPickleCodec
from simpleschema.exceptions import CastError, SerializationError, UnknownTypeError
from simpleschema.options import Options
from simpleschema.registry import Registry
from simpleschema.result import MISSING

TypeHandler = Callable[[Mapping[str, Any], Any, str, Options], Any]

DATETIME_FORMATS = [
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%SZ',
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S.%fZ',
    '%Y/%m/%d %H:%M:%S',
    '%Y/%m/%d',
    '%Y-%m-%d',
    '%m/%d/%Y',
    '%m/%d/%Y %H:%M:%S',
]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
# Decimal and exponent literals plus Infinity; no underscores, no "inf"/"nan"
_NUMBER = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)")


def none_type(definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
    """Pass the value through untouched."""
    return value


def blob_type(definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
    """Pass the value through, turning absent or None into ''."""
    if value is MISSING or value is None:
        return ''
    return value


def string_type(definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
    """Coerce to ``str``; absent or None becomes ''."""
    if value is MISSING or value is None:
        return ''
    if isinstance(value, str):
        return value
    try:
        return str(value)
    except Exception as e:
        # Objects with a broken __str__ are the only way to get here
        raise CastError(f"Cannot convert {type(value).__name__} to string: {e}") from e


def number_type(definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
    """Coerce to ``int`` or ``float``.

    Absent, None and blank strings become 0, booleans become 0/1. Integral
    strings give an ``int``, other numeric strings a ``float``. Numeric strings
    are decimal or exponent literals or "Infinity"; underscores and spellings
    such as "inf" or "nan" are rejected. Anything that does not convert, or
    converts to NaN, fails and keeps the original value.
    """
    if value is MISSING or value is None:
        return 0
    if isinstance(value, bool):
        return int(value)

    try:
        if isinstance(value, int):
            number: int | float = value
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return 0
            if not _NUMBER.fullmatch(text):
                raise ValueError(f"Not a numeric literal: {text!r}")
            try:
                number = int(text)
            except ValueError:
                number = float(text)
        else:
            number = float(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise CastError(f"Cannot convert {value!r} to number", value=value) from e

    if isinstance(number, float) and math.isnan(number):
        raise CastError(f"Value {value!r} is not a number", value=value)
    return number


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        raise ValueError("Cannot convert bool to datetime")
    if isinstance(value, (int, float)):
        # Unix timestamp
        return datetime.fromtimestamp(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty string cannot be converted to datetime")

        for fmt in DATETIME_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue

        return datetime.fromisoformat(text.replace('Z', '+00:00'))
    raise ValueError(f"Cannot convert {type(value).__name__} to datetime")


def date_type(definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
    """Coerce to ``datetime``; absent becomes the current time."""
    if value is MISSING:
        return datetime.now()
    try:
        return _parse_datetime(value)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise CastError(f"Cannot parse {value!r} as datetime", value=value) from e


def array_type(definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
    """Keep lists and tuples, wrap anything else in a one-element list."""
    if value is MISSING:
        return []
    if isinstance(value, (list, tuple)):
        return value
    return [value]


def boolean_type(definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
    """Coerce to ``bool``.

    Strings are compared against ``string_false_when`` (default "false") and
    ``string_true_when`` (default "true" or "on"); any other string is False.
    Non-strings use plain truthiness.
    """
    if isinstance(value, str):
        if value == (definition.get('string_false_when') or 'false'):
            return False
        true_when = definition.get('string_true_when')
        if true_when:
            return value == true_when
        return value in ('true', 'on')
    return bool(value)


def id_type(definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
    """Coerce to an integer id.

    Strings give their leading integer ("42abc" -> 42), finite floats are
    truncated. Anything else fails and keeps the original value.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    raise CastError(f"Cannot parse {value!r} as an id", value=value)


class SerializeType:
    """Encode a value to text, or decode it back when ``options.deserialize``.

    Args:
        codec: Codec to use (defaults to ``JsonPickleCodec``)
    """

    def __init__(self, codec: Codec | None = None):
        self.codec = codec if codec is not None else JsonPickleCodec()

    def __call__(self, definition: Mapping[str, Any], value: Any, field_name: str, options: Options) -> Any:
        if value is MISSING:
            return MISSING

        if options.deserialize:
            if not isinstance(value, str):
                raise CastError(
                    f"Cannot deserialize {type(value).__name__}, expected text", value=value
                )
            operation = self.codec.decode
        else:
            operation = self.codec.encode

        try:
            return operation(value)
        except SerializationError as e:
            raise CastError(str(e), value=value, context=e.context) from e


class TypeRegistry(Registry[TypeHandler]):
    """Registry of type handlers keyed by type name."""

    def __init__(self, handlers: Mapping[str, TypeHandler] | None = None):
        super().__init__("types", handlers)

    @classmethod
    def with_builtins(cls, codec: Codec | None = None) -> TypeRegistry:
        """Create a registry holding the built-in types.

        Args:
            codec: Codec for the ``serialize`` type

        Returns:
            New TypeRegistry
        """
        return cls({
            'none': none_type,
            'blob': blob_type,
            'string': string_type,
            'number': number_type,
            'date': date_type,
            'array': array_type,
            'boolean': boolean_type,
            'id': id_type,
            'serialize': SerializeType(codec),
        })

    def resolve(self, type_name: Any, field_name: str) -> TypeHandler:
        """Return the handler for a declared type.

        Raises:
            UnknownTypeError: If no handler is registered under ``type_name``
        """
        handler = self.get_optional(type_name) if isinstance(type_name, str) else None
        if handler is None:
            raise UnknownTypeError(field_name, type_name, self.list_keys())
        return handler
