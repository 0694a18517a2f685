"""Exception hierarchy for simpleschema.

Two channels are kept apart:

- Configuration errors (``ConfigurationError`` and subclasses) mean the schema
  itself is malformed. They are raised synchronously and abort the call.
- Per-field validation problems are never raised; they are collected as
  ``FieldError`` records in the ``ValidationResult``.

``CastError`` sits between the two: type handlers raise it to signal a failed
coercion, and the cast engine turns it into a failed-cast entry.

Example:
    ```python
    from simpleschema.exceptions import SimpleSchemaError, UnknownTypeError

    try:
        schema.validate(record)
    except UnknownTypeError as e:
        logger.error(f"Bad schema: {e}")
        logger.error(f"Known types: {e.context['available_types']}")
    ```
"""

from __future__ import annotations

from typing import Any, Dict

from simpleschema.result import MISSING


class SimpleSchemaError(Exception):
    """Base exception for all simpleschema errors.

    Attributes:
        context: Dictionary containing contextual information about the error
        details: Alias for context

    Args:
        message: Human-readable error message
        context: Optional dictionary with error context (field names, types, etc.)
        details: Alternative to context (both are supported)
    """

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(message)
        # Details takes precedence if both are provided
        self.context = details or context or {}
        self.details = self.context


class ConfigurationError(SimpleSchemaError):
    """Raised when a schema definition or options object is malformed."""

    pass


class UnknownTypeError(ConfigurationError):
    """Raised when a field declares a type with no registered handler."""

    def __init__(self, field_name: str, type_name: Any, available: list[str] | None = None):
        self.field_name = field_name
        self.type_name = type_name
        self.available = available or []
        super().__init__(
            f"No casting function found, type probably wrong: {type_name}",
            context={
                "field": field_name,
                "type": type_name,
                "available_types": self.available,
            },
        )


class InvalidValidatorError(ConfigurationError):
    """Raised when a ``validator`` parameter is not callable."""

    def __init__(self, field_name: str, found: Any):
        self.field_name = field_name
        super().__init__(
            f"Validator function needs to be a function, found: {type(found).__name__}",
            context={"field": field_name, "found": type(found).__name__},
        )


class CastError(SimpleSchemaError):
    """Raised by a type handler when a value cannot be coerced.

    Attributes:
        value: Value to store for the field after the failure, or ``MISSING``
            to keep whatever the verbatim copy already put there
    """

    def __init__(self, message: str, value: Any = MISSING, context: Dict[str, Any] | None = None):
        super().__init__(message, context=context)
        self.value = value


class SerializationError(SimpleSchemaError):
    """Raised when a codec cannot encode or decode a value."""

    pass


class NotFoundError(SimpleSchemaError):
    """Raised when a registry lookup finds nothing."""

    pass


class OperationError(SimpleSchemaError):
    """Raised when a registry operation is not allowed (e.g. duplicate key)."""

    pass


__all__ = [
    "SimpleSchemaError",
    "ConfigurationError",
    "UnknownTypeError",
    "InvalidValidatorError",
    "CastError",
    "SerializationError",
    "NotFoundError",
    "OperationError",
]
