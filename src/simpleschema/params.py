"""Built-in parameter handlers and their registry.

Parameters run after casting, in the order they are declared on the field.
A handler receives a read-only ``ParamContext`` and returns a ``ParamResult``
(or None for "nothing to do"):

    ```python
    def even_param(ctx: ParamContext) -> ParamResult | None:
        if ctx.parameter_value and isinstance(ctx.value, int) and ctx.value % 2:
            return ParamResult.error(f"Field must be even: {ctx.field_name}")
        return None

    schema.register_param("even", even_param)
    schema = SimpleSchema({"n": {"type": "number", "even": True}})
    ```

The first handler that reports an error stops the remaining parameters of
that field. Other fields are unaffected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from simpleschema.exceptions import ConfigurationError, InvalidValidatorError
from simpleschema.options import Options
from simpleschema.registry import Registry
from simpleschema.result import MISSING

Validator = Callable[[Mapping[str, Any], Any, str], "str | None"]


@dataclass(frozen=True)
class ParamContext:
    """Everything a parameter handler may look at.

    Attributes:
        definition: The field's full definition
        field_name: Name of the field being processed
        parameter_name: Name of the parameter being applied
        parameter_value: Declared value of the parameter
        options: Options for this call
        record: Read-only view of the in-progress output record
        value: Current value of the field (``MISSING`` if absent)
        value_before_params: Field value as it came out of the cast phase
        record_before_cast: The original input record
        record_before_params: The record as it came out of the cast phase
    """

    definition: Mapping[str, Any]
    field_name: str
    parameter_name: str
    parameter_value: Any
    options: Options
    record: Mapping[str, Any]
    value: Any
    value_before_params: Any
    record_before_cast: Mapping[str, Any]
    record_before_params: Mapping[str, Any]

    @property
    def field_type(self) -> Any:
        return self.definition.get('type')

    @property
    def value_before_cast(self) -> Any:
        return self.record_before_cast.get(self.field_name, MISSING)

    @property
    def absent_before_cast(self) -> bool:
        return self.field_name not in self.record_before_cast


@dataclass(frozen=True)
class ParamResult:
    """What a parameter handler did.

    Attributes:
        value: Replacement value for the field, or ``MISSING`` to leave it
        errors: Error messages for the field
    """

    value: Any = MISSING
    errors: tuple[str, ...] = ()

    @classmethod
    def error(cls, message: str) -> ParamResult:
        return cls(errors=(message,))

    @classmethod
    def replace(cls, value: Any) -> ParamResult:
        return cls(value=value)

    @property
    def replaces_value(self) -> bool:
        return self.value is not MISSING


ParamHandler = Callable[[ParamContext], "ParamResult | None"]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# min and max are no-ops on falsy values: 0 and '' never trigger a range or
# length error.

def min_param(ctx: ParamContext) -> ParamResult | None:
    value = ctx.value
    if not value:
        return None
    if ctx.field_type == 'number' and _is_number(value) and value < ctx.parameter_value:
        return ParamResult.error(f"Field is too low: {ctx.field_name}")
    if ctx.field_type == 'string' and isinstance(value, str) and len(value) < ctx.parameter_value:
        return ParamResult.error(f"Field is too short: {ctx.field_name}")
    return None


def max_param(ctx: ParamContext) -> ParamResult | None:
    value = ctx.value
    if not value:
        return None
    if ctx.field_type == 'number' and _is_number(value) and value > ctx.parameter_value:
        return ParamResult.error(f"Field is too high: {ctx.field_name}")
    if ctx.field_type == 'string' and isinstance(value, str) and len(value) > ctx.parameter_value:
        return ParamResult.error(f"Field is too long: {ctx.field_name}")
    return None


def validator_param(ctx: ParamContext) -> ParamResult | None:
    """Run a user callback ``validator(record, value, field_name)``.

    A returned string is the error message; any other return means valid.

    Raises:
        InvalidValidatorError: If the declared value is not callable
    """
    check = ctx.parameter_value
    if not callable(check):
        raise InvalidValidatorError(ctx.field_name, check)

    message = check(ctx.record, ctx.record.get(ctx.field_name), ctx.field_name)
    if isinstance(message, str):
        return ParamResult.error(message)
    return None


def uppercase_param(ctx: ParamContext) -> ParamResult | None:
    if not isinstance(ctx.value, str):
        return None
    return ParamResult.replace(ctx.value.upper())


def lowercase_param(ctx: ParamContext) -> ParamResult | None:
    if not isinstance(ctx.value, str):
        return None
    return ParamResult.replace(ctx.value.lower())


def trim_param(ctx: ParamContext) -> ParamResult | None:
    """Truncate strings to the declared length (not whitespace stripping)."""
    if not isinstance(ctx.value, str):
        return None
    return ParamResult.replace(ctx.value[:ctx.parameter_value])


def default_param(ctx: ParamContext) -> ParamResult | None:
    """Fill in a value when the field was absent from the input.

    A callable default is invoked with no arguments.
    """
    if not ctx.absent_before_cast:
        return None
    default = ctx.parameter_value
    return ParamResult.replace(default() if callable(default) else default)


def required_param(ctx: ParamContext) -> ParamResult | None:
    if ctx.absent_before_cast and ctx.parameter_value:
        return ParamResult.error(f"Field required: {ctx.field_name}")
    return None


def not_empty_param(ctx: ParamContext) -> ParamResult | None:
    """Reject a present input value whose string form is empty.

    Lists are never considered empty here.
    """
    if not ctx.parameter_value or ctx.absent_before_cast or isinstance(ctx.value, list):
        return None
    before = ctx.value_before_cast
    text = '' if before is None else str(before)
    if text == '':
        return ParamResult.error(f"Field cannot be empty: {ctx.field_name}")
    return None


class ParamRegistry(Registry[ParamHandler]):
    """Registry of parameter handlers keyed by parameter name.

    Names with no handler (including ``type`` and type options such as
    ``string_true_when``) are simply not dispatched.
    """

    RESERVED = frozenset({'type'})

    def __init__(self, handlers: Mapping[str, ParamHandler] | None = None):
        super().__init__("params", handlers)

    @classmethod
    def with_builtins(cls) -> ParamRegistry:
        return cls({
            'min': min_param,
            'max': max_param,
            'validator': validator_param,
            'uppercase': uppercase_param,
            'lowercase': lowercase_param,
            'trim': trim_param,
            'default': default_param,
            'required': required_param,
            'not_empty': not_empty_param,
        })

    def register(self, key: str, item: ParamHandler, allow_overwrite: bool = False) -> None:
        if key in self.RESERVED:
            raise ConfigurationError(
                f"'{key}' is reserved and cannot be used as a parameter name",
                context={"key": key},
            )
        super().register(key, item, allow_overwrite=allow_overwrite)

    def resolve(self, parameter_name: str) -> ParamHandler | None:
        """Return the handler for a parameter, or None if it is not dispatched."""
        if parameter_name in self.RESERVED:
            return None
        return self.get_optional(parameter_name)
