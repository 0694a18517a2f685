"""The validation engine: cast phase, params phase and the validate() pipeline.

A schema maps field names to definitions. The reserved ``type`` key picks the
type handler; every other key names a parameter handler, applied in
declaration order after casting:

    ```python
    from simpleschema import SimpleSchema

    schema = SimpleSchema({
        "name": {"type": "string", "trim": 50},
        "surname": {"type": "string", "required": True, "trim": 10},
        "age": {"type": "number", "min": 10, "max": 20},
    })

    result = schema.validate({"name": "Tony", "age": "15"})
    result.record
    # {'name': 'Tony', 'age': 15}
    result.errors
    # [FieldError(field='surname', message='Field required: surname')]
    ```
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, MutableMapping

from simpleschema.codec import Codec
from simpleschema.exceptions import CastError
from simpleschema.options import Options
from simpleschema.params import ParamContext, ParamHandler, ParamRegistry
from simpleschema.result import MISSING, CastResult, FieldError, ParamsResult, ValidationResult
from simpleschema.types import TypeHandler, TypeRegistry

logger = logging.getLogger(__name__)

CAST_ERROR_MESSAGE = "Error during casting"


class SimpleSchema:
    """Two-phase record validator driven by a field-definition mapping.

    Args:
        structure: Field name -> field definition. Never modified.
        options: Default options, used when a call passes none. Options given
            to a call replace these entirely (no merging).
        types: Type handler registry (defaults to the built-ins)
        params: Parameter handler registry (defaults to the built-ins)
        codec: Codec for the built-in ``serialize`` type, ignored when
            ``types`` is given
    """

    def __init__(
        self,
        structure: Mapping[str, Mapping[str, Any]],
        options: Options | Mapping[str, Any] | None = None,
        *,
        types: TypeRegistry | None = None,
        params: ParamRegistry | None = None,
        codec: Codec | None = None,
    ):
        self.structure = structure
        self.options = Options.coerce(options)
        self.types = types if types is not None else TypeRegistry.with_builtins(codec)
        self.params = params if params is not None else ParamRegistry.with_builtins()

    def register_type(self, name: str, handler: TypeHandler, override: bool = False) -> None:
        """Register a custom type handler under ``name``."""
        self.types.register(name, handler, allow_overwrite=override)

    def register_param(self, name: str, handler: ParamHandler, override: bool = False) -> None:
        """Register a custom parameter handler under ``name``."""
        self.params.register(name, handler, allow_overwrite=override)

    def _resolve_options(self, options: Options | Mapping[str, Any] | None) -> Options:
        if options is None:
            return self.options
        return Options.coerce(options)

    def cast(
        self,
        record: Mapping[str, Any],
        options: Options | Mapping[str, Any] | None = None,
    ) -> CastResult:
        """Coerce every field of a record to its declared type.

        Present values are first copied verbatim, then replaced by the type
        handler's result. Absent fields are skipped; absent required fields
        are also noted in ``failed_required`` so the params phase only runs
        the required check on them.

        Args:
            record: Input record
            options: Options for this call

        Returns:
            CastResult with the cast record, failed casts and failed required fields

        Raises:
            UnknownTypeError: If a field declares a type with no handler
        """
        options = self._resolve_options(options)
        result = CastResult(record={})
        field_names = list(record.keys() if options.only_object_values else self.structure.keys())

        for field_name in field_names:
            definition = self.structure.get(field_name)
            value = record.get(field_name, MISSING)

            if value is not MISSING:
                result.record[field_name] = value

            if definition is None and options.only_object_values:
                continue
            definition = definition or {}

            if options.skips_cast(field_name):
                continue

            if value is MISSING:
                if definition.get('required'):
                    result.mark_failed_required(field_name)
                continue

            handler = self.types.resolve(definition.get('type'), field_name)
            try:
                cast_value = handler(definition, value, field_name, options)
            except CastError as e:
                logger.debug(f"Cast failed for field '{field_name}': {e}")
                result.mark_failed_cast(field_name)
                if e.value is not MISSING:
                    result.record[field_name] = e.value
                continue

            if cast_value is MISSING:
                result.record.pop(field_name, None)
            else:
                result.record[field_name] = cast_value

        return result

    def apply_params(
        self,
        cast_result: CastResult,
        record_before_cast: Mapping[str, Any],
        options: Options | Mapping[str, Any] | None = None,
    ) -> ParamsResult:
        """Run parameter handlers over a cast record.

        Fields that failed casting are skipped. Fields that are required but
        absent only get the ``required`` check, and other absent fields only
        get ``default``. For every present field the parameters run in
        declaration order and the first error stops the rest of that field's
        parameters.

        Args:
            cast_result: Output of ``cast``
            record_before_cast: The original input record
            options: Options for this call

        Returns:
            ParamsResult with the final record and the errors found

        Raises:
            InvalidValidatorError: If a ``validator`` value is not callable
        """
        options = self._resolve_options(options)
        errors: list[FieldError] = []

        for key in record_before_cast:
            if key not in self.structure:
                errors.append(FieldError(key, f"Field not allowed: {key}"))

        record_before_params = MappingProxyType(dict(cast_result.record))
        record: dict[str, Any] = dict(cast_result.record)
        record_view = MappingProxyType(record)
        original = MappingProxyType(record_before_cast)
        failed_casts = set(cast_result.failed_casts)
        failed_required = set(cast_result.failed_required)

        for field_name, definition in self.structure.items():
            if options.only_object_values and field_name not in record_before_params:
                continue
            if field_name in failed_casts:
                continue

            definition = definition or {}
            if field_name in failed_required:
                parameters: Mapping[str, Any] = {'required': True}
            elif field_name not in original:
                parameters = self._absent_field_parameters(definition)
            else:
                parameters = definition
            value_before_params = record_before_params.get(field_name, MISSING)

            for parameter_name, parameter_value in parameters.items():
                if options.skips_param(field_name, parameter_name):
                    continue

                handler = self.params.resolve(parameter_name)
                if handler is None:
                    continue

                outcome = handler(ParamContext(
                    definition=definition,
                    field_name=field_name,
                    parameter_name=parameter_name,
                    parameter_value=parameter_value,
                    options=options,
                    record=record_view,
                    value=record.get(field_name, MISSING),
                    value_before_params=value_before_params,
                    record_before_cast=original,
                    record_before_params=record_before_params,
                ))
                if outcome is None:
                    continue

                if outcome.replaces_value:
                    record[field_name] = outcome.value

                if outcome.errors:
                    errors.extend(FieldError(field_name, message) for message in outcome.errors)
                    logger.debug(
                        f"Field '{field_name}' failed '{parameter_name}', skipping its remaining parameters"
                    )
                    break

        return ParamsResult(record=record, errors=errors)

    @staticmethod
    def _absent_field_parameters(definition: Mapping[str, Any]) -> Mapping[str, Any]:
        # Fields missing from the input only get a default, or the required
        # check when casting was skipped for them
        if definition.get('required'):
            return {'required': definition['required']}
        if 'default' in definition:
            return {'default': definition['default']}
        return {}

    def validate(
        self,
        record: Mapping[str, Any],
        options: Options | Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        """Cast a record, apply parameters and collect every error.

        One "Error during casting" error is added per failed cast, after
        all parameter errors.

        Args:
            record: Input record (not modified)
            options: Options for this call; replaces the schema's defaults

        Returns:
            ValidationResult with the final record and ordered errors

        Raises:
            ConfigurationError: If the schema is malformed (unknown type,
                non-callable validator)
        """
        options = self._resolve_options(options)
        cast_result = self.cast(record, options)
        params_result = self.apply_params(cast_result, record, options)

        errors = list(params_result.errors)
        errors.extend(FieldError(field_name, CAST_ERROR_MESSAGE) for field_name in cast_result.failed_casts)
        return ValidationResult(record=params_result.record, errors=errors)

    def validate_many(
        self,
        records: Iterable[Mapping[str, Any]],
        options: Options | Mapping[str, Any] | None = None,
    ) -> list[ValidationResult]:
        """Validate several records with the same options."""
        options = self._resolve_options(options)
        return [self.validate(record, options) for record in records]

    def cleanup(self, record: MutableMapping[str, Any], parameter_name: str) -> dict[str, Any]:
        """Remove fields whose definition sets ``parameter_name`` to a truthy value.

        Useful to strip e.g. ``protected`` fields before handing a record out.

        Args:
            record: Record to strip, modified in place
            parameter_name: Flag parameter to look for

        Returns:
            The removed fields
        """
        removed: dict[str, Any] = {}
        for key in list(record.keys()):
            definition = self.structure.get(key)
            if definition and definition.get(parameter_name):
                removed[key] = record.pop(key)
        return removed

    def __repr__(self) -> str:
        return f"SimpleSchema(fields={list(self.structure.keys())!r})"
