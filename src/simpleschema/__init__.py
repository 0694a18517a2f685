"""simpleschema - declarative record casting and validation.

A schema maps field names to definitions; ``validate`` casts each field to its
declared type, then applies the field's parameters in order and collects
per-field errors:

- **Types**: pluggable coercion handlers (``string``, ``number``, ``date``,
  ``array``, ``boolean``, ``id``, ``serialize``, ``none``, ``blob``)
- **Parameters**: pluggable constraint/transform handlers (``min``, ``max``,
  ``required``, ``default``, ``trim``, ``validator``, ``not_empty``,
  ``uppercase``, ``lowercase``)
- **Loader**: build schemas from YAML/JSON configuration

Example:
    ```python
    from simpleschema import SimpleSchema

    schema = SimpleSchema({"age": {"type": "number", "min": 10}})
    result = schema.validate({"age": "15"})
    result.record
    # {'age': 15}
    ```
"""

from simpleschema.codec import Codec, JsonPickleCodec
from simpleschema.exceptions import (
    CastError,
    ConfigurationError,
    InvalidValidatorError,
    NotFoundError,
    OperationError,
    SerializationError,
    SimpleSchemaError,
    UnknownTypeError,
)
from simpleschema.loader import SchemaFactory, load_schema, schema_factory
from simpleschema.options import Options
from simpleschema.params import ParamContext, ParamRegistry, ParamResult
from simpleschema.registry import Registry
from simpleschema.resolver import resolve_function
from simpleschema.result import MISSING, CastResult, FieldError, ParamsResult, ValidationResult
from simpleschema.schema import SimpleSchema
from simpleschema.types import TypeRegistry

__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",
    # Engine
    "SimpleSchema",
    "Options",
    # Results
    "MISSING",
    "FieldError",
    "CastResult",
    "ParamsResult",
    "ValidationResult",
    # Handlers
    "Registry",
    "TypeRegistry",
    "ParamRegistry",
    "ParamContext",
    "ParamResult",
    # Serialization
    "Codec",
    "JsonPickleCodec",
    # Configuration
    "SchemaFactory",
    "schema_factory",
    "load_schema",
    "resolve_function",
    # Exceptions
    "SimpleSchemaError",
    "ConfigurationError",
    "UnknownTypeError",
    "InvalidValidatorError",
    "CastError",
    "SerializationError",
    "NotFoundError",
    "OperationError",
]
