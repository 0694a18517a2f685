"""Build schemas from configuration data or files.

Configuration shape (YAML shown, JSON works the same)::

    name: user
    options:
      only_object_values: false
    fields:
      name:
        type: string
        trim: 50
      age:
        type: number
        min: 10
        validator_ref: "myapp.checks:is_adult"

``fields`` may also be a list of definitions carrying a ``name`` key. Any
``<param>_ref`` key is resolved with ``resolve_function`` and stored under
``<param>`` at the same position, so callables such as ``validator`` and
``default`` can be referenced from plain data.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml  # type: ignore[import-untyped]

from simpleschema.codec import Codec
from simpleschema.exceptions import ConfigurationError, NotFoundError
from simpleschema.resolver import resolve_function
from simpleschema.schema import SimpleSchema

logger = logging.getLogger(__name__)

REF_SUFFIX = "_ref"


class SchemaFactory:
    """Factory for creating ``SimpleSchema`` instances from configuration.

    Configuration Options:
        name (str): Schema name, used in log messages only
        fields (dict | list): Field definitions
        options (dict): Default options (see ``Options.from_dict``)

    Args:
        codec: Codec handed to every schema this factory creates
    """

    def __init__(self, codec: Codec | None = None):
        self.codec = codec

    def create(self, **config: Any) -> SimpleSchema:
        """Create a SimpleSchema from configuration.

        Args:
            **config: Schema configuration

        Returns:
            SimpleSchema instance

        Raises:
            ConfigurationError: If ``fields`` is missing or malformed, or a
                function reference cannot be resolved
        """
        name = config.get("name", "unnamed_schema")
        fields = config.get("fields")
        if fields is None:
            raise ConfigurationError(
                f"Schema '{name}' has no 'fields' section", context={"schema": name}
            )

        logger.info(f"Creating schema: {name}")

        structure = self._build_structure(name, fields)
        return SimpleSchema(structure, config.get("options"), codec=self.codec)

    def _build_structure(self, name: str, fields: Any) -> Dict[str, Dict[str, Any]]:
        if isinstance(fields, Mapping):
            items = list(fields.items())
        elif isinstance(fields, list):
            items = []
            for field_config in fields:
                if not isinstance(field_config, Mapping) or not field_config.get("name"):
                    logger.warning(f"Field configuration missing 'name' in schema '{name}', skipping")
                    continue
                definition = {k: v for k, v in field_config.items() if k != "name"}
                items.append((field_config["name"], definition))
        else:
            raise ConfigurationError(
                f"'fields' must be a mapping or a list, got {type(fields).__name__}",
                context={"schema": name},
            )

        structure: Dict[str, Dict[str, Any]] = {}
        for field_name, definition in items:
            if not isinstance(definition, Mapping):
                raise ConfigurationError(
                    f"Definition of field '{field_name}' must be a mapping",
                    context={"schema": name, "field": field_name},
                )
            structure[field_name] = self._resolve_refs(definition)
        return structure

    def _resolve_refs(self, definition: Mapping[str, Any]) -> Dict[str, Any]:
        resolved: Dict[str, Any] = {}
        for key, value in definition.items():
            if key.endswith(REF_SUFFIX) and len(key) > len(REF_SUFFIX):
                resolved[key[:-len(REF_SUFFIX)]] = resolve_function(value)
            else:
                resolved[key] = value
        return resolved


def read_config_file(path: str | Path) -> Dict[str, Any]:
    """Read a YAML or JSON configuration file.

    Raises:
        NotFoundError: If the file does not exist
        ConfigurationError: If the suffix is not supported or the content is
            not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise NotFoundError(f"Schema file not found: {path}", context={"path": str(path)})

    suffix = path.suffix.lower()
    with open(path) as f:
        if suffix in [".yaml", ".yml"]:
            data = yaml.safe_load(f) or {}
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ConfigurationError(
                f"Unsupported file format: {suffix}", context={"path": str(path)}
            )

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Schema file must contain a mapping, got {type(data).__name__}",
            context={"path": str(path)},
        )
    return data


def load_schema(path: str | Path, codec: Codec | None = None) -> SimpleSchema:
    """Load a SimpleSchema from a YAML or JSON file.

    Args:
        path: File path (.yaml, .yml or .json)
        codec: Optional codec for the ``serialize`` type

    Returns:
        SimpleSchema instance
    """
    config = read_config_file(path)
    config.setdefault("name", Path(path).stem)
    return SchemaFactory(codec=codec).create(**config)


schema_factory = SchemaFactory()
