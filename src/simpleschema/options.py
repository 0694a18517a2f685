"""Per-call options for the cast and params phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from simpleschema.exceptions import ConfigurationError


# camelCase spellings accepted by Options.from_dict
_ALIASES = {
    "onlyObjectValues": "only_object_values",
    "skipCast": "skip_cast",
    "skipParams": "skip_params",
}


def _as_names(value: Any, what: str) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset([value])
    if isinstance(value, Iterable):
        return frozenset(value)
    raise ConfigurationError(
        f"{what} must be a collection of names, got {type(value).__name__}",
        context={"option": what},
    )


@dataclass(frozen=True)
class Options:
    """Options read by ``SimpleSchema.cast``, ``apply_params`` and ``validate``.

    Attributes:
        only_object_values: Iterate over the record's own keys instead of the
            schema's fields. Fields absent from the record are then neither
            cast nor checked (useful for partial updates).
        skip_cast: Field names excluded from coercion.
        skip_params: Field name -> parameter names excluded for that field.
        deserialize: Direction for the ``serialize`` type (decode when True).
    """

    only_object_values: bool = False
    skip_cast: frozenset[str] = frozenset()
    skip_params: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    deserialize: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "skip_cast", _as_names(self.skip_cast, "skip_cast"))
        if self.skip_params is None:
            skip_params: Mapping[str, Any] = {}
        elif isinstance(self.skip_params, Mapping):
            skip_params = self.skip_params
        else:
            raise ConfigurationError(
                f"skip_params must be a mapping, got {type(self.skip_params).__name__}",
                context={"option": "skip_params"},
            )
        object.__setattr__(
            self,
            "skip_params",
            MappingProxyType(
                {name: _as_names(params, "skip_params") for name, params in skip_params.items()}
            ),
        )

    def skips_cast(self, field_name: str) -> bool:
        return field_name in self.skip_cast

    def skips_param(self, field_name: str, parameter_name: str) -> bool:
        return parameter_name in self.skip_params.get(field_name, ())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Options:
        """Create options from plain data.

        Both snake_case keys and their camelCase aliases are accepted.

        Args:
            data: Options mapping, or None for defaults

        Returns:
            Options instance

        Raises:
            ConfigurationError: If an unknown option name is present
        """
        if not data:
            return cls()

        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__:
                raise ConfigurationError(
                    f"Unknown option: {key}",
                    context={"option": key, "known": sorted(cls.__dataclass_fields__)},
                )
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def coerce(cls, options: Options | Mapping[str, Any] | None) -> Options:
        """Accept an Options instance, a mapping or None."""
        if isinstance(options, Options):
            return options
        return cls.from_dict(options)

    def to_dict(self) -> dict[str, Any]:
        return {
            "only_object_values": self.only_object_values,
            "skip_cast": sorted(self.skip_cast),
            "skip_params": {name: sorted(params) for name, params in self.skip_params.items()},
            "deserialize": self.deserialize,
        }
