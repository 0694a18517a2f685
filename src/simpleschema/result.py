"""Result types returned by the cast phase, the params phase and validate().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class _Missing:
    """Marker for an absent value (a key that is not in the record).

    ``None`` is a legitimate, present value, so absence needs its own marker.
    """

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict) -> _Missing:
        return self

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class FieldError:
    """A single per-field validation error."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass
class CastResult:
    """Output of the cast phase.

    ``failed_casts`` and ``failed_required`` are lists used as ordered sets:
    a field name appears at most once, in the order it was processed.
    """

    record: dict[str, Any]
    failed_casts: list[str] = field(default_factory=list)
    failed_required: list[str] = field(default_factory=list)

    def mark_failed_cast(self, field_name: str) -> None:
        if field_name not in self.failed_casts:
            self.failed_casts.append(field_name)

    def mark_failed_required(self, field_name: str) -> None:
        if field_name not in self.failed_required:
            self.failed_required.append(field_name)


@dataclass
class ParamsResult:
    """Output of the params phase."""

    record: dict[str, Any]
    errors: list[FieldError] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Final result of ``SimpleSchema.validate``.

    Truthy when no errors were collected, so ``if result:`` reads naturally.
    The record is always populated, even when there are errors.
    """

    record: dict[str, Any]
    errors: list[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        """Allow 'if result:' usage to check validity."""
        return self.valid

    def errors_by_field(self) -> dict[str, list[str]]:
        """Group error messages by field name, keeping production order.

        Returns:
            Mapping of field name to its error messages
        """
        grouped: dict[str, list[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.message)
        return grouped

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain data (record plus list of error dicts)."""
        return {
            "record": dict(self.record),
            "errors": [error.to_dict() for error in self.errors],
        }
