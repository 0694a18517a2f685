"""Text codecs used by the ``serialize`` field type.

A codec turns an arbitrary value graph into text and back. The default codec
is built on jsonpickle, which records shared and cyclic references
(``py/id`` entries), so a structure that refers to itself survives a round
trip with its identity relationships intact.

Decoding reads text that comes from input records, so it only rebuilds plain
data (dicts, lists, tuples, sets, scalars and references between them) plus
instances of the classes the codec was explicitly given. Any other jsonpickle
tag (``py/reduce``, ``py/function``, ``py/type``, ``py/repr`` ...) is
rejected before jsonpickle sees the text.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Protocol, runtime_checkable

import jsonpickle

from simpleschema.exceptions import SerializationError

# Tags that only describe plain data
SAFE_TAGS = frozenset({"py/id", "py/tuple", "py/set"})

_KEY_PREFIX = "json://"


@runtime_checkable
class Codec(Protocol):
    """Reversible value <-> text codec.

    Both operations raise ``SerializationError`` on failure.
    """

    def encode(self, value: Any) -> str: ...

    def decode(self, text: str) -> Any: ...


class JsonPickleCodec:
    """Cycle-safe JSON codec backed by jsonpickle.

    Args:
        unpicklable: Keep the type information needed to rebuild tuples, sets,
            objects and references. With False, everything decodes as plain
            JSON data and references are lost.
        keys: Preserve non-string dictionary keys.
        classes: Classes whose instances may be rebuilt on decode. Text that
            names any other class is rejected.
    """

    format = "jsonpickle"

    def __init__(
        self,
        unpicklable: bool = True,
        keys: bool = False,
        classes: Iterable[type] | None = None,
    ):
        self.unpicklable = unpicklable
        self.keys = keys
        self.classes = tuple(classes or ())
        self._class_names = frozenset(
            f"{cls.__module__}.{cls.__qualname__}" for cls in self.classes
        )

    def encode(self, value: Any) -> str:
        try:
            return jsonpickle.encode(
                value, unpicklable=self.unpicklable, keys=self.keys, make_refs=True
            )
        except (TypeError, ValueError, RecursionError) as e:
            raise SerializationError(
                f"Serialization error ({self.format}): {e}",
                context={"format": self.format, "operation": "encode"},
            ) from e

    def decode(self, text: str) -> Any:
        if not isinstance(text, str):
            raise SerializationError(
                f"Serialization error ({self.format}): expected text, got {type(text).__name__}",
                context={"format": self.format, "operation": "decode"},
            )
        try:
            self._check_tags(json.loads(text))
            return jsonpickle.decode(text, keys=self.keys, classes=list(self.classes))
        except (TypeError, ValueError, KeyError, AttributeError, RecursionError) as e:
            # json.JSONDecodeError is a ValueError
            raise SerializationError(
                f"Serialization error ({self.format}): {e}",
                context={"format": self.format, "operation": "decode"},
            ) from e

    def _check_tags(self, data: Any) -> None:
        """Raise SerializationError if ``data`` holds a tag that is not allowed."""
        stack = [data]
        while stack:
            node = stack.pop()
            if isinstance(node, list):
                stack.extend(node)
            elif isinstance(node, dict):
                for key, child in node.items():
                    if self.keys and key.startswith(_KEY_PREFIX):
                        # Encoded non-string keys are decoded by jsonpickle too
                        stack.append(json.loads(key[len(_KEY_PREFIX):]))
                    elif key.startswith("py/") and not self._allows(key, node):
                        raise SerializationError(
                            f"Serialization error ({self.format}): tag '{key}' is not allowed",
                            context={"format": self.format, "operation": "decode", "tag": key},
                        )
                    stack.append(child)

    def _allows(self, tag: str, node: dict) -> bool:
        if tag in SAFE_TAGS:
            return True
        if tag in ("py/object", "py/state"):
            class_name = node.get("py/object")
            return isinstance(class_name, str) and class_name in self._class_names
        return False

    def __repr__(self) -> str:
        return (
            f"JsonPickleCodec(unpicklable={self.unpicklable}, keys={self.keys}, "
            f"classes={[cls.__qualname__ for cls in self.classes]})"
        )
