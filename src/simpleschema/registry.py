"""Generic registry for named handlers.

Type handlers and parameter handlers are both looked up by name at dispatch
time. This module provides the shared, thread-safe mapping behind both
registries; ``simpleschema.types`` and ``simpleschema.params`` extend it.

Example:
    ```python
    from simpleschema.registry import Registry

    registry = Registry[Callable]("formatters")
    registry.register("upper", str.upper)
    registry.get("upper")("abc")
    # 'ABC'
    ```
"""

from __future__ import annotations

import threading
from typing import Dict, Generic, Iterator, List, Mapping, TypeVar

from simpleschema.exceptions import NotFoundError, OperationError

T = TypeVar("T")


class Registry(Generic[T]):
    """Thread-safe mapping of unique keys to items.

    Args:
        name: Name for this registry instance (used in error messages)
        items: Optional initial items
    """

    def __init__(self, name: str, items: Mapping[str, T] | None = None):
        self._name = name
        self._items: Dict[str, T] = dict(items or {})
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        """Get registry name."""
        return self._name

    def register(self, key: str, item: T, allow_overwrite: bool = False) -> None:
        """Register an item by key.

        Args:
            key: Unique identifier for the item
            item: Item to register
            allow_overwrite: Whether to allow overwriting existing items

        Raises:
            OperationError: If item already exists and allow_overwrite is False
        """
        with self._lock:
            if not allow_overwrite and key in self._items:
                raise OperationError(
                    f"Item '{key}' already registered in {self._name}",
                    context={"key": key, "registry": self._name},
                )
            self._items[key] = item

    def unregister(self, key: str) -> T:
        """Unregister and return an item by key.

        Raises:
            NotFoundError: If item not found
        """
        with self._lock:
            if key not in self._items:
                raise NotFoundError(
                    f"Item not found: {key}",
                    context={"key": key, "registry": self._name},
                )
            return self._items.pop(key)

    def get(self, key: str) -> T:
        """Get an item by key.

        Raises:
            NotFoundError: If item not found
        """
        with self._lock:
            if key not in self._items:
                raise NotFoundError(
                    f"Item not found: {key}",
                    context={
                        "key": key,
                        "registry": self._name,
                        "available_keys": list(self._items.keys()),
                    },
                )
            return self._items[key]

    def get_optional(self, key: str) -> T | None:
        """Get an item by key, returning None if not found."""
        with self._lock:
            return self._items.get(key)

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    def list_keys(self) -> List[str]:
        with self._lock:
            return list(self._items.keys())

    def copy(self) -> Dict[str, T]:
        """Return a shallow snapshot of the registered items."""
        with self._lock:
            return dict(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_keys())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, keys={self.list_keys()!r})"
