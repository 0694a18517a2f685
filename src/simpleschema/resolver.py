"""Resolve "module.path:function" strings to callables.

Schemas loaded from YAML or JSON cannot carry Python functions, so
``validator`` and ``default`` callables are referenced by import path
instead (see ``simpleschema.loader``).
"""

import importlib
import logging
from typing import Any, Callable

from simpleschema.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def resolve_function(func_ref: str) -> Callable[..., Any]:
    """Resolve a function reference string to a callable.

    Supports two formats:
    - "module.path:function_name" (preferred, explicit)
    - "module.path.function_name" (last segment is the function)

    Args:
        func_ref: Function reference string

    Returns:
        The resolved callable

    Raises:
        ConfigurationError: If the reference is malformed, the module cannot
            be imported, or the attribute is missing or not callable

    Example:
        ```python
        check = resolve_function("myapp.checks:is_even")
        ```
    """
    if not isinstance(func_ref, str) or not func_ref.strip():
        raise ConfigurationError(
            "Empty function reference. Expected format: 'module.path:function_name'",
            context={"reference": func_ref},
        )

    func_ref = func_ref.strip()
    if ":" in func_ref:
        module_path, _, func_name = func_ref.partition(":")
    else:
        module_path, _, func_name = func_ref.rpartition(".")

    if not module_path or not func_name:
        raise ConfigurationError(
            f"Invalid function reference: '{func_ref}'. "
            f"Expected format: 'module.path:function_name'",
            context={"reference": func_ref},
        )

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigurationError(
            f"Cannot import module '{module_path}' from reference '{func_ref}': {e}",
            context={"reference": func_ref, "module": module_path},
        ) from e

    func = getattr(module, func_name, None)
    if func is None:
        raise ConfigurationError(
            f"Function '{func_name}' not found in module '{module_path}'",
            context={"reference": func_ref, "module": module_path},
        )
    if not callable(func):
        raise ConfigurationError(
            f"'{func_name}' in module '{module_path}' is not callable "
            f"(got {type(func).__name__})",
            context={"reference": func_ref, "module": module_path},
        )

    logger.debug(f"Resolved function reference '{func_ref}'")
    return func
