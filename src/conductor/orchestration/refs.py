"""Callable references — ``'module:qualname'`` strings for serialisable callables.

Edge conditions, node executors and decision policies are plain Python
callables. To keep workflow definitions serialisable (YAML, JSON, a
persistence store) a callable is written out as an importable reference and
resolved again on load.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from typing import Any


def callable_ref(fn: Callable[..., Any] | None) -> str | None:
    """Return ``'module:qualname'`` for a named function, else ``None``.

    Lambdas, locals and ``None`` return ``None`` because they cannot be
    reliably re-imported.
    """
    if fn is None:
        return None
    module = getattr(fn, "__module__", None)
    qualname = getattr(fn, "__qualname__", None)
    if not module or not qualname:
        return None
    if "<lambda>" in qualname or "<locals>" in qualname:
        return None
    return f"{module}:{qualname}"


def resolve_callable_ref(ref: str) -> Callable[..., Any]:
    """Import and return the callable identified by ``'module:qualname'``.

    Raises:
        ValueError: If the ref has no ``':'`` separator.
        ImportError: If the module cannot be found.
        AttributeError: If the qualname path is invalid.
        TypeError: If the target is not callable.
    """
    module_path, _, attr_path = ref.partition(":")
    if not attr_path:
        raise ValueError(f"Invalid callable ref (missing ':'): {ref!r}")
    mod = importlib.import_module(module_path)
    obj: Any = mod
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    if not callable(obj):
        raise TypeError(f"{ref!r} resolved to non-callable: {type(obj)}")
    return obj
