"""_core.py
================
Foundational helpers shared across engine modules.

* :func:`get_property`          – field lookup on a mapping or object payload
* :func:`as_real`               – real number check shared by payloads and callbacks
* :func:`get_numeric_property`  – property lookup, but only finite real numbers
* :func:`node_sort_key`         – lexical node-id order used for tie-breaking
* :func:`plogp`                 – ``p * log2(p)`` with ``0 log 0 = 0``

Payloads come from the caller's domain model, so nothing here assumes a
schema beyond "named field, possibly absent".
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from numbers import Real
from typing import Any, Optional

__all__ = ["as_real", "get_property", "get_numeric_property", "node_sort_key", "plogp"]

_MISSING = object()


def _lookup(payload: Any, name: str) -> Any:
    if payload is None:
        return _MISSING
    if isinstance(payload, Mapping):
        return payload.get(name, _MISSING)
    return getattr(payload, name, _MISSING)


def get_property(payload: Any, name: str, default: Any = None) -> Any:
    """Read *name* off *payload*; dotted names walk nested payloads."""
    value = payload
    for part in name.split("."):
        value = _lookup(value, part)
        if value is _MISSING:
            return default
    return value


def as_real(value: Any) -> Optional[float]:
    """``float(value)`` for real numbers, else ``None``.

    Booleans are rejected even though ``bool`` subclasses ``int``.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    return float(value)


def get_numeric_property(payload: Any, name: str) -> Optional[float]:
    """Finite real value of *name*, or ``None`` when absent or not numeric."""
    value = as_real(get_property(payload, name))
    if value is None or not math.isfinite(value):
        return None
    return value


def node_sort_key(node: Any) -> str:
    return str(node)


def plogp(p: float) -> float:
    return p * math.log2(p) if p > 0 else 0.0
