"""weights.py
================
Edge-weight resolution for weighted traversal and clustering.

A :class:`WeightConfig` says *where* a weight comes from; :func:`resolve_weight`
turns it into a number for one edge.  Precedence:

1. ``weight_fn(edge_payload, source_payload, target_payload)``
2. ``node_property`` read from the source, the target or their average
3. ``property`` read from the edge payload
4. constant ``1``

``invert`` maps ``w -> 1 / max(w, MIN_WEIGHT)`` (e.g. so that highly cited works
become *cheap* to walk through).  Every result is floored at
:data:`MIN_WEIGHT`, which keeps Dijkstra's non-negativity precondition intact
for zero-citation entities.  NaN and infinite weights are floored the same way.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from citegraph.algorithms._core import as_real, get_numeric_property

if TYPE_CHECKING:
    from citegraph.graph import Edge, Graph

__all__ = [
    "MIN_WEIGHT",
    "NodePropertyTarget",
    "WeightConfig",
    "resolve_weight",
    "edge_weight",
]

_LOG = logging.getLogger(__name__)

MIN_WEIGHT = 0.001

WeightFn = Callable[[Any, Any, Any], float]


class NodePropertyTarget(str, Enum):
    SOURCE = "source"
    TARGET = "target"
    AVERAGE = "average"


@dataclass(frozen=True)
class WeightConfig:
    """How to derive a traversal weight for an edge.

    Parameters
    ----------
    property
        Numeric field on the edge payload.
    node_property
        Numeric field on the endpoint payloads; wins over ``property``.
    node_property_target
        Which endpoint to read ``node_property`` from.
    node_default_value
        Used when ``node_property`` is missing or not numeric.
    weight_fn
        ``f(edge_payload, source_payload, target_payload) -> float``; wins over
        both declarative selectors.  A non-numeric return value falls back to
        ``default_weight``; a non-finite one is floored like any other.
    invert
        Use ``1 / w`` instead of ``w``.
    default_weight
        Used when ``property`` is missing or not numeric.
    """

    property: Optional[str] = None
    node_property: Optional[str] = None
    node_property_target: NodePropertyTarget = NodePropertyTarget.TARGET
    node_default_value: float = 1.0
    weight_fn: Optional[WeightFn] = None
    invert: bool = False
    default_weight: float = 1.0

    def __post_init__(self):
        # accept the plain strings "source" / "target" / "average"
        object.__setattr__(
            self, "node_property_target", NodePropertyTarget(self.node_property_target)
        )


def _node_value(payload: Any, config: WeightConfig) -> float:
    value = get_numeric_property(payload, config.node_property)
    return config.node_default_value if value is None else value


def _raw_weight(edge_payload: Any, source_payload: Any, target_payload: Any, config: WeightConfig) -> float:
    if config.weight_fn is not None:
        value = as_real(config.weight_fn(edge_payload, source_payload, target_payload))
        return config.default_weight if value is None else value

    if config.node_property is not None:
        target = config.node_property_target
        if target is NodePropertyTarget.SOURCE:
            return _node_value(source_payload, config)
        if target is NodePropertyTarget.TARGET:
            return _node_value(target_payload, config)
        return (_node_value(source_payload, config) + _node_value(target_payload, config)) / 2.0

    if config.property is not None:
        value = get_numeric_property(edge_payload, config.property)
        return config.default_weight if value is None else value

    return 1.0


def resolve_weight(
    edge_payload: Any,
    source_payload: Any,
    target_payload: Any,
    config: Optional[WeightConfig] = None,
) -> float:
    """Strictly positive weight of one edge under *config* (``None`` → 1)."""
    if config is None:
        return 1.0

    w = _raw_weight(edge_payload, source_payload, target_payload, config)
    if not math.isfinite(w):
        _LOG.debug("non-finite weight %r floored to %s", w, MIN_WEIGHT)
        return MIN_WEIGHT
    if config.invert:
        w = 1.0 / max(w, MIN_WEIGHT)
    return max(w, MIN_WEIGHT)


def edge_weight(graph: "Graph", edge: "Edge", config: Optional[WeightConfig] = None) -> float:
    """:func:`resolve_weight` with payloads looked up on *graph*."""
    if config is None:
        return 1.0
    return resolve_weight(
        edge.payload,
        graph.node_payload(edge.source),
        graph.node_payload(edge.target),
        config,
    )
