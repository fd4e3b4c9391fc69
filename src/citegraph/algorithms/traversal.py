"""traversal.py
================
Edge admissibility for traversal-based engines.

:class:`TraversalOptions` bundles every filter a walk may apply; all of them
AND together.  :func:`admissible_steps` is the single place where they are
evaluated, so the shortest-path engine and the ego-network extractor expand
exactly the same edges.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, Optional, Tuple

from citegraph.algorithms._core import get_property
from citegraph.graph import Direction, Edge, Graph

__all__ = ["TraversalOptions", "admissible_steps", "edge_passes_filter", "validate_options"]

_COLLECTIONS = (set, frozenset, list, tuple)


def _as_frozenset(values: Any) -> Optional[FrozenSet[Any]]:
    if values is None:
        return None
    if isinstance(values, (str, bytes)):
        return frozenset([values])
    return frozenset(values)


@dataclass(frozen=True)
class TraversalOptions:
    """Filters applied before an edge is considered for expansion.

    Parameters
    ----------
    direction
        ``"outbound"`` follows edges source→target, ``"inbound"`` target→source,
        ``"both"`` either way.  Ignored on undirected graphs.
    edge_types, node_types
        Allow-lists matched against the payload ``type`` field.  The node
        allow-list applies to the node being entered, never to the start.
    max_depth
        Hop ceiling, independent of weights.  ``None`` means unbounded.
    directed
        ``None`` follows the graph; ``False`` walks a directed graph as if it
        were undirected.
    edge_filter
        ``{field: predicate}`` on the edge payload.  A predicate is a callable,
        a collection (membership) or a scalar (equality).  Excluded from the hash.
    """

    direction: Direction = Direction.OUTBOUND
    edge_types: Optional[FrozenSet[Any]] = None
    node_types: Optional[FrozenSet[Any]] = None
    max_depth: Optional[int] = None
    directed: Optional[bool] = None
    edge_filter: Dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "direction", Direction(self.direction))
        object.__setattr__(self, "edge_types", _as_frozenset(self.edge_types))
        object.__setattr__(self, "node_types", _as_frozenset(self.node_types))


def validate_options(options: TraversalOptions) -> Optional[str]:
    """Problem description for malformed options, else ``None``."""
    if options.max_depth is not None:
        if isinstance(options.max_depth, bool) or not isinstance(options.max_depth, int):
            return f"max_depth must be an integer, got {options.max_depth!r}"
        if options.max_depth < 0:
            return f"max_depth must be >= 0, got {options.max_depth}"
    return None


def _matches(value: Any, predicate: Any) -> bool:
    if callable(predicate):
        return bool(predicate(value))
    if isinstance(predicate, _COLLECTIONS):
        return value in predicate
    return value == predicate


def edge_passes_filter(edge: Edge, options: TraversalOptions) -> bool:
    if options.edge_types is not None and edge.type not in options.edge_types:
        return False
    for name, predicate in options.edge_filter.items():
        if not _matches(get_property(edge.payload, name), predicate):
            return False
    return True


def admissible_steps(
    graph: Graph, node: Any, options: TraversalOptions
) -> Iterator[Tuple[Any, Edge]]:
    """Yield ``(neighbor, edge)`` for every edge a walk may take out of *node*.

    *edge* is reported with its stored orientation, so weights read the real
    source and target even on inbound steps.
    """
    if not graph.directed:
        steps = ((e.target, e) for e in graph.out_edges(node))
    elif options.directed is False or options.direction is Direction.BOTH:
        steps = _chain_undirected(graph, node)
    elif options.direction is Direction.OUTBOUND:
        steps = ((e.target, e) for e in graph.out_edges(node))
    elif options.direction is Direction.INBOUND:
        steps = ((e.source, e) for e in graph.in_edges(node))
    else:
        raise ValueError(f"unknown direction {options.direction!r}")

    for nbr, edge in steps:
        if not edge_passes_filter(edge, options):
            continue
        if options.node_types is not None and graph.node_type(nbr) not in options.node_types:
            continue
        yield nbr, edge


def _chain_undirected(graph: Graph, node: Any) -> Iterator[Tuple[Any, Edge]]:
    for e in graph.out_edges(node):
        yield e.target, e
    for e in graph.in_edges(node):
        if e.source != e.target:
            yield e.source, e
