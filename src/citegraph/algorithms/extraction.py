"""extraction.py
================
Subgraph extraction ahead of analysis.

* :func:`extract_induced_subgraph`      – explicit node set
* :func:`filter_subgraph`               – node / edge predicates on payloads
* :func:`extract_ego_network`           – everything within *radius* hops of seeds
* :func:`extract_reachability_subgraph` – everything a citation chain reaches

All of them return a new :class:`~citegraph.graph.Graph` (or a record holding
one) wrapped in a result; the input graph is left untouched.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from citegraph.algorithms.traversal import TraversalOptions, admissible_steps, validate_options
from citegraph.graph import Direction, Edge, Graph
from citegraph.result import Ok, Result, invalid_input

__all__ = [
    "Reachability",
    "extract_induced_subgraph",
    "filter_subgraph",
    "extract_ego_network",
    "extract_reachability_subgraph",
]

_LOG = logging.getLogger(__name__)

_SEED_COLLECTIONS = (list, tuple, set, frozenset)

# reachability direction → traversal direction
_REACH_DIRECTIONS = {
    "forward": Direction.OUTBOUND,
    "backward": Direction.INBOUND,
}


@dataclass(frozen=True)
class Reachability:
    """Nodes reachable from ``sources`` with their minimum hop distance."""

    sources: Tuple[Any, ...]
    reachable: FrozenSet[Any]
    distances: Dict[Any, int]
    subgraph: Graph

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sources": [str(s) for s in self.sources],
            "distances": {str(n): d for n, d in self.distances.items()},
            "edges": self.subgraph.number_of_edges(),
        }


def _check_graph(graph: Any) -> None:
    if not isinstance(graph, Graph):
        raise TypeError(f"expected a citegraph Graph, got {type(graph).__name__}")


def _seed_list(graph: Graph, seeds: Any):
    """``(seed_list, None)`` or ``(None, err)`` for one seed or a collection."""
    if seeds in graph or not isinstance(seeds, _SEED_COLLECTIONS):
        seed_list = [seeds]
    else:
        seed_list = list(dict.fromkeys(seeds))
    if not seed_list:
        return None, invalid_input("at least one seed is required")
    missing = [s for s in seed_list if s not in graph]
    if missing:
        return None, invalid_input(f"seed(s) not in graph: {missing!r}", missing=missing)
    return seed_list, None


def _bfs(
    graph: Graph, seeds: List[Any], radius: Optional[int], options: TraversalOptions
) -> Tuple[Dict[Any, int], List[Edge]]:
    """Hop distance of every node within *radius* (``None`` = unbounded)."""
    depth = {s: 0 for s in seeds}
    tree_edges: List[Edge] = []
    queue = deque(seeds)
    while queue:
        node = queue.popleft()
        if radius is not None and depth[node] == radius:
            continue
        for nbr, edge in admissible_steps(graph, node, options):
            if nbr not in depth:
                depth[nbr] = depth[node] + 1
                tree_edges.append(edge)
                queue.append(nbr)
    return depth, tree_edges


def extract_induced_subgraph(graph: Graph, nodes: Iterable[Any]) -> Result[Graph]:
    _check_graph(graph)
    nodes = list(nodes)
    missing = [n for n in nodes if n not in graph]
    if missing:
        return invalid_input(f"{len(missing)} node(s) not in graph", missing=missing)
    return Ok(graph.subgraph(nodes))


def filter_subgraph(
    graph: Graph,
    *,
    node_predicate: Optional[Callable[[Any, Any], bool]] = None,
    edge_predicate: Optional[Callable[[Edge], bool]] = None,
    edge_types: Optional[Iterable[Any]] = None,
    combine: str = "and",
) -> Result[Graph]:
    """Keep nodes passing ``node_predicate(node, payload)`` and edges passing
    ``edge_predicate(edge)`` and ``edge_types``.

    ``combine="and"`` keeps the passing edges whose endpoints both passed the
    node test.  ``combine="or"`` keeps every passing edge and adds its
    endpoints to the passing nodes.  Without both a node and an edge test the
    two modes agree.
    """
    _check_graph(graph)
    mode = combine.lower() if isinstance(combine, str) else combine
    if mode not in ("and", "or"):
        return invalid_input(f"combine must be 'and' or 'or', got {combine!r}", combine=combine)
    if isinstance(edge_types, (str, bytes)):
        edge_types = [edge_types]
    allowed_types = None if edge_types is None else frozenset(edge_types)

    def edge_ok(e: Edge) -> bool:
        if allowed_types is not None and e.type not in allowed_types:
            return False
        return edge_predicate is None or bool(edge_predicate(e))

    keep = [
        n for n in graph.nodes()
        if node_predicate is None or node_predicate(n, graph.node_payload(n))
    ]
    kept = set(keep)
    has_edge_test = edge_predicate is not None or allowed_types is not None
    if mode == "or" and node_predicate is not None and has_edge_test:
        edges = [e for e in graph.edges() if edge_ok(e)]
        for e in edges:
            for n in (e.source, e.target):
                if n not in kept:
                    kept.add(n)
                    keep.append(n)
    else:
        edges = [
            e for e in graph.edges()
            if e.source in kept and e.target in kept and edge_ok(e)
        ]
    _LOG.debug(
        "filter (%s): %d/%d nodes, %d/%d edges kept",
        mode, len(keep), len(graph), len(edges), graph.number_of_edges(),
    )
    return Ok(graph.edge_subgraph(edges, nodes=keep))


def extract_ego_network(
    graph: Graph,
    seeds: Any,
    radius: int,
    *,
    options: Optional[TraversalOptions] = None,
    include_internal_edges: bool = True,
) -> Result[Graph]:
    """Nodes within *radius* admissible hops of any seed.

    With ``include_internal_edges`` the result is the induced subgraph on those
    nodes; otherwise it keeps only the BFS tree edges that reached them.
    """
    _check_graph(graph)
    seed_list, problem = _seed_list(graph, seeds)
    if problem is not None:
        return problem
    if isinstance(radius, bool) or not isinstance(radius, int) or radius < 0:
        return invalid_input(f"radius must be a non-negative integer, got {radius!r}", radius=radius)
    options = options or TraversalOptions()
    problem = validate_options(options)
    if problem:
        return invalid_input(problem)

    depth, tree_edges = _bfs(graph, seed_list, radius, options)
    _LOG.debug("ego network: %d seeds, radius %d, %d nodes", len(seed_list), radius, len(depth))
    if include_internal_edges:
        return Ok(graph.subgraph(depth))
    return Ok(graph.edge_subgraph(tree_edges, nodes=depth))


def extract_reachability_subgraph(
    graph: Graph,
    sources: Any,
    direction: str = "forward",
    *,
    options: Optional[TraversalOptions] = None,
) -> Result[Reachability]:
    """Everything reachable from *sources* along citation edges.

    ``"forward"`` follows edges source→target (what the sources cite, and so
    on); ``"backward"`` walks them in reverse (who cites the sources).  The
    remaining *options* filters apply; ``options.max_depth`` caps the hops.
    """
    _check_graph(graph)
    seed_list, problem = _seed_list(graph, sources)
    if problem is not None:
        return problem
    walk = _REACH_DIRECTIONS.get(direction)
    if walk is None:
        return invalid_input(
            f"direction must be 'forward' or 'backward', got {direction!r}", direction=direction
        )
    options = replace(options or TraversalOptions(), direction=walk)
    problem = validate_options(options)
    if problem:
        return invalid_input(problem)

    depth, _ = _bfs(graph, seed_list, options.max_depth, options)
    _LOG.debug("reachability (%s): %d sources, %d nodes", direction, len(seed_list), len(depth))
    return Ok(
        Reachability(
            sources=tuple(seed_list),
            reachable=frozenset(depth),
            distances=depth,
            subgraph=graph.subgraph(depth),
        )
    )