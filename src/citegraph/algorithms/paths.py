"""paths.py
================
Weighted shortest paths (Dijkstra) over a :class:`~citegraph.graph.Graph`.

* :func:`find_shortest_path`    – one source, one target, early exit
* :func:`shortest_path_lengths` – one source, every reachable node

Edge weights come from :func:`~citegraph.algorithms.weights.edge_weight`, so
they are always strictly positive.  The heap is keyed by
``(distance, str(node), hops)``: among equally distant candidates the node with
the lexically smaller id is settled first, and a predecessor is only replaced
by a strictly shorter one.

``max_depth`` is a hop ceiling that does not interact with weights.  With a
ceiling, a cheaper route that needs more hops may be unusable, so the search
state becomes ``(node, hops)``; a state is dropped once the same node has been
settled with no more hops.
"""
from __future__ import annotations

import heapq
import logging
import math
from dataclasses import dataclass
from itertools import count
from typing import Any, Dict, Hashable, Optional, Tuple

from citegraph.algorithms._core import node_sort_key
from citegraph.algorithms.traversal import TraversalOptions, admissible_steps, validate_options
from citegraph.algorithms.weights import WeightConfig, edge_weight
from citegraph.graph import Edge, Graph
from citegraph.result import Ok, Result, invalid_input

__all__ = ["PathResult", "find_shortest_path", "shortest_path_lengths"]

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathResult:
    """Outcome of a path query.  Unreachable targets are ``found=False``,
    with an empty path and ``distance == math.inf``."""

    source: Any
    target: Any
    path: Tuple[Any, ...]
    edges: Tuple[Edge, ...]
    distance: float
    found: bool

    @property
    def hops(self) -> float:
        return len(self.edges) if self.found else math.inf

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "found": self.found,
            "path": list(self.path),
            "distance": self.distance if self.found else None,
            "hops": len(self.edges) if self.found else None,
        }


# ---------------------------------------------------------------------------#
# search core                                                                #
# ---------------------------------------------------------------------------#


def _check(graph: Graph, nodes: Tuple[Any, ...], options: TraversalOptions):
    if not isinstance(graph, Graph):
        raise TypeError(f"expected a citegraph Graph, got {type(graph).__name__}")
    for role, n in zip(("source", "target"), nodes):
        if n not in graph:
            return invalid_input(f"{role} node {n!r} is not in the graph", **{role: n})
    problem = validate_options(options)
    if problem:
        return invalid_input(problem, max_depth=options.max_depth)
    return None


def _dijkstra(
    graph: Graph,
    source: Any,
    target: Any,
    weight: Optional[WeightConfig],
    options: TraversalOptions,
):
    """Run the search; return ``(dist, parent, settled_state_of_target)``.

    ``dist``/``parent`` are keyed by search state.  ``target=None`` explores
    everything reachable.
    """
    bounded = options.max_depth is not None

    def state(node: Hashable, hops: int):
        return (node, hops) if bounded else node

    start = state(source, 0)
    dist: Dict[Any, float] = {start: 0.0}
    parent: Dict[Any, Tuple[Any, Edge]] = {}
    settled_hops: Dict[Any, int] = {}
    tie = count()
    heap = [(0.0, node_sort_key(source), 0, next(tie), source)]
    pops = 0

    while heap:
        d, _, hops, _, node = heapq.heappop(heap)
        st = state(node, hops)
        if d > dist.get(st, math.inf):
            continue
        if node in settled_hops and settled_hops[node] <= hops:
            continue
        settled_hops[node] = hops
        pops += 1
        if node == target:
            _LOG.debug("target %r settled after %d pops (d=%s)", target, pops, d)
            return dist, parent, st
        if bounded and hops >= options.max_depth:
            continue

        for nbr, edge in admissible_steps(graph, node, options):
            nh = hops + 1
            if nbr in settled_hops and settled_hops[nbr] <= nh:
                continue
            nd = d + edge_weight(graph, edge, weight)
            nst = state(nbr, nh)
            if nd < dist.get(nst, math.inf):
                dist[nst] = nd
                parent[nst] = (st, edge)
                heapq.heappush(heap, (nd, node_sort_key(nbr), nh, next(tie), nbr))

    _LOG.debug("search from %r exhausted after %d pops", source, pops)
    return dist, parent, None


# ---------------------------------------------------------------------------#
# public API                                                                 #
# ---------------------------------------------------------------------------#


def find_shortest_path(
    graph: Graph,
    source: Any,
    target: Any,
    *,
    weight: Optional[WeightConfig] = None,
    options: Optional[TraversalOptions] = None,
) -> Result[PathResult]:
    """Cheapest admissible path from *source* to *target*.

    Without a ``weight`` config every edge costs 1, so the distance is the hop
    count.  Unreachability is a normal ``Ok`` outcome; only unknown endpoints or
    a negative ``max_depth`` produce an ``Err``.
    """
    options = options or TraversalOptions()
    problem = _check(graph, (source, target), options)
    if problem is not None:
        return problem

    dist, parent, end = _dijkstra(graph, source, target, weight, options)
    if end is None:
        return Ok(PathResult(source, target, (), (), math.inf, False))

    nodes = [target]
    edges = []
    st = end
    while st in parent:
        st, edge = parent[st]
        edges.append(edge)
        nodes.append(st[0] if options.max_depth is not None else st)
    nodes.reverse()
    edges.reverse()
    return Ok(PathResult(source, target, tuple(nodes), tuple(edges), dist[end], True))


def shortest_path_lengths(
    graph: Graph,
    source: Any,
    *,
    weight: Optional[WeightConfig] = None,
    options: Optional[TraversalOptions] = None,
) -> Result[Dict[Any, float]]:
    """Distance from *source* to every admissible, reachable node (source included)."""
    options = options or TraversalOptions()
    problem = _check(graph, (source,), options)
    if problem is not None:
        return problem

    dist, _, _ = _dijkstra(graph, source, None, weight, options)
    if options.max_depth is None:
        return Ok(dict(dist))
    best: Dict[Any, float] = {}
    for (node, _hops), d in dist.items():
        if d < best.get(node, math.inf):
            best[node] = d
    return Ok(best)
