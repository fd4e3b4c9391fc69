"""kcore.py
================
K-core decomposition (Batagelj & Zaversnik, 2003).

The *k*-core is the maximal subgraph in which every node keeps at least *k*
neighbours.  Peeling always removes a node of minimum current degree; since a
removal lowers each neighbour's degree by exactly one, degree-indexed buckets
replace a priority queue and the whole run is O(V + E).

Cores are computed on the simple undirected projection of the graph: edge
direction, parallel edges and self-loops do not count towards a degree.

https://arxiv.org/abs/cs/0310049
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Tuple

from citegraph.algorithms._core import node_sort_key
from citegraph.graph import Graph
from citegraph.result import Ok, Result, empty_graph, invalid_input, invalid_k

__all__ = ["Core", "KCoreResult", "k_core_decomposition", "k_core", "core_numbers"]

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class Core:
    """Node set of one *k*-core."""

    k: int
    nodes: FrozenSet[Any]

    def __len__(self) -> int:
        return len(self.nodes)

    def subgraph(self, graph: Graph) -> Graph:
        """Induced subgraph of *graph* on this core's nodes."""
        return graph.subgraph(self.nodes)

    def to_dict(self) -> Dict[str, Any]:
        return {"k": self.k, "nodes": sorted(str(n) for n in self.nodes)}


@dataclass(frozen=True)
class KCoreResult:
    core_numbers: Dict[Any, int]
    degeneracy: int
    cores: Dict[int, Core]
    shells: Dict[int, FrozenSet[Any]] = field(default_factory=dict)
    removal_order: Tuple[Any, ...] = ()

    def core(self, k: int) -> Core:
        """The *k*-core for any ``0 <= k <= degeneracy``."""
        if k in self.cores:
            return self.cores[k]
        if 0 <= k <= self.degeneracy:
            return Core(k, frozenset(n for n, c in self.core_numbers.items() if c >= k))
        raise KeyError(k)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "degeneracy": self.degeneracy,
            "core_numbers": {str(n): c for n, c in self.core_numbers.items()},
            "core_sizes": {k: len(c) for k, c in self.cores.items()},
        }


# ---------------------------------------------------------------------------#
# Batagelj–Zaversnik                                                         #
# ---------------------------------------------------------------------------#


def _peel(graph: Graph) -> Tuple[List[Any], List[int], List[int]]:
    """Return ``(order, core, vert)``: node list, core number per index and
    the removal sequence (indices)."""
    order = sorted(graph.nodes(), key=node_sort_key)
    index = {n: i for i, n in enumerate(order)}
    adj = graph.undirected_adjacency()
    nbrs = [sorted(index[m] for m in adj[n]) for n in order]
    n = len(order)

    deg = [len(ns) for ns in nbrs]
    md = max(deg, default=0)

    # bin[d] = start position of degree-d block in vert
    bin_ = [0] * (md + 1)
    for d in deg:
        bin_[d] += 1
    start = 0
    for d in range(md + 1):
        num = bin_[d]
        bin_[d] = start
        start += num

    pos = [0] * n
    vert = [0] * n
    for v in range(n):
        pos[v] = bin_[deg[v]]
        vert[pos[v]] = v
        bin_[deg[v]] += 1
    for d in range(md, 0, -1):
        bin_[d] = bin_[d - 1]
    bin_[0] = 0

    for i in range(n):
        v = vert[i]
        for u in nbrs[v]:
            if deg[u] > deg[v]:
                du = deg[u]
                pu = pos[u]
                pw = bin_[du]
                w = vert[pw]
                if u != w:
                    pos[u], vert[pu] = pw, w
                    pos[w], vert[pw] = pu, u
                bin_[du] += 1
                deg[u] -= 1

    return order, deg, vert


def core_numbers(graph: Graph) -> Dict[Any, int]:
    """Core number of every node (no validation; empty graph → ``{}``)."""
    order, core, _ = _peel(graph)
    return {order[i]: core[i] for i in range(len(order))}


def k_core_decomposition(graph: Graph) -> Result[KCoreResult]:
    """Core numbers, degeneracy and the nested cores ``1..degeneracy``."""
    if not isinstance(graph, Graph):
        raise TypeError(f"expected a citegraph Graph, got {type(graph).__name__}")
    if graph.is_empty():
        return empty_graph("cannot decompose an empty graph")

    order, core, vert = _peel(graph)
    numbers = {order[i]: core[i] for i in range(len(order))}
    degeneracy = max(core)

    shells: Dict[int, set] = {}
    for node, c in numbers.items():
        shells.setdefault(c, set()).add(node)

    # cores nest, so build them from the innermost shell outwards
    cores: Dict[int, Core] = {}
    members: set = set()
    for k in range(degeneracy, 0, -1):
        members |= shells.get(k, set())
        cores[k] = Core(k, frozenset(members))

    _LOG.debug(
        "k-core: %d nodes, degeneracy %d, shell sizes %s",
        len(order),
        degeneracy,
        {k: len(s) for k, s in sorted(shells.items())},
    )
    return Ok(
        KCoreResult(
            core_numbers=numbers,
            degeneracy=degeneracy,
            cores=dict(sorted(cores.items())),
            shells={k: frozenset(s) for k, s in sorted(shells.items())},
            removal_order=tuple(order[v] for v in vert),
        )
    )


def k_core(graph: Graph, k: int) -> Result[Core]:
    """The *k*-core of *graph*; ``k`` above the degeneracy is ``InvalidK``."""
    if isinstance(k, bool) or not isinstance(k, int) or k < 0:
        return invalid_input(f"k must be a non-negative integer, got {k!r}", k=k)
    res = k_core_decomposition(graph)
    if not res.ok:
        return res
    decomposition = res.value
    if k > decomposition.degeneracy:
        return invalid_k(k, decomposition.degeneracy)
    return Ok(decomposition.core(k))
