"""motifs.py
================
Small recurring structures in citation graphs.

* :func:`detect_triangles`              – 3-cycles of the undirected projection
* :func:`detect_star_patterns`          – hubs with many distinct neighbours
* :func:`detect_co_citations`           – pairs of works citing the same source
* :func:`detect_bibliographic_coupling` – pairs of works cited by the same work
* :func:`compute_triangle_support`      – triangles per edge
* :func:`extract_k_truss`               – edges lying on ``k - 2`` or more triangles

Triangles, supports and trusses ignore edge direction, parallel edges and
self-loops.  The pair detectors need a directed graph and optionally restrict
themselves to citation edge types.

K-truss peeling follows Cohen, "Trusses: cohesive subgraphs for social
network analysis" (2008): repeatedly drop edges whose remaining support is at
most ``k - 2``; the last ``k`` an edge survives is its truss number.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from citegraph.algorithms._core import node_sort_key
from citegraph.graph import Direction, Edge, Graph
from citegraph.result import Ok, Result, invalid_input

__all__ = [
    "Triangle",
    "StarType",
    "StarPattern",
    "CoCitationPair",
    "BibliographicCouplingPair",
    "KTrussResult",
    "detect_triangles",
    "detect_star_patterns",
    "detect_co_citations",
    "detect_bibliographic_coupling",
    "compute_triangle_support",
    "extract_k_truss",
]

_LOG = logging.getLogger(__name__)


def _check_graph(graph: Any) -> None:
    if not isinstance(graph, Graph):
        raise TypeError(f"expected a citegraph Graph, got {type(graph).__name__}")


def _ordered(*nodes: Any) -> Tuple[Any, ...]:
    return tuple(sorted(nodes, key=node_sort_key))


def _pair_edges(graph: Graph) -> Dict[FrozenSet[Any], Edge]:
    """First stored edge between each unordered pair of distinct nodes."""
    first: Dict[FrozenSet[Any], Edge] = {}
    for e in graph.edges():
        if e.source != e.target:
            first.setdefault(frozenset((e.source, e.target)), e)
    return first


def _triangles(adj: Dict[Any, Set[Any]]) -> Iterable[Tuple[Any, Any, Any]]:
    """Node-iterator with neighbour intersection; each triangle once, ranked."""
    rank = {n: i for i, n in enumerate(sorted(adj, key=node_sort_key))}
    for u in sorted(adj, key=rank.__getitem__):
        higher = sorted((v for v in adj[u] if rank[v] > rank[u]), key=rank.__getitem__)
        for i, v in enumerate(higher):
            for w in higher[i + 1:]:
                if w in adj[v]:
                    yield u, v, w


# ---------------------------------------------------------------------------#
# triangles                                                                  #
# ---------------------------------------------------------------------------#


@dataclass(frozen=True)
class Triangle:
    nodes: Tuple[Any, Any, Any]
    edges: Tuple[Edge, Edge, Edge]

    def to_dict(self) -> Dict[str, Any]:
        return {"nodes": [str(n) for n in self.nodes]}


def detect_triangles(graph: Graph) -> Result[List[Triangle]]:
    """Every triangle, nodes in lexical order, list sorted by those nodes."""
    _check_graph(graph)
    pair_edge = _pair_edges(graph)
    found = []
    for u, v, w in _triangles(graph.undirected_adjacency()):
        found.append(
            Triangle(
                nodes=(u, v, w),
                edges=(
                    pair_edge[frozenset((u, v))],
                    pair_edge[frozenset((v, w))],
                    pair_edge[frozenset((u, w))],
                ),
            )
        )
    _LOG.debug("triangles: %d found", len(found))
    return Ok(found)


# ---------------------------------------------------------------------------#
# stars                                                                      #
# ---------------------------------------------------------------------------#


class StarType(str, Enum):
    IN_STAR = "in"
    OUT_STAR = "out"
    UNDIRECTED_STAR = "undirected"


@dataclass(frozen=True)
class StarPattern:
    center: Any
    spokes: Tuple[Any, ...]
    degree: int
    star_type: StarType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": str(self.center),
            "degree": self.degree,
            "star_type": self.star_type.value,
            "spokes": [str(s) for s in self.spokes],
        }


_STAR_DIRECTIONS = {
    StarType.IN_STAR: Direction.INBOUND,
    StarType.OUT_STAR: Direction.OUTBOUND,
    StarType.UNDIRECTED_STAR: Direction.BOTH,
}


def detect_star_patterns(
    graph: Graph,
    min_degree: int,
    star_type: Optional[StarType] = None,
) -> Result[List[StarPattern]]:
    """Hubs with at least *min_degree* distinct neighbours.

    *star_type* defaults to ``IN_STAR`` (highly cited works) on directed graphs
    and ``UNDIRECTED_STAR`` otherwise.  Stars come largest first, ties broken
    by node id.
    """
    _check_graph(graph)
    if isinstance(min_degree, bool) or not isinstance(min_degree, int) or min_degree < 0:
        return invalid_input(
            f"min_degree must be a non-negative integer, got {min_degree!r}", min_degree=min_degree
        )
    if star_type is None:
        star_type = StarType.IN_STAR if graph.directed else StarType.UNDIRECTED_STAR
    try:
        star_type = StarType(star_type)
    except ValueError:
        return invalid_input(f"unknown star type {star_type!r}", star_type=star_type)
    if star_type is not StarType.UNDIRECTED_STAR and not graph.directed:
        return invalid_input(f"{star_type.name} needs a directed graph", star_type=star_type.value)

    direction = _STAR_DIRECTIONS[star_type]
    stars = []
    for node in graph.nodes():
        spokes = [n for n in graph.neighbors(node, direction) if n != node]
        if len(spokes) >= min_degree:
            stars.append(
                StarPattern(
                    center=node,
                    spokes=_ordered(*spokes),
                    degree=len(spokes),
                    star_type=star_type,
                )
            )
    stars.sort(key=lambda s: (-s.degree, node_sort_key(s.center)))
    _LOG.debug("stars (%s, >= %d): %d found", star_type.value, min_degree, len(stars))
    return Ok(stars)


# ---------------------------------------------------------------------------#
# co-citation / bibliographic coupling                                       #
# ---------------------------------------------------------------------------#


@dataclass(frozen=True)
class CoCitationPair:
    """Two works that both cite ``cited_source``.

    ``coupling_strength`` counts every source the two works cite in common.
    """

    citing_papers: Tuple[Any, Any]
    cited_source: Any
    coupling_strength: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "citing_papers": [str(n) for n in self.citing_papers],
            "cited_source": str(self.cited_source),
            "coupling_strength": self.coupling_strength,
        }


@dataclass(frozen=True)
class BibliographicCouplingPair:
    """Two works that are both cited by ``citing_source``.

    ``coupling_strength`` counts every work that cites both of them.
    """

    coupled_papers: Tuple[Any, Any]
    citing_source: Any
    coupling_strength: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coupled_papers": [str(n) for n in self.coupled_papers],
            "citing_source": str(self.citing_source),
            "coupling_strength": self.coupling_strength,
        }


def _shared_pairs(graph: Graph, hub_side: str, edge_types: Optional[Iterable[Any]]):
    """``[(hub, (a, b))]`` for every pair on the far side of a common hub, plus
    how many hubs each pair shares."""
    allowed = None
    if edge_types is not None:
        allowed = frozenset([edge_types] if isinstance(edge_types, str) else edge_types)

    groups: Dict[Any, Set[Any]] = {}
    for e in graph.edges():
        if e.source == e.target or (allowed is not None and e.type not in allowed):
            continue
        hub, other = (e.target, e.source) if hub_side == "target" else (e.source, e.target)
        groups.setdefault(hub, set()).add(other)

    hits: List[Tuple[Any, Tuple[Any, Any]]] = []
    strength: Dict[Tuple[Any, Any], int] = {}
    for hub in sorted(groups, key=node_sort_key):
        members = _ordered(*groups[hub])
        for pair in itertools.combinations(members, 2):
            hits.append((hub, pair))
            strength[pair] = strength.get(pair, 0) + 1
    return hits, strength


def _needs_directed(graph: Graph, what: str):
    if not graph.directed:
        return invalid_input(f"{what} needs a directed citation graph")
    return None


def detect_co_citations(
    graph: Graph, *, edge_types: Optional[Iterable[Any]] = None
) -> Result[List[CoCitationPair]]:
    """One entry per (pair of citing works, source they both cite)."""
    _check_graph(graph)
    problem = _needs_directed(graph, "co-citation detection")
    if problem is not None:
        return problem
    hits, strength = _shared_pairs(graph, "target", edge_types)
    _LOG.debug("co-citation: %d pairs over %d hits", len(strength), len(hits))
    return Ok([CoCitationPair(pair, hub, strength[pair]) for hub, pair in hits])


def detect_bibliographic_coupling(
    graph: Graph, *, edge_types: Optional[Iterable[Any]] = None
) -> Result[List[BibliographicCouplingPair]]:
    """One entry per (pair of cited works, work that cites both)."""
    _check_graph(graph)
    problem = _needs_directed(graph, "bibliographic coupling detection")
    if problem is not None:
        return problem
    hits, strength = _shared_pairs(graph, "source", edge_types)
    _LOG.debug("bibliographic coupling: %d pairs over %d hits", len(strength), len(hits))
    return Ok([BibliographicCouplingPair(pair, hub, strength[pair]) for hub, pair in hits])


# ---------------------------------------------------------------------------#
# triangle support / k-truss                                                 #
# ---------------------------------------------------------------------------#


@dataclass(frozen=True)
class KTrussResult:
    """Edges whose endpoint pair lies on at least ``k - 2`` triangles of the
    remaining subgraph.

    ``edge_support`` and ``truss_numbers`` are keyed by :attr:`Edge.ref` and
    cover every non-loop edge of the input; parallel edges share their pair's
    values.
    """

    k: int
    subgraph: Graph
    edge_support: Dict[Tuple[Any, Any, Any], int]
    truss_numbers: Dict[Tuple[Any, Any, Any], int]
    max_truss: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "k": self.k,
            "max_truss": self.max_truss,
            "nodes": sorted(str(n) for n in self.subgraph.nodes()),
            "edges": self.subgraph.number_of_edges(),
        }


def _pair_support(adj: Dict[Any, Set[Any]]) -> Dict[FrozenSet[Any], int]:
    support: Dict[FrozenSet[Any], int] = {}
    for u, nbrs in adj.items():
        for v in nbrs:
            pair = frozenset((u, v))
            if pair not in support:
                support[pair] = len(nbrs & adj[v])
    return support


def compute_triangle_support(graph: Graph) -> Dict[Tuple[Any, Any, Any], int]:
    """Number of triangles through each non-loop edge, keyed by ``edge.ref``."""
    _check_graph(graph)
    support = _pair_support(graph.undirected_adjacency())
    return {
        e.ref: support[frozenset((e.source, e.target))]
        for e in graph.edges()
        if e.source != e.target
    }


def _truss_numbers(adj: Dict[Any, Set[Any]]) -> Dict[FrozenSet[Any], int]:
    adj = {n: set(nbrs) for n, nbrs in adj.items()}
    support = _pair_support(adj)
    remaining = set(support)
    truss: Dict[FrozenSet[Any], int] = {}
    k = 2
    while remaining:
        queue = [p for p in remaining if support[p] <= k - 2]
        if not queue:
            k += 1
            continue
        while queue:
            pair = queue.pop()
            if pair not in remaining:
                continue
            remaining.discard(pair)
            truss[pair] = k
            u, v = tuple(pair)
            for w in adj[u] & adj[v]:
                for other in (frozenset((u, w)), frozenset((v, w))):
                    if other in remaining:
                        support[other] -= 1
                        if support[other] == k - 2:
                            queue.append(other)
            adj[u].discard(v)
            adj[v].discard(u)
    return truss


def extract_k_truss(graph: Graph, k: int) -> Result[KTrussResult]:
    """The *k*-truss (``k >= 2``); above the largest truss it is empty."""
    _check_graph(graph)
    if isinstance(k, bool) or not isinstance(k, int) or k < 2:
        return invalid_input(f"k must be an integer >= 2, got {k!r}", k=k)

    adj = graph.undirected_adjacency()
    support = _pair_support(adj)
    truss = _truss_numbers(adj)
    edges = [e for e in graph.edges() if e.source != e.target]
    kept = [e for e in edges if truss[frozenset((e.source, e.target))] >= k]
    max_truss = max(truss.values(), default=0)
    _LOG.debug("k-truss: k=%d, %d/%d edges kept, max truss %d", k, len(kept), len(edges), max_truss)
    return Ok(
        KTrussResult(
            k=k,
            subgraph=graph.edge_subgraph(kept),
            edge_support={e.ref: support[frozenset((e.source, e.target))] for e in edges},
            truss_numbers={e.ref: truss[frozenset((e.source, e.target))] for e in edges},
            max_truss=max_truss,
        )
    )
