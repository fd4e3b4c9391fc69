"""graph.py
================
Read-only multigraph view used by every analysis engine.

A :class:`Graph` wraps a NetworkX ``MultiGraph`` / ``MultiDiGraph``.  Nodes are
any hashable id; both nodes and edges carry an opaque *payload* (a mapping or
an object) that the weight resolver and the traversal filters read fields
from.  Engines never mutate a graph; the ``add_*`` methods exist for whoever
builds the snapshot.

>>> g = Graph(directed=True)
>>> g.add_node("W1", {"type": "work", "cited_by_count": 12})
>>> g.add_edge("W2", "W1", {"type": "cites"})
>>> [e.ref for e in g.out_edges("W2")]
[('W2', 'W1', 0)]
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import (
    Any,
    Dict,
    Generic,
    Hashable,
    Iterable,
    Iterator,
    List,
    NamedTuple,
    Optional,
    Set,
    Tuple,
    TypeVar,
)

import networkx as nx

from citegraph.algorithms._core import get_property

__all__ = ["Direction", "Edge", "Graph"]

_LOG = logging.getLogger(__name__)

N = TypeVar("N", bound=Hashable)
E = TypeVar("E")


class Direction(str, Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"
    BOTH = "both"


class Edge(NamedTuple):
    """One edge of a multigraph; ``key`` tells parallel edges apart."""

    source: Any
    target: Any
    key: Any
    payload: Any = None

    @property
    def ref(self) -> Tuple[Any, Any, Any]:
        """Hashable identity of the edge (payloads may be unhashable)."""
        return (self.source, self.target, self.key)

    @property
    def type(self) -> Any:
        return get_property(self.payload, "type")

    def other(self, node: Any) -> Any:
        return self.target if node == self.source else self.source

    def reversed(self) -> "Edge":
        return Edge(self.target, self.source, self.key, self.payload)


class Graph(Generic[N, E]):
    """Directed or undirected multigraph with node/edge payloads."""

    def __init__(self, directed: bool = False):
        self._G: nx.MultiGraph = nx.MultiDiGraph() if directed else nx.MultiGraph()

    # ------------------------------------------------------------------#
    # construction                                                      #
    # ------------------------------------------------------------------#

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[Tuple[Any, ...]],
        *,
        directed: bool = False,
        nodes: Optional[Iterable[Any]] = None,
    ) -> "Graph":
        """Build from ``(u, v)`` or ``(u, v, payload)`` tuples."""
        g = cls(directed=directed)
        for n in nodes or ():
            g.add_node(n)
        for tpl in edges:
            if len(tpl) == 2:
                g.add_edge(tpl[0], tpl[1])
            else:
                g.add_edge(tpl[0], tpl[1], tpl[2])
        return g

    @classmethod
    def from_networkx(cls, G: nx.Graph) -> "Graph":
        """Copy a NetworkX graph; attribute dicts become payloads."""
        g = cls(directed=G.is_directed())
        for n, attrs in G.nodes(data=True):
            g.add_node(n, dict(attrs))
        for u, v, attrs in G.edges(data=True):
            g.add_edge(u, v, dict(attrs))
        _LOG.debug(
            "imported networkx graph: %d nodes, %d edges",
            g.number_of_nodes(),
            g.number_of_edges(),
        )
        return g

    def add_node(self, node: N, payload: Any = None) -> None:
        if node in self._G:
            if payload is not None:
                self._G.nodes[node]["payload"] = payload
            return
        self._G.add_node(node, payload=payload)

    def add_edge(self, source: N, target: N, payload: E = None) -> Edge:
        for n in (source, target):
            if n not in self._G:
                self._G.add_node(n, payload=None)
        key = self._G.add_edge(source, target, payload=payload)
        return Edge(source, target, key, payload)

    # ------------------------------------------------------------------#
    # enumeration                                                       #
    # ------------------------------------------------------------------#

    @property
    def directed(self) -> bool:
        return self._G.is_directed()

    def __len__(self) -> int:
        return self._G.number_of_nodes()

    def __contains__(self, node: Any) -> bool:
        try:
            return node in self._G
        except TypeError:
            return False

    def __iter__(self) -> Iterator[N]:
        return iter(self._G)

    def __repr__(self) -> str:
        kind = "directed" if self.directed else "undirected"
        return f"<Graph {kind} nodes={len(self)} edges={self.number_of_edges()}>"

    def number_of_nodes(self) -> int:
        return self._G.number_of_nodes()

    def number_of_edges(self) -> int:
        return self._G.number_of_edges()

    def is_empty(self) -> bool:
        return self._G.number_of_nodes() == 0

    def has_node(self, node: Any) -> bool:
        return node in self

    def nodes(self) -> List[N]:
        return list(self._G.nodes)

    def node_payload(self, node: N) -> Any:
        return self._G.nodes[node].get("payload")

    def node_type(self, node: N) -> Any:
        return get_property(self.node_payload(node), "type")

    def edges(self) -> List[Edge]:
        return [Edge(u, v, k, p) for u, v, k, p in self._G.edges(keys=True, data="payload")]

    # ------------------------------------------------------------------#
    # adjacency                                                         #
    # ------------------------------------------------------------------#

    def out_edges(self, node: N) -> List[Edge]:
        """Edges leaving *node*; for undirected graphs every incident edge,
        oriented away from *node*."""
        if self.directed:
            it = self._G.out_edges(node, keys=True, data="payload")
        else:
            it = self._G.edges(node, keys=True, data="payload")
        return [Edge(u, v, k, p) for u, v, k, p in it]

    def in_edges(self, node: N) -> List[Edge]:
        """Edges entering *node*; for undirected graphs every incident edge,
        oriented towards *node*."""
        if self.directed:
            return [
                Edge(u, v, k, p)
                for u, v, k, p in self._G.in_edges(node, keys=True, data="payload")
            ]
        return [
            Edge(v, u, k, p) for u, v, k, p in self._G.edges(node, keys=True, data="payload")
        ]

    def incident_edges(self, node: N, direction: Direction | str = Direction.BOTH) -> List[Edge]:
        direction = Direction(direction)
        if not self.directed or direction is Direction.OUTBOUND:
            return self.out_edges(node)
        if direction is Direction.INBOUND:
            return self.in_edges(node)
        # self-loops appear in both lists; keep one copy
        out = self.out_edges(node)
        return out + [e for e in self.in_edges(node) if e.source != e.target]

    def neighbors(self, node: N, direction: Direction | str = Direction.BOTH) -> List[N]:
        seen: Dict[N, None] = {}
        for e in self.incident_edges(node, direction):
            seen.setdefault(e.other(node), None)
        return list(seen)

    def degree(self, node: N, direction: Direction | str = Direction.BOTH) -> int:
        """Number of incident edge ends (NetworkX convention: a self-loop counts twice)."""
        direction = Direction(direction)
        if not self.directed or direction is Direction.BOTH:
            return self._G.degree(node)
        if direction is Direction.OUTBOUND:
            return self._G.out_degree(node)
        return self._G.in_degree(node)

    # ------------------------------------------------------------------#
    # views                                                             #
    # ------------------------------------------------------------------#

    def undirected_adjacency(self) -> Dict[N, Set[N]]:
        """Simple neighbour sets: direction, parallel edges and self-loops ignored."""
        adj: Dict[N, Set[N]] = {n: set() for n in self._G.nodes}
        for u, v in self._G.edges():
            if u != v:
                adj[u].add(v)
                adj[v].add(u)
        return adj

    def subgraph(self, nodes: Iterable[N]) -> "Graph":
        """Induced subgraph on *nodes*, as a new independent graph."""
        keep = [n for n in nodes if n in self._G]
        sub = Graph(directed=self.directed)
        sub._G = self._G.subgraph(keep).copy()
        return sub

    def edge_subgraph(self, edges: Iterable[Edge], nodes: Iterable[N] = ()) -> "Graph":
        """New graph holding exactly *edges* (keys preserved) plus *nodes*."""
        sub = Graph(directed=self.directed)
        for n in nodes:
            sub._G.add_node(n, **self._G.nodes[n])
        for e in edges:
            for n in (e.source, e.target):
                if n not in sub._G:
                    sub._G.add_node(n, **self._G.nodes[n])
            sub._G.add_edge(e.source, e.target, key=e.key, payload=e.payload)
        return sub

    def to_networkx(self) -> nx.MultiGraph:
        """Independent NetworkX copy; payloads stay under the ``payload`` attribute."""
        return self._G.copy()
