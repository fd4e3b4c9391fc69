"""biconnected.py
================
Biconnected components and articulation points (Hopcroft & Tarjan, 1973).

One depth-first search per connected component records, for each node, its
discovery time ``disc`` and ``low`` (smallest discovery time reachable through
the DFS subtree plus one back edge).  Edges are pushed on a stack while
descending; when a child ``v`` of ``u`` finishes with ``low[v] >= disc[u]`` the
edges down to ``(u, v)`` form one component and ``u`` separates it from the
rest.  A DFS root separates only if it has more than one DFS child.

The DFS is iterative, so deep citation chains do not hit Python's recursion
limit.  Direction is ignored; parallel edges join the component of their
endpoints and self-loops, which never affect connectivity, are set aside.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from citegraph.algorithms._core import node_sort_key
from citegraph.graph import Edge, Graph
from citegraph.result import Ok, Result, empty_graph

__all__ = ["BiconnectedComponent", "BiconnectedResult", "biconnected_components"]

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class BiconnectedComponent:
    id: int
    nodes: FrozenSet[Any]
    edges: Tuple[Edge, ...]

    def __len__(self) -> int:
        return len(self.edges)


@dataclass(frozen=True)
class BiconnectedResult:
    components: Tuple[BiconnectedComponent, ...]
    articulation_points: FrozenSet[Any]
    ignored_edges: Tuple[Edge, ...] = ()

    @property
    def bridges(self) -> Tuple[Edge, ...]:
        """Edges whose removal disconnects their endpoints."""
        return tuple(c.edges[0] for c in self.components if len(c.edges) == 1)

    def component_of(self, edge: Edge) -> Optional[BiconnectedComponent]:
        ref = edge.ref
        for comp in self.components:
            if any(e.ref == ref for e in comp.edges):
                return comp
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "articulation_points": sorted(str(n) for n in self.articulation_points),
            "components": [sorted(str(n) for n in c.nodes) for c in self.components],
            "bridges": [[str(e.source), str(e.target)] for e in self.bridges],
        }


def _undirected_index(graph: Graph) -> Tuple[List[Edge], Dict[Any, List[Tuple[Any, int]]], List[Edge]]:
    edges: List[Edge] = []
    loops: List[Edge] = []
    adj: Dict[Any, List[Tuple[Any, int]]] = {n: [] for n in graph.nodes()}
    for e in graph.edges():
        if e.source == e.target:
            loops.append(e)
            continue
        idx = len(edges)
        edges.append(e)
        adj[e.source].append((e.target, idx))
        adj[e.target].append((e.source, idx))
    for n in adj:
        adj[n].sort(key=lambda t: (node_sort_key(t[0]), t[1]))
    return edges, adj, loops


def biconnected_components(graph: Graph) -> Result[BiconnectedResult]:
    """Decompose *graph* into biconnected components.

    Every non-loop edge lands in exactly one component; a node shared by two
    components is an articulation point.  Isolated nodes belong to none.
    """
    if not isinstance(graph, Graph):
        raise TypeError(f"expected a citegraph Graph, got {type(graph).__name__}")
    if graph.is_empty():
        return empty_graph("cannot decompose an empty graph")

    edges, adj, loops = _undirected_index(graph)
    disc: Dict[Any, int] = {}
    low: Dict[Any, int] = {}
    articulation: Set[Any] = set()
    blocks: List[List[int]] = []
    edge_stack: List[int] = []
    clock = 0

    for root in sorted(adj, key=node_sort_key):
        if root in disc or not adj[root]:
            continue
        disc[root] = low[root] = clock
        clock += 1
        root_children = 0
        # frame: (node, index of the tree edge used to reach it, neighbour iterator)
        stack = [(root, -1, iter(adj[root]))]

        while stack:
            v, via, nbrs = stack[-1]
            descended = False
            for w, idx in nbrs:
                if idx == via:
                    continue
                if w not in disc:
                    disc[w] = low[w] = clock
                    clock += 1
                    edge_stack.append(idx)
                    stack.append((w, idx, iter(adj[w])))
                    descended = True
                    break
                if disc[w] < disc[v]:
                    # back edge to an ancestor (or a parallel edge to the parent)
                    low[v] = min(low[v], disc[w])
                    edge_stack.append(idx)
            if descended:
                continue

            stack.pop()
            if not stack:
                break
            u = stack[-1][0]
            low[u] = min(low[u], low[v])
            if low[v] >= disc[u]:
                block: List[int] = []
                while True:
                    idx = edge_stack.pop()
                    block.append(idx)
                    if idx == via:
                        break
                blocks.append(block)
                if u == root:
                    root_children += 1
                else:
                    articulation.add(u)

        if root_children > 1:
            articulation.add(root)

    components = []
    for cid, block in enumerate(blocks):
        block_edges = tuple(edges[i] for i in sorted(block))
        nodes = frozenset(n for e in block_edges for n in (e.source, e.target))
        components.append(BiconnectedComponent(cid, nodes, block_edges))

    _LOG.debug(
        "biconnected: %d components, %d articulation points, %d self-loops ignored",
        len(components),
        len(articulation),
        len(loops),
    )
    return Ok(
        BiconnectedResult(
            components=tuple(components),
            articulation_points=frozenset(articulation),
            ignored_edges=tuple(loops),
        )
    )
