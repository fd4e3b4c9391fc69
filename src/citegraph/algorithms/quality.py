"""quality.py
================
Partition quality scores reported alongside clustering results.

* :func:`modularity`   – Newman modularity, delegated to NetworkX
* :func:`conductance`  – cut / min(volume inside, volume outside), per module

Both work on the weighted undirected projection of the graph (weights from
:func:`~citegraph.algorithms.weights.edge_weight`, parallel edges summed,
self-loops dropped), which is what these scores are defined on.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Hashable, Iterable, Mapping, Optional

import networkx as nx

from citegraph.algorithms.weights import WeightConfig, edge_weight
from citegraph.graph import Graph

__all__ = ["weighted_projection", "modularity", "conductance"]

_LOG = logging.getLogger(__name__)


def weighted_projection(graph: Graph, weight: Optional[WeightConfig] = None) -> nx.Graph:
    """Simple undirected NetworkX graph with a ``weight`` attribute per edge."""
    H = nx.Graph()
    H.add_nodes_from(graph.nodes())
    for e in graph.edges():
        if e.source == e.target:
            continue
        w = edge_weight(graph, e, weight)
        if H.has_edge(e.source, e.target):
            H[e.source][e.target]["weight"] += w
        else:
            H.add_edge(e.source, e.target, weight=w)
    return H


def modularity(
    graph: Graph,
    communities: Iterable[Iterable[Any]],
    weight: Optional[WeightConfig] = None,
) -> float:
    """Modularity of a partition covering every node of *graph*."""
    H = weighted_projection(graph, weight)
    if H.number_of_edges() == 0:
        return 0.0
    return float(nx.community.modularity(H, [set(c) for c in communities], weight="weight"))


def conductance(
    graph: Graph,
    node_to_module: Mapping[Any, Hashable],
    weight: Optional[WeightConfig] = None,
) -> Dict[Hashable, float]:
    """Conductance of every module in one pass over the edges.

    A module with no volume on either side of its cut scores ``0.0``.
    """
    volume: Dict[Hashable, float] = {m: 0.0 for m in set(node_to_module.values())}
    cut: Dict[Hashable, float] = dict.fromkeys(volume, 0.0)
    total = 0.0
    for e in graph.edges():
        if e.source == e.target:
            continue
        w = edge_weight(graph, e, weight)
        mu, mv = node_to_module[e.source], node_to_module[e.target]
        volume[mu] += w
        volume[mv] += w
        total += 2 * w
        if mu != mv:
            cut[mu] += w
            cut[mv] += w

    scores: Dict[Hashable, float] = {}
    for m, vol in volume.items():
        denom = min(vol, total - vol)
        scores[m] = cut[m] / denom if denom > 0 else 0.0
    _LOG.debug("conductance for %d modules (total volume %.3g)", len(scores), total)
    return scores
