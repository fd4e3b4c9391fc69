# ──────────────────────────────────────────────────────────────────────────────
# src/citegraph/orchestrator.py
"""
Central façade for the citation-graph engines.

>>> from citegraph import Graph
>>> from citegraph.orchestrator import run_algorithm, run_algorithms
>>> G = Graph.from_edges([("A", "B"), ("B", "C"), ("C", "A"), ("D", "A")])
>>> single = run_algorithm(G, "biconnected")
>>> batch  = run_algorithms(G, ["k_core_decomposition", "infomap"], seed=7)

Every entry returns a :data:`~citegraph.result.Result`; an unknown algorithm
name is a programming error and raises ``ValueError``.
"""
# -----------------------------------------------------------------------------
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List

from citegraph.graph import Graph
from citegraph.result import Result

# ── engine imports ───────────────────────────────────────────────────────────
from citegraph.algorithms.paths       import find_shortest_path, shortest_path_lengths
from citegraph.algorithms.kcore       import k_core, k_core_decomposition
from citegraph.algorithms.biconnected import biconnected_components
from citegraph.algorithms.infomap     import infomap
from citegraph.algorithms.extraction  import extract_ego_network, extract_reachability_subgraph
from citegraph.algorithms.motifs      import (
    detect_bibliographic_coupling,
    detect_co_citations,
    detect_star_patterns,
    detect_triangles,
    extract_k_truss,
)

_LOG = logging.getLogger(__name__)

# ── registry: key → function ─────────────────────────────────────────────────
_ALGORITHM_REGISTRY: Dict[str, Callable[..., Result]] = {
    # traversal
    "shortest_path":          find_shortest_path,
    "shortest_path_lengths":  shortest_path_lengths,
    "ego_network":            extract_ego_network,
    "reachability":           extract_reachability_subgraph,
    # cohesion
    "k_core":                 k_core,
    "k_core_decomposition":   k_core_decomposition,
    "biconnected":            biconnected_components,
    "k_truss":                extract_k_truss,
    # motifs
    "triangles":              detect_triangles,
    "star_patterns":          detect_star_patterns,
    "co_citations":           detect_co_citations,
    "bibliographic_coupling": detect_bibliographic_coupling,
    # clustering
    "infomap":                infomap,
}


# ── public helpers ───────────────────────────────────────────────────────────
def get_algorithm_names() -> List[str]:
    """Return all supported algorithm keys."""
    return list(_ALGORITHM_REGISTRY.keys())


def _lookup(name: str) -> Callable[..., Result]:
    if name not in _ALGORITHM_REGISTRY:
        raise ValueError(f"Unknown algorithm '{name}'. Available: {get_algorithm_names()}")
    return _ALGORITHM_REGISTRY[name]


def run_algorithm(G: Graph, name: str, *args: Any, **kwargs: Any) -> Result:
    """Run a single engine by key; extra arguments go straight through."""
    fn = _lookup(name)
    _LOG.debug("→ %s(%s)", name, ", ".join(kwargs))
    return fn(G, *args, **kwargs)


# ── batch runner ─────────────────────────────────────────────────────────────
def run_algorithms(
    G: Graph,
    names: Iterable[str],
    **kwargs: Any,
) -> Dict[str, Result]:
    """
    Run several engines on one snapshot.

    Each engine receives *only* the keyword arguments its signature accepts, so
    ``seed`` reaches Infomap while ``source``/``target`` reach the path search.
    """
    funcs = [(key, _lookup(key)) for key in names]

    results: Dict[str, Result] = {}
    for key, fn in funcs:
        allowed = inspect.signature(fn).parameters
        filtered = {k: v for k, v in kwargs.items() if k in allowed and v is not None}
        _LOG.debug("→ %s gets %s", key, list(filtered.keys()))
        results[key] = fn(G, **filtered)

    return results
