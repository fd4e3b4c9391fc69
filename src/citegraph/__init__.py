"""citegraph: clustering and weighted traversal over citation graphs."""
from citegraph.result import (
    AlgorithmError,
    Err,
    ErrorKind,
    Ok,
    Result,
    ResultError,
)
from citegraph.graph import Direction, Edge, Graph
from citegraph.algorithms.weights import MIN_WEIGHT, NodePropertyTarget, WeightConfig, resolve_weight
from citegraph.algorithms.traversal import TraversalOptions
from citegraph.algorithms.paths import PathResult, find_shortest_path, shortest_path_lengths
from citegraph.algorithms.kcore import Core, KCoreResult, k_core, k_core_decomposition
from citegraph.algorithms.biconnected import (
    BiconnectedComponent,
    BiconnectedResult,
    biconnected_components,
)
from citegraph.algorithms.infomap import InfomapModule, InfomapResult, infomap
from citegraph.algorithms.extraction import (
    Reachability,
    extract_ego_network,
    extract_induced_subgraph,
    extract_reachability_subgraph,
    filter_subgraph,
)
from citegraph.algorithms.motifs import (
    BibliographicCouplingPair,
    CoCitationPair,
    KTrussResult,
    StarPattern,
    StarType,
    Triangle,
    compute_triangle_support,
    detect_bibliographic_coupling,
    detect_co_citations,
    detect_star_patterns,
    detect_triangles,
    extract_k_truss,
)

__version__ = "0.1.0"

__all__ = [
    "AlgorithmError",
    "Err",
    "ErrorKind",
    "Ok",
    "Result",
    "ResultError",
    "Direction",
    "Edge",
    "Graph",
    "MIN_WEIGHT",
    "NodePropertyTarget",
    "WeightConfig",
    "resolve_weight",
    "TraversalOptions",
    "PathResult",
    "find_shortest_path",
    "shortest_path_lengths",
    "Core",
    "KCoreResult",
    "k_core",
    "k_core_decomposition",
    "BiconnectedComponent",
    "BiconnectedResult",
    "biconnected_components",
    "InfomapModule",
    "InfomapResult",
    "infomap",
    "Reachability",
    "extract_ego_network",
    "extract_induced_subgraph",
    "extract_reachability_subgraph",
    "filter_subgraph",
    "BibliographicCouplingPair",
    "CoCitationPair",
    "KTrussResult",
    "StarPattern",
    "StarType",
    "Triangle",
    "compute_triangle_support",
    "detect_bibliographic_coupling",
    "detect_co_citations",
    "detect_star_patterns",
    "detect_triangles",
    "extract_k_truss",
]
