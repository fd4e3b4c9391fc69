"""infomap.py
================
Module detection by minimising the two-level map equation (Rosvall &
Bergstrom, PNAS 105 (2008)).

A random walker's trajectory is described with one index codebook (module
exits) plus one codebook per module.  For a partition with module exit rates
``q_m`` and module visit rates ``p_m = sum(p_i, i in m)`` the expected
description length per step is::

    L = plogp(q) - 2 sum plogp(q_m) - sum plogp(p_i) + sum plogp(q_m + p_m)

with ``q = sum(q_m)`` and ``plogp(x) = x log2 x``.  Steps:

1. **Flow** – undirected graphs have an analytic stationary distribution
   (``p_i = s_i / 2W``); directed graphs use power iteration with uniform
   teleportation.  Teleportation steps are not encoded, so link flow is
   ``p_i * w_ij / w_i``.
2. **Local moving** – in a random order each node joins the neighbouring
   module (or a fresh one) that shrinks ``L`` the most.  Passes repeat until
   a full pass moves nothing.
3. **Aggregation** – modules become super-nodes and step 2 repeats until a
   level merges nothing.
4. **Restarts** – ``num_trials`` runs with different visiting orders, all
   drawn from one generator seeded with ``seed``; the shortest description
   wins.  The one-module partition (``L = H(p)``) is kept as a fallback, so the
   reported compression ratio never drops below 1.

https://www.mapequation.org/publications.html
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import numpy as np

from citegraph.algorithms._core import node_sort_key, plogp
from citegraph.algorithms.quality import conductance, modularity
from citegraph.algorithms.weights import WeightConfig, edge_weight
from citegraph.graph import Graph
from citegraph.result import Ok, Result, convergence_failure, empty_graph, invalid_input

__all__ = ["InfomapModule", "InfomapResult", "infomap"]

_LOG = logging.getLogger(__name__)

# a move must shorten L by more than this to count; absorbs float noise
_MIN_IMPROVEMENT = 1e-10


@dataclass(frozen=True)
class InfomapModule:
    id: int
    nodes: FrozenSet[Any]
    visit_probability: float
    exit_probability: float
    internal_flow: float
    codelength: float
    conductance: float = 0.0

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass(frozen=True)
class InfomapResult:
    modules: Tuple[InfomapModule, ...]
    node_to_module: Dict[Any, int]
    description_length: float
    one_level_length: float
    compression_ratio: float
    num_trials: int
    best_trial: int
    iterations: int
    levels: int
    modularity: float
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description_length": self.description_length,
            "one_level_length": self.one_level_length,
            "compression_ratio": self.compression_ratio,
            "modularity": self.modularity,
            "best_trial": self.best_trial,
            "modules": [
                {
                    "id": m.id,
                    "nodes": sorted(str(n) for n in m.nodes),
                    "visit_probability": m.visit_probability,
                    "exit_probability": m.exit_probability,
                }
                for m in self.modules
            ],
        }


# ---------------------------------------------------------------------------#
# flow network                                                               #
# ---------------------------------------------------------------------------#


@dataclass
class _FlowNetwork:
    nodes: List[Any]
    flow: List[float]
    out_links: List[Dict[int, float]]
    in_links: List[Dict[int, float]]
    node_flow_log: float
    iterations: int = 0


def _link_weights(
    graph: Graph, index: Dict[Any, int], weight: Optional[WeightConfig], directed: bool
) -> Dict[Tuple[int, int], float]:
    links: Dict[Tuple[int, int], float] = {}
    for e in graph.edges():
        if e.source == e.target:
            continue
        i, j = index[e.source], index[e.target]
        if not directed and i > j:
            i, j = j, i
        links[(i, j)] = links.get((i, j), 0.0) + edge_weight(graph, e, weight)
    return links


def _power_iteration(
    n: int,
    links: Dict[Tuple[int, int], float],
    teleportation: float,
    tolerance: float,
    max_iterations: int,
) -> Tuple[Optional[np.ndarray], int]:
    src = np.fromiter((i for i, _ in links), dtype=np.int64, count=len(links))
    dst = np.fromiter((j for _, j in links), dtype=np.int64, count=len(links))
    wgt = np.fromiter(links.values(), dtype=float, count=len(links))
    out_w = np.bincount(src, weights=wgt, minlength=n)
    trans = wgt / out_w[src]
    dangling = out_w == 0

    p = np.full(n, 1.0 / n)
    for it in range(1, max_iterations + 1):
        spread = (1.0 - teleportation) * p[dangling].sum() + teleportation
        p_new = (1.0 - teleportation) * np.bincount(dst, weights=p[src] * trans, minlength=n)
        p_new += spread / n
        p_new /= p_new.sum()
        delta = float(np.abs(p_new - p).sum())
        p = p_new
        if delta < tolerance:
            _LOG.debug("power iteration converged after %d steps (delta=%.3g)", it, delta)
            return p, it
    return None, max_iterations


def _build_flow(
    nodes: List[Any],
    links: Dict[Tuple[int, int], float],
    directed: bool,
    teleportation: float,
    tolerance: float,
    max_iterations: int,
) -> Tuple[Optional[_FlowNetwork], int]:
    n = len(nodes)
    out_links: List[Dict[int, float]] = [{} for _ in range(n)]
    in_links: List[Dict[int, float]] = [{} for _ in range(n)]
    total = sum(links.values())
    steps = 0

    if total <= 0:
        flow = np.full(n, 1.0 / n)
    elif not directed:
        strength = np.zeros(n)
        for (i, j), w in links.items():
            f = w / (2.0 * total)
            strength[i] += w
            strength[j] += w
            out_links[i][j] = in_links[j][i] = f
            out_links[j][i] = in_links[i][j] = f
        flow = strength / (2.0 * total)
    else:
        flow, steps = _power_iteration(n, links, teleportation, tolerance, max_iterations)
        if flow is None:
            return None, steps
        out_w = [0.0] * n
        for (i, _), w in links.items():
            out_w[i] += w
        for (i, j), w in links.items():
            f = float(flow[i]) * w / out_w[i]
            out_links[i][j] = in_links[j][i] = f

    values = flow.tolist()
    network = _FlowNetwork(
        nodes=nodes,
        flow=values,
        out_links=out_links,
        in_links=in_links,
        node_flow_log=sum(plogp(p) for p in values),
        iterations=steps,
    )
    return network, steps


# ---------------------------------------------------------------------------#
# local moving                                                               #
# ---------------------------------------------------------------------------#


class _Level:
    """Super-node graph of one aggregation level."""

    def __init__(self, flow, out_links, in_links, members):
        self.flow: List[float] = flow
        self.out_links: List[Dict[int, float]] = out_links
        self.in_links: List[Dict[int, float]] = in_links
        self.members: List[List[int]] = members

    @classmethod
    def from_network(cls, network: _FlowNetwork) -> "_Level":
        return cls(
            list(network.flow),
            network.out_links,
            network.in_links,
            [[i] for i in range(len(network.flow))],
        )

    def __len__(self) -> int:
        return len(self.flow)

    def aggregate(self, modules: List[int]) -> "_Level":
        k = max(modules) + 1
        flow = [0.0] * k
        out_links: List[Dict[int, float]] = [{} for _ in range(k)]
        in_links: List[Dict[int, float]] = [{} for _ in range(k)]
        members: List[List[int]] = [[] for _ in range(k)]
        for i, m in enumerate(modules):
            flow[m] += self.flow[i]
            members[m].extend(self.members[i])
            for j, f in self.out_links[i].items():
                mj = modules[j]
                if mj != m:
                    out_links[m][mj] = out_links[m].get(mj, 0.0) + f
                    in_links[mj][m] = in_links[mj].get(m, 0.0) + f
        return _Level(flow, out_links, in_links, members)


class _Partition:
    """Module bookkeeping for local moving on one level."""

    def __init__(self, level: _Level, node_flow_log: float):
        n = len(level)
        self.level = level
        self.node_flow_log = node_flow_log
        self.module = list(range(n))
        self.size = [1] * n
        self.mod_flow = list(level.flow)
        self.out_total = [sum(links.values()) for links in level.out_links]
        self.mod_exit = list(self.out_total)
        self.empty: List[int] = []
        self.refresh()

    def refresh(self) -> None:
        self.exit_total = sum(self.mod_exit)
        self.exit_log_exit = sum(plogp(q) for q in self.mod_exit)
        self.flow_log_flow = sum(plogp(q + p) for q, p in zip(self.mod_exit, self.mod_flow))

    def codelength(self) -> float:
        return (
            plogp(self.exit_total)
            - 2.0 * self.exit_log_exit
            + self.flow_log_flow
            - self.node_flow_log
        )

    def try_move(self, i: int) -> bool:
        """Move node *i* to the module that shortens L the most, if any."""
        level = self.level
        a = self.module[i]
        out_to: Dict[int, float] = {}
        in_from: Dict[int, float] = {}
        for j, f in level.out_links[i].items():
            m = self.module[j]
            out_to[m] = out_to.get(m, 0.0) + f
        for j, f in level.in_links[i].items():
            m = self.module[j]
            in_from[m] = in_from.get(m, 0.0) + f

        candidates = sorted((set(out_to) | set(in_from)) - {a})
        if self.size[a] > 1 and self.empty:
            candidates.append(self.empty[-1])
        if not candidates:
            return False

        p_i = level.flow[i]
        out_i = self.out_total[i]
        qa, pa = self.mod_exit[a], self.mod_flow[a]
        qa_new = qa - out_i + out_to.get(a, 0.0) + in_from.get(a, 0.0)
        pa_new = pa - p_i
        a_exit_log = plogp(qa_new) - plogp(qa)
        a_flow_log = plogp(qa_new + pa_new) - plogp(qa + pa)
        old_index = plogp(self.exit_total)

        best, best_delta, best_terms = None, -_MIN_IMPROVEMENT, None
        for b in candidates:
            qb, pb = self.mod_exit[b], self.mod_flow[b]
            qb_new = qb + out_i - out_to.get(b, 0.0) - in_from.get(b, 0.0)
            pb_new = pb + p_i
            d_exit = (qa_new - qa) + (qb_new - qb)
            d_exit_log = a_exit_log + plogp(qb_new) - plogp(qb)
            d_flow_log = a_flow_log + plogp(qb_new + pb_new) - plogp(qb + pb)
            delta = plogp(self.exit_total + d_exit) - old_index - 2.0 * d_exit_log + d_flow_log
            if delta < best_delta:
                best, best_delta = b, delta
                best_terms = (qb_new, pb_new, d_exit, d_exit_log, d_flow_log)
        if best is None:
            return False

        qb_new, pb_new, d_exit, d_exit_log, d_flow_log = best_terms
        self.mod_exit[a], self.mod_flow[a] = max(qa_new, 0.0), max(pa_new, 0.0)
        self.mod_exit[best], self.mod_flow[best] = max(qb_new, 0.0), pb_new
        self.exit_total += d_exit
        self.exit_log_exit += d_exit_log
        self.flow_log_flow += d_flow_log
        if self.size[best] == 0:
            self.empty.remove(best)
        self.size[a] -= 1
        self.size[best] += 1
        if self.size[a] == 0:
            self.mod_exit[a] = self.mod_flow[a] = 0.0
            self.empty.append(a)
        self.module[i] = best
        return True

    def compact(self) -> List[int]:
        """Module labels renumbered ``0..k-1`` by first appearance."""
        relabel: Dict[int, int] = {}
        return [relabel.setdefault(m, len(relabel)) for m in self.module]


def _run_trial(
    network: _FlowNetwork,
    rng: np.random.Generator,
    max_iterations: int,
    multilevel: bool,
) -> Tuple[Optional[List[int]], int, int]:
    """One restart; return ``(assignment, passes, levels)``, assignment ``None``
    when some level did not settle within ``max_iterations`` passes."""
    level = _Level.from_network(network)
    passes = 0
    levels = 0
    while True:
        part = _Partition(level, network.node_flow_log)
        settled = False
        for _ in range(max_iterations):
            passes += 1
            part.refresh()
            moved = 0
            for i in rng.permutation(len(level)):
                if part.try_move(int(i)):
                    moved += 1
            if not moved:
                settled = True
                break
        levels += 1
        if not settled:
            return None, passes, levels

        modules = part.compact()
        merged = max(modules) + 1 < len(level)
        level = level.aggregate(modules)
        if not merged or not multilevel:
            break

    assignment = [0] * len(network.flow)
    for m, members in enumerate(level.members):
        for i in members:
            assignment[i] = m
    return assignment, passes, levels


def _codelength(network: _FlowNetwork, assignment: List[int]):
    """Description length of *assignment* plus per-module statistics."""
    k = max(assignment) + 1
    p = [0.0] * k
    q = [0.0] * k
    internal = [0.0] * k
    node_log = [0.0] * k
    for i, m in enumerate(assignment):
        p[m] += network.flow[i]
        node_log[m] += plogp(network.flow[i])
        for j, f in network.out_links[i].items():
            if assignment[j] == m:
                internal[m] += f
            else:
                q[m] += f
    index_length = plogp(sum(q)) - sum(plogp(x) for x in q)
    module_lengths = [plogp(q[m] + p[m]) - plogp(q[m]) - node_log[m] for m in range(k)]
    return index_length + sum(module_lengths), p, q, internal, module_lengths


# ---------------------------------------------------------------------------#
# public API                                                                 #
# ---------------------------------------------------------------------------#


def _validate(num_trials, max_iterations, teleportation, tolerance):
    for name, value in (("num_trials", num_trials), ("max_iterations", max_iterations)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            return invalid_input(f"{name} must be a positive integer, got {value!r}", **{name: value})
    if not 0.0 <= teleportation < 1.0:
        return invalid_input(
            f"teleportation must be in [0, 1), got {teleportation!r}", teleportation=teleportation
        )
    if not tolerance > 0:
        return invalid_input(f"tolerance must be positive, got {tolerance!r}", tolerance=tolerance)
    return None


def infomap(
    graph: Graph,
    *,
    weight: Optional[WeightConfig] = None,
    num_trials: int = 10,
    max_iterations: int = 100,
    seed: Optional[int] = None,
    teleportation: float = 0.15,
    tolerance: float = 1e-6,
    multilevel: bool = True,
    directed: Optional[bool] = None,
) -> Result[InfomapResult]:
    """Partition *graph* into modules that compress random-walk flow.

    Parameters
    ----------
    graph
        Graph snapshot; never modified.
    weight
        Link weights (default: every edge weighs 1, parallel edges add up).
    num_trials
        Independent restarts; the shortest description wins.
    max_iterations
        Budget for power-iteration steps and for local-moving passes per level.
    seed
        Same seed, same graph → same modules.  ``None`` draws fresh entropy.
    teleportation
        Teleportation rate of the directed random walk.
    tolerance
        L1 change below which power iteration has converged.
    multilevel
        Aggregate modules and keep moving until nothing merges.
    directed
        ``None`` follows the graph; ``False`` treats a directed graph as undirected.
    """
    if not isinstance(graph, Graph):
        raise TypeError(f"expected a citegraph Graph, got {type(graph).__name__}")
    problem = _validate(num_trials, max_iterations, teleportation, tolerance)
    if problem is not None:
        return problem
    if graph.is_empty():
        return empty_graph("cannot cluster an empty graph")

    started = time.perf_counter()
    directed = graph.directed and directed is not False
    nodes = sorted(graph.nodes(), key=node_sort_key)
    links = _link_weights(graph, {v: i for i, v in enumerate(nodes)}, weight, directed)
    total = sum(links.values())
    if not math.isfinite(2.0 * total):
        return invalid_input(
            f"link weights add up to a non-finite total ({total!r})", total=total
        )
    network, steps = _build_flow(nodes, links, directed, teleportation, tolerance, max_iterations)
    if network is None:
        return convergence_failure(
            steps, f"stationary flow did not converge within {steps} power-iteration steps"
        )

    one_level = -network.node_flow_log
    master = np.random.default_rng(seed)
    trial_seeds = master.integers(0, 2**32, size=num_trials)

    best: Optional[Tuple[float, int, List[int], int, int]] = None
    attempted = 0
    for trial, trial_seed in enumerate(trial_seeds):
        rng = np.random.default_rng(int(trial_seed))
        assignment, passes, levels = _run_trial(network, rng, max_iterations, multilevel)
        attempted += passes
        if assignment is None:
            _LOG.debug("trial %d did not settle within %d passes", trial, max_iterations)
            continue
        length = _codelength(network, assignment)[0]
        _LOG.debug("trial %d: L=%.6f bits, %d passes, %d levels", trial, length, passes, levels)
        if best is None or length < best[0]:
            best = (length, trial, assignment, passes, levels)

    if best is None:
        return convergence_failure(
            attempted,
            f"none of {num_trials} trials converged within {max_iterations} passes per level",
        )

    length, best_trial, assignment, passes, levels = best
    if one_level <= length + _MIN_IMPROVEMENT and len(set(assignment)) > 1:
        _LOG.debug("one-module partition (%.6f) beats best trial (%.6f)", one_level, length)
        assignment = [0] * len(assignment)

    length, p, q, internal, module_lengths = _codelength(network, assignment)
    if length > 0:
        ratio = one_level / length
    else:
        ratio = 1.0 if one_level <= 0 else math.inf

    groups: Dict[int, List[Any]] = {}
    for i, m in enumerate(assignment):
        groups.setdefault(m, []).append(network.nodes[i])
    ranked = sorted(groups, key=lambda m: (-p[m], node_sort_key(groups[m][0])))
    renumber = {m: rank for rank, m in enumerate(ranked)}
    node_to_module = {network.nodes[i]: renumber[m] for i, m in enumerate(assignment)}
    scores = conductance(graph, node_to_module, weight)

    modules = tuple(
        InfomapModule(
            id=renumber[m],
            nodes=frozenset(groups[m]),
            visit_probability=p[m],
            exit_probability=q[m],
            internal_flow=internal[m],
            codelength=module_lengths[m],
            conductance=scores[renumber[m]],
        )
        for m in ranked
    )
    result = InfomapResult(
        modules=modules,
        node_to_module=node_to_module,
        description_length=length,
        one_level_length=one_level,
        compression_ratio=ratio,
        num_trials=num_trials,
        best_trial=best_trial,
        iterations=passes,
        levels=levels,
        modularity=modularity(graph, [m.nodes for m in modules], weight),
        metadata={
            "seed": seed,
            "directed": directed,
            "power_iterations": network.iterations,
            "runtime": time.perf_counter() - started,
        },
    )
    _LOG.debug(
        "infomap: %d modules, L=%.6f bits (one-level %.6f), trial %d",
        len(modules),
        length,
        one_level,
        best_trial,
    )
    return Ok(result)
