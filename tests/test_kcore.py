import networkx as nx
import pytest

from citegraph import ErrorKind, Graph, k_core, k_core_decomposition
from citegraph.algorithms.kcore import core_numbers


def _reference(G: Graph):
    simple = nx.Graph(G.to_networkx())
    simple.remove_edges_from(list(nx.selfloop_edges(simple)))
    return nx.core_number(simple)


def test_path_scenario():
    G = Graph.from_edges([("A", "B"), ("B", "C"), ("C", "D")])
    res = k_core_decomposition(G).unwrap()
    assert res.degeneracy == 1
    assert list(res.cores) == [1]
    assert res.cores[1].nodes == {"A", "B", "C", "D"}
    assert res.core_numbers == {"A": 1, "B": 1, "C": 1, "D": 1}


def test_matches_networkx_on_karate():
    G = Graph.from_networkx(nx.karate_club_graph())
    res = k_core_decomposition(G).unwrap()
    assert res.core_numbers == _reference(G)
    assert res.degeneracy == 4


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_matches_networkx_on_random_graphs(seed):
    G = Graph.from_networkx(nx.gnm_random_graph(80, 300, seed=seed, directed=True))
    assert core_numbers(G) == _reference(G)


def test_invariants():
    G = Graph.from_networkx(nx.powerlaw_cluster_graph(120, 3, 0.4, seed=11))
    res = k_core_decomposition(G).unwrap()
    assert res.degeneracy == max(res.core_numbers.values())
    for k in range(1, res.degeneracy):
        assert res.cores[k + 1].nodes <= res.cores[k].nodes
    for k, core in res.cores.items():
        sub = core.subgraph(G)
        # every node keeps at least k distinct neighbours inside its core
        adj = sub.undirected_adjacency()
        assert all(len(adj[n]) >= k for n in core.nodes)
    assert set(res.removal_order) == set(G.nodes())
    assert sum(len(s) for s in res.shells.values()) == len(G)


def test_removal_order_is_non_decreasing_in_core_number():
    G = Graph.from_networkx(nx.karate_club_graph())
    res = k_core_decomposition(G).unwrap()
    seq = [res.core_numbers[n] for n in res.removal_order]
    assert seq == sorted(seq)


def test_multigraph_and_self_loops_do_not_inflate_degree():
    G = Graph.from_edges([("a", "b"), ("a", "b"), ("a", "b"), ("b", "b")])
    res = k_core_decomposition(G).unwrap()
    assert res.core_numbers == {"a": 1, "b": 1}


def test_edgeless_graph():
    G = Graph()
    G.add_node("x")
    G.add_node("y")
    res = k_core_decomposition(G).unwrap()
    assert res.degeneracy == 0
    assert res.cores == {}
    assert res.core(0).nodes == {"x", "y"}


def test_k_core_requests():
    G = Graph.from_edges([("A", "B"), ("B", "C"), ("C", "A"), ("D", "A")])
    core = k_core(G, 2).unwrap()
    assert core.k == 2 and core.nodes == {"A", "B", "C"}
    assert k_core(G, 0).unwrap().nodes == {"A", "B", "C", "D"}

    res = k_core(G, 3)
    assert not res.ok
    assert res.error.kind is ErrorKind.INVALID_K
    assert res.error.details == {"k": 3, "degeneracy": 2}

    assert k_core(G, -1).error.kind is ErrorKind.INVALID_INPUT


def test_empty_graph():
    assert k_core_decomposition(Graph()).error.kind is ErrorKind.EMPTY_GRAPH
    assert k_core(Graph(), 1).error.kind is ErrorKind.EMPTY_GRAPH
