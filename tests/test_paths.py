import math
import random

import networkx as nx
import pytest

from citegraph import (
    ErrorKind,
    Graph,
    MIN_WEIGHT,
    TraversalOptions,
    WeightConfig,
    find_shortest_path,
    shortest_path_lengths,
)
from citegraph.algorithms.weights import edge_weight


def _line():
    G = Graph(directed=True)
    G.add_edge("A", "B", {"weight": 2})
    G.add_edge("B", "C", {"weight": 3})
    return G


def test_default_weight_is_hop_count():
    res = find_shortest_path(_line(), "A", "C")
    assert res.ok
    p = res.value
    assert p.found
    assert p.path == ("A", "B", "C")
    assert p.distance == 2
    assert p.hops == 2


def test_edge_property_weight():
    p = find_shortest_path(_line(), "A", "C", weight=WeightConfig(property="weight")).unwrap()
    assert p.distance == 5
    assert [e.ref for e in p.edges] == [("A", "B", 0), ("B", "C", 0)]


def test_source_equals_target():
    p = find_shortest_path(_line(), "B", "B").unwrap()
    assert p.found and p.path == ("B",) and p.distance == 0 and p.edges == ()


def test_unreachable_is_not_an_error():
    res = find_shortest_path(_line(), "C", "A")
    assert res.ok
    p = res.value
    assert not p.found
    assert p.path == () and p.edges == ()
    assert p.distance == math.inf
    assert p.to_dict()["distance"] is None


def test_direction_options():
    G = _line()
    inbound = TraversalOptions(direction="inbound")
    p = find_shortest_path(G, "C", "A", options=inbound).unwrap()
    assert p.found and p.path == ("C", "B", "A")
    # edges keep their stored orientation
    assert p.edges[0].ref == ("B", "C", 0)
    assert find_shortest_path(G, "C", "A", options=TraversalOptions(direction="both")).unwrap().found
    assert find_shortest_path(G, "C", "A", options=TraversalOptions(directed=False)).unwrap().found


def test_malformed_input():
    G = _line()
    for res in (
        find_shortest_path(G, "X", "A"),
        find_shortest_path(G, "A", "X"),
        find_shortest_path(G, "A", "C", options=TraversalOptions(max_depth=-1)),
        shortest_path_lengths(G, "X"),
    ):
        assert not res.ok
        assert res.error.kind is ErrorKind.INVALID_INPUT


def test_type_filters():
    G = Graph(directed=True)
    G.add_node("W1", {"type": "work"})
    G.add_node("W2", {"type": "work"})
    G.add_node("A1", {"type": "author"})
    G.add_node("W3", {"type": "work"})
    G.add_edge("W1", "A1", {"type": "authored_by"})
    G.add_edge("A1", "W3", {"type": "authored"})
    G.add_edge("W1", "W2", {"type": "cites"})
    G.add_edge("W2", "W3", {"type": "cites"})

    p = find_shortest_path(G, "W1", "W3").unwrap()
    assert p.path == ("W1", "A1", "W3")  # lexical tie-break: "A1" < "W2"

    only_cites = TraversalOptions(edge_types={"cites"})
    assert find_shortest_path(G, "W1", "W3", options=only_cites).unwrap().path == ("W1", "W2", "W3")

    only_works = TraversalOptions(node_types="work")
    assert find_shortest_path(G, "W1", "W3", options=only_works).unwrap().path == ("W1", "W2", "W3")

    no_route = TraversalOptions(edge_types={"authored_by"})
    assert not find_shortest_path(G, "W1", "W3", options=no_route).unwrap().found


def test_edge_property_filter():
    G = Graph(directed=True)
    G.add_edge("a", "b", {"year": 2019, "kind": "x"})
    G.add_edge("b", "d", {"year": 2020, "kind": "x"})
    G.add_edge("a", "c", {"year": 2022, "kind": "y"})
    G.add_edge("c", "d", {"year": 2023, "kind": "y"})

    recent = TraversalOptions(edge_filter={"year": lambda y: y is not None and y >= 2021})
    assert find_shortest_path(G, "a", "d", options=recent).unwrap().path == ("a", "c", "d")
    assert find_shortest_path(G, "a", "d", options=TraversalOptions(edge_filter={"kind": "x"})).unwrap().path == ("a", "b", "d")
    members = TraversalOptions(edge_filter={"kind": {"y", "z"}})
    assert find_shortest_path(G, "a", "d", options=members).unwrap().path == ("a", "c", "d")
    both = TraversalOptions(edge_filter={"kind": "x", "year": lambda y: y > 2019})
    assert not find_shortest_path(G, "a", "d", options=both).unwrap().found


def test_max_depth_is_a_hop_ceiling():
    # cheap route takes three hops, expensive shortcut takes one
    G = Graph(directed=True)
    G.add_edge("s", "a", {"w": 1})
    G.add_edge("a", "b", {"w": 1})
    G.add_edge("b", "t", {"w": 1})
    G.add_edge("s", "t", {"w": 10})
    G.add_edge("a", "t", {"w": 5})
    cfg = WeightConfig(property="w")

    assert find_shortest_path(G, "s", "t", weight=cfg).unwrap().distance == 3
    p = find_shortest_path(G, "s", "t", weight=cfg, options=TraversalOptions(max_depth=2)).unwrap()
    assert p.path == ("s", "a", "t") and p.distance == 6
    p = find_shortest_path(G, "s", "t", weight=cfg, options=TraversalOptions(max_depth=1)).unwrap()
    assert p.path == ("s", "t") and p.distance == 10
    p = find_shortest_path(G, "s", "t", weight=cfg, options=TraversalOptions(max_depth=0)).unwrap()
    assert not p.found

    lengths = shortest_path_lengths(G, "s", weight=cfg, options=TraversalOptions(max_depth=1)).unwrap()
    assert lengths == {"s": 0.0, "a": 1.0, "t": 10.0}


def test_distance_is_sum_of_path_weights():
    rnd = random.Random(7)
    K = nx.gnm_random_graph(60, 180, seed=7)
    for u, v in K.edges():
        K[u][v]["w"] = rnd.uniform(0.5, 10.0)
    G = Graph.from_networkx(K)
    cfg = WeightConfig(property="w")

    for target in (5, 17, 33, 59):
        p = find_shortest_path(G, 0, target, weight=cfg).unwrap()
        if not nx.has_path(K, 0, target):
            assert not p.found
            continue
        assert p.found
        steps = [edge_weight(G, e, cfg) for e in p.edges]
        assert p.distance == sum(steps)
        assert p.distance == pytest.approx(nx.dijkstra_path_length(K, 0, target, weight="w"))
        # cumulative distance never decreases along the path
        running = [sum(steps[:i]) for i in range(len(steps) + 1)]
        assert running == sorted(running)


def test_lengths_match_networkx():
    K = nx.karate_club_graph()
    G = Graph.from_networkx(K)
    lengths = shortest_path_lengths(G, 0).unwrap()
    assert lengths == {n: float(d) for n, d in nx.single_source_shortest_path_length(K, 0).items()}


def test_infinite_callback_weight_stays_finite():
    G = Graph(directed=True)
    G.add_edge("A", "B", {"weight": math.inf})
    G.add_edge("B", "C", {"weight": 2})
    G.add_edge("A", "D", {"weight": 3})
    G.add_edge("D", "C", {"weight": 3})
    cfg = WeightConfig(weight_fn=lambda e, s, t: e["weight"])
    p = find_shortest_path(G, "A", "C", weight=cfg).unwrap()
    assert p.path == ("A", "B", "C")
    assert p.distance == pytest.approx(2 + MIN_WEIGHT)
    assert math.isfinite(p.distance)


def test_callback_returning_none_uses_default_weight():
    G = Graph(directed=True)
    G.add_edge("A", "B", {})
    G.add_edge("B", "C", {"weight": 1})
    cfg = WeightConfig(weight_fn=lambda e, s, t: e.get("weight"), default_weight=4)
    p = find_shortest_path(G, "A", "C", weight=cfg).unwrap()
    assert p.distance == 5


def test_options_are_hashable():
    recent = lambda year: year >= 2000  # noqa: E731
    a = TraversalOptions(edge_types={"cites"}, edge_filter={"year": recent})
    b = TraversalOptions(edge_types=["cites"], edge_filter={"year": recent})
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b, TraversalOptions()}) == 2
