import networkx as nx
import pytest

from citegraph import (
    ErrorKind,
    Graph,
    StarType,
    compute_triangle_support,
    detect_bibliographic_coupling,
    detect_co_citations,
    detect_star_patterns,
    detect_triangles,
    extract_k_truss,
)


@pytest.fixture
def citations():
    # W1..W3 cite S1 and S2; W3 also cites S3; A1 authored W1
    G = Graph(directed=True)
    for w in ("W1", "W2", "W3"):
        G.add_edge(w, "S1", {"type": "cites"})
    G.add_edge("W1", "S2", {"type": "cites"})
    G.add_edge("W2", "S2", {"type": "cites"})
    G.add_edge("W3", "S3", {"type": "cites"})
    G.add_edge("W1", "A1", {"type": "authored_by"})
    G.add_edge("W2", "A1", {"type": "authored_by"})
    return G


def _k4_with_tail():
    # K4 on a-d, triangle d-e-f hanging off d, bridge f-g
    edges = [("a", "b"), ("a", "c"), ("a", "d"), ("b", "c"), ("b", "d"), ("c", "d"),
             ("d", "e"), ("e", "f"), ("d", "f"), ("f", "g")]
    return Graph.from_edges(edges)


def test_triangles_on_small_graph():
    tris = detect_triangles(_k4_with_tail()).unwrap()
    assert [t.nodes for t in tris] == [
        ("a", "b", "c"), ("a", "b", "d"), ("a", "c", "d"), ("b", "c", "d"), ("d", "e", "f"),
    ]
    for t in tris:
        assert {frozenset(e.ref[:2]) for e in t.edges} == {
            frozenset(p) for p in [(t.nodes[0], t.nodes[1]), (t.nodes[1], t.nodes[2]), (t.nodes[0], t.nodes[2])]
        }


def test_triangles_ignore_direction_loops_and_parallel_edges():
    G = Graph(directed=True)
    G.add_edge(1, 2)
    G.add_edge(2, 1)
    G.add_edge(2, 3)
    G.add_edge(3, 1)
    G.add_edge(3, 3)
    assert [t.nodes for t in detect_triangles(G).unwrap()] == [(1, 2, 3)]


def test_triangle_count_matches_networkx():
    H = nx.karate_club_graph()
    tris = detect_triangles(Graph.from_networkx(H)).unwrap()
    assert len(tris) == sum(nx.triangles(H).values()) // 3


def test_star_patterns(citations):
    stars = detect_star_patterns(citations, 2).unwrap()
    assert [(s.center, s.degree) for s in stars] == [("S1", 3), ("A1", 2), ("S2", 2)]
    assert stars[0].spokes == ("W1", "W2", "W3")
    assert stars[0].star_type is StarType.IN_STAR

    out = detect_star_patterns(citations, 3, StarType.OUT_STAR).unwrap()
    assert [(s.center, s.degree) for s in out] == [("W1", 3), ("W2", 3)]

    undirected = detect_star_patterns(citations, 4, "undirected").unwrap()
    assert [s.center for s in undirected] == []


def test_star_patterns_invalid_requests(citations):
    assert detect_star_patterns(citations, -1).error.kind is ErrorKind.INVALID_INPUT
    assert detect_star_patterns(citations, 2, "spiral").error.kind is ErrorKind.INVALID_INPUT
    plain = Graph.from_edges([("a", "b")])
    assert detect_star_patterns(plain, 1, StarType.IN_STAR).error.kind is ErrorKind.INVALID_INPUT
    assert [s.center for s in detect_star_patterns(plain, 1).unwrap()] == ["a", "b"]


def test_co_citations(citations):
    pairs = detect_co_citations(citations, edge_types={"cites"}).unwrap()
    by_source = {}
    for p in pairs:
        by_source.setdefault(p.cited_source, []).append(p.citing_papers)
    assert by_source == {
        "S1": [("W1", "W2"), ("W1", "W3"), ("W2", "W3")],
        "S2": [("W1", "W2")],
    }
    strength = {p.citing_papers: p.coupling_strength for p in pairs}
    assert strength == {("W1", "W2"): 2, ("W1", "W3"): 1, ("W2", "W3"): 1}

    # without the type filter the shared author joins in
    everything = detect_co_citations(citations).unwrap()
    assert {p.cited_source for p in everything} == {"S1", "S2", "A1"}
    assert {p.citing_papers: p.coupling_strength for p in everything}[("W1", "W2")] == 3


def test_bibliographic_coupling(citations):
    pairs = detect_bibliographic_coupling(citations, edge_types="cites").unwrap()
    by_source = {}
    for p in pairs:
        by_source.setdefault(p.citing_source, []).append(p.coupled_papers)
    assert by_source == {
        "W1": [("S1", "S2")],
        "W2": [("S1", "S2")],
        "W3": [("S1", "S3")],
    }
    strength = {p.coupled_papers: p.coupling_strength for p in pairs}
    assert strength == {("S1", "S2"): 2, ("S1", "S3"): 1}


def test_pair_detectors_need_direction():
    G = Graph.from_edges([("a", "b"), ("c", "b")])
    assert detect_co_citations(G).error.kind is ErrorKind.INVALID_INPUT
    assert detect_bibliographic_coupling(G).error.kind is ErrorKind.INVALID_INPUT


def test_triangle_support():
    G = _k4_with_tail()
    support = {frozenset(ref[:2]): s for ref, s in compute_triangle_support(G).items()}
    assert support[frozenset("ab")] == 2
    assert support[frozenset("cd")] == 2
    assert support[frozenset("ad")] == 2
    assert support[frozenset("de")] == 1
    assert support[frozenset("fg")] == 0
    assert len(support) == G.number_of_edges()


def test_k_truss_levels():
    G = _k4_with_tail()
    res = extract_k_truss(G, 4).unwrap()
    assert res.max_truss == 4
    assert set(res.subgraph.nodes()) == set("abcd")
    assert res.subgraph.number_of_edges() == 6
    truss = {frozenset(ref[:2]): t for ref, t in res.truss_numbers.items()}
    assert truss[frozenset("ab")] == 4
    assert truss[frozenset("ef")] == 3
    assert truss[frozenset("fg")] == 2

    three = extract_k_truss(G, 3).unwrap()
    assert set(three.subgraph.nodes()) == set("abcdef")
    assert three.subgraph.number_of_edges() == 9
    assert extract_k_truss(G, 2).unwrap().subgraph.number_of_edges() == 10
    assert len(extract_k_truss(G, 5).unwrap().subgraph) == 0


def test_k_truss_matches_networkx():
    H = nx.karate_club_graph()
    G = Graph.from_networkx(H)
    for k in (3, 4, 5):
        ours = extract_k_truss(G, k).unwrap().subgraph
        theirs = nx.k_truss(H, k)
        assert set(ours.nodes()) == set(theirs.nodes())
        assert {frozenset(e.ref[:2]) for e in ours.edges()} == {frozenset(e) for e in theirs.edges()}


@pytest.mark.parametrize("k", [1, -3, 2.5, True])
def test_k_truss_invalid_k(k):
    assert extract_k_truss(_k4_with_tail(), k).error.kind is ErrorKind.INVALID_INPUT


def test_empty_graph_has_no_motifs():
    G = Graph()
    assert detect_triangles(G).unwrap() == []
    assert detect_star_patterns(G, 0).unwrap() == []
    assert extract_k_truss(G, 3).unwrap().max_truss == 0
