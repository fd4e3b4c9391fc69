import networkx as nx

from citegraph import Direction, Graph


def _citations():
    G = Graph(directed=True)
    G.add_node("W1", {"type": "work", "cited_by_count": 10})
    G.add_node("A1", {"type": "author"})
    G.add_edge("W2", "W1", {"type": "cites"})
    G.add_edge("W3", "W1", {"type": "cites"})
    G.add_edge("W1", "A1", {"type": "authored_by"})
    G.add_edge("W1", "A1", {"type": "authored_by", "position": 2})
    return G


def test_counts_and_payloads():
    G = _citations()
    assert G.directed
    assert G.number_of_nodes() == 4
    assert G.number_of_edges() == 4
    assert len(G) == 4
    assert "W1" in G and "nope" not in G
    assert [] not in G  # unhashable ids are simply absent
    assert G.node_payload("W1")["cited_by_count"] == 10
    assert G.node_payload("W2") is None  # implicitly added endpoint
    assert G.node_type("A1") == "author"


def test_directional_adjacency():
    G = _citations()
    assert {e.source for e in G.in_edges("W1")} == {"W2", "W3"}
    assert {e.target for e in G.out_edges("W1")} == {"A1"}
    assert len(G.out_edges("W1")) == 2  # parallel edges are kept
    assert set(G.neighbors("W1", Direction.BOTH)) == {"W2", "W3", "A1"}
    assert set(G.neighbors("W1", "inbound")) == {"W2", "W3"}
    assert G.degree("W1") == 4
    assert G.degree("W1", "outbound") == 2
    assert G.degree("W1", "inbound") == 2


def test_edge_identity_and_type():
    G = _citations()
    refs = [e.ref for e in G.out_edges("W1")]
    assert refs == [("W1", "A1", 0), ("W1", "A1", 1)]
    e = G.out_edges("W2")[0]
    assert e.type == "cites"
    assert e.other("W2") == "W1"
    assert e.reversed().source == "W1"


def test_undirected_views():
    G = Graph.from_edges([("a", "b"), ("b", "a"), ("b", "c"), ("c", "c")])
    assert not G.directed
    adj = G.undirected_adjacency()
    assert adj == {"a": {"b"}, "b": {"a", "c"}, "c": {"b"}}
    # every incident edge is oriented away from the queried node
    assert all(e.source == "b" for e in G.out_edges("b"))
    assert all(e.target == "b" for e in G.in_edges("b"))
    assert G.incident_edges("b", "inbound") == G.out_edges("b")


def test_subgraph_is_independent():
    G = _citations()
    sub = G.subgraph(["W1", "A1", "missing"])
    assert set(sub.nodes()) == {"W1", "A1"}
    assert sub.number_of_edges() == 2
    sub.add_edge("W1", "X")
    assert "X" not in G


def test_networkx_round_trip():
    K = nx.karate_club_graph()
    G = Graph.from_networkx(K)
    assert G.number_of_nodes() == K.number_of_nodes()
    assert G.number_of_edges() == K.number_of_edges()
    assert G.node_payload(0)["club"] == "Mr. Hi"
    back = G.to_networkx()
    assert isinstance(back, nx.MultiGraph)
    assert back.number_of_edges() == K.number_of_edges()
