#!/usr/bin/env python3
"""
CLI für citegraph: Clustering- und Pfad-Analysen auf einem Zitationsgraphen.

Beispiel:
  citegraph-cli citations.edgelist --algorithms k_core_decomposition biconnected infomap \
      --directed --seed 42 --out results.json
  citegraph-cli citations.graphml -a shortest_path --source W1 --target W9 --weight-property weight
  citegraph-cli citations.edgelist -d -a co_citations star_patterns --min-degree 10
"""
import argparse
import csv
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import networkx as nx

from citegraph.algorithms.weights import WeightConfig
from citegraph.graph import Graph
from citegraph.orchestrator import get_algorithm_names, run_algorithms
from citegraph.result import Result

_LOG = logging.getLogger("citegraph.cli")

# Pflichtargumente je Analyse
_REQUIRED_ARGS = {
    "shortest_path":         ("source", "target"),
    "shortest_path_lengths": ("source",),
    "ego_network":           ("source", "radius"),
    "reachability":          ("source",),
    "k_core":                ("k",),
    "k_truss":               ("k",),
    "star_patterns":         ("min_degree",),
}

# Mapping von Dateiendungen zu NetworkX-Ladern
_FORMAT_READERS = {
    ".edgelist": nx.read_edgelist,
    ".adjlist":  nx.read_adjlist,
    ".gml":      nx.read_gml,
    ".graphml":  nx.read_graphml,
}


def _infer_and_load_graph(path: str, fmt: Optional[str] = None, directed: bool = False) -> Graph:
    """Lädt einen Graphen entweder nach explizitem Format oder anhand der Dateiendung."""
    if fmt:
        reader = _FORMAT_READERS.get("." + fmt.lower())
        if reader is None:
            raise ValueError(f"Unbekanntes Format: {fmt}")
    else:
        reader = next(
            (r for ext, r in _FORMAT_READERS.items() if path.endswith(ext)),
            nx.read_edgelist,  # Fallback auf einfache edgelist
        )

    if reader in (nx.read_edgelist, nx.read_adjlist):
        G = reader(path, create_using=nx.MultiDiGraph if directed else nx.MultiGraph)
    else:
        G = reader(path)
        if directed and not G.is_directed():
            G = G.to_directed()
    return Graph.from_networkx(G)


def _serialise(value: Any) -> Any:
    """Ergebnisobjekte in JSON-taugliche Strukturen umwandeln."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Graph):
        return {"nodes": sorted(str(n) for n in value.nodes()), "edges": value.number_of_edges()}
    if isinstance(value, dict):
        return {str(k): v for k, v in value.items()}
    if isinstance(value, list):
        return [_serialise(v) for v in value]
    return value


def _summarise(results: Dict[str, Result]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, res in results.items():
        if res.ok:
            out[name] = _serialise(res.value)
        else:
            out[name] = {"error": res.error.to_dict()}
    return out


def _write_json(data: dict, out_path: str):
    with open(out_path, "w") as fp:
        json.dump(data, fp, indent=2)


def _write_csv(G: Graph, results: Dict[str, Result], out_path: str):
    """
    CSV mit Zeilen: node, core_number, module, articulation_point
    """
    per_node: Dict[str, Dict[Any, Any]] = {}
    for name, res in results.items():
        if not res.ok:
            continue
        value = res.value
        if hasattr(value, "core_numbers"):
            per_node["core_number"] = value.core_numbers
        elif hasattr(value, "node_to_module"):
            per_node["module"] = value.node_to_module
        elif hasattr(value, "articulation_points"):
            per_node["articulation_point"] = {n: int(n in value.articulation_points) for n in G}
    columns = list(per_node)
    with open(out_path, "w", newline="") as fp:
        writer = csv.writer(fp)
        # Header
        writer.writerow(["node"] + columns)
        # Zeilen
        for node in sorted(G.nodes(), key=str):
            writer.writerow([node] + [per_node[c].get(node, "") for c in columns])


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="citegraph-cli",
        description="Berechne Cluster-, Kern- und Pfad-Analysen auf einem Zitationsgraphen."
    )
    parser.add_argument("graph", help="Pfad zur Graph-Datei (edgelist, adjlist, gml, graphml)")
    parser.add_argument(
        "--format", "-f",
        choices=["edgelist", "adjlist", "gml", "graphml"],
        default=None,
        help="Falls angegeben, zwingend dieses Format verwenden"
    )
    parser.add_argument(
        "--algorithms", "-a",
        nargs="+",
        required=True,
        choices=get_algorithm_names(),
        help="Zu berechnende Analysen. Verfügbare: " + ", ".join(get_algorithm_names())
    )
    parser.add_argument("--directed", "-d", action="store_true", help="Graph als gerichtet laden")
    parser.add_argument("--source", default=None, help="Startknoten für shortest_path / ego_network / reachability")
    parser.add_argument("--target", default=None, help="Zielknoten für shortest_path")
    parser.add_argument("--radius", type=int, default=None, help="Radius für ego_network")
    parser.add_argument("-k", type=int, default=None, help="k für k_core / k_truss")
    parser.add_argument("--min-degree", type=int, default=None, help="Mindestgrad für star_patterns")
    parser.add_argument(
        "--direction",
        choices=["forward", "backward"],
        default=None,
        help="Richtung für reachability (forward: zitierte Arbeiten, backward: zitierende)"
    )
    parser.add_argument(
        "--edge-types",
        nargs="+",
        default=None,
        help="Nur diese Kantentypen für co_citations / bibliographic_coupling"
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed für Infomap (reproduzierbar)")
    parser.add_argument("--trials", type=int, default=None, help="Anzahl Infomap-Durchläufe")
    parser.add_argument("--weight-property", default=None, help="Kantenattribut als Gewicht")
    parser.add_argument("--invert", action="store_true", help="Gewichte invertieren (1/w)")
    parser.add_argument(
        "--out", "-o",
        default=None,
        help="Ausgabepfad. Endet auf .json oder .csv (stdout, falls nicht gesetzt)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug-Logging einschalten")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    for name, needed in _REQUIRED_ARGS.items():
        missing = [
            f"--{a.replace('_', '-')}" if len(a) > 1 else f"-{a}"
            for a in needed
            if getattr(args, a) is None
        ]
        if name in args.algorithms and missing:
            parser.error(f"{name} benötigt {', '.join(missing)}")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        G = _infer_and_load_graph(args.graph, args.format, args.directed)
    except (OSError, ValueError, nx.NetworkXError) as e:
        print(f"Fehler beim Laden des Graphen: {e}", file=sys.stderr)
        return 1

    weight = None
    if args.weight_property or args.invert:
        weight = WeightConfig(property=args.weight_property, invert=args.invert)

    results = run_algorithms(
        G,
        args.algorithms,
        source=args.source,
        target=args.target,
        seeds=args.source,
        sources=args.source,
        direction=args.direction,
        min_degree=args.min_degree,
        edge_types=args.edge_types,
        radius=args.radius,
        k=args.k,
        seed=args.seed,
        num_trials=args.trials,
        weight=weight,
    )
    summary = _summarise(results)

    # Ausgabe
    if args.out:
        if args.out.endswith(".csv"):
            _write_csv(G, results, args.out)
        else:
            # Default JSON
            _write_json(summary, args.out)
        print(f"Ergebnisse geschrieben nach {args.out}")
    else:
        # stdout als JSON
        json.dump(summary, sys.stdout, indent=2)
        sys.stdout.write("\n")

    failed = [name for name, res in results.items() if not res.ok]
    for name in failed:
        _LOG.warning("%s: %s", name, results[name].error.message)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
