"""Computed properties for document relationship graphs."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import networkx as nx

from docgraph.model import node_ids, node_type

if TYPE_CHECKING:
    from docgraph.model import Graph, Relationship

# Type aliases
NodeId = str
RelPredicate = Callable[[str], bool]


def to_networkx(graph: Graph, rel_test: RelPredicate | None = None) -> nx.MultiDiGraph:
    """Build a NetworkX MultiDiGraph from the graph's edges.

    Nodes are keyed by their synthetic id (``n0``, ``n1``, ...) and carry
    the document node in the ``node`` attribute and its kind in ``type``.
    Edges carry their relationship in ``rel``; parallel edges are kept.

    Args:
        graph: The relationship graph.
        rel_test: Optional predicate selecting the relationships to include.
                  Nodes are added for every edge regardless.

    Returns:
        MultiDiGraph with edges from source to target.
    """
    ids = node_ids(graph)
    g = nx.MultiDiGraph()

    for node, node_id in ids.items():
        g.add_node(node_id, node=node, type=node_type(node) or "node")

    for edge in graph.edges:
        if rel_test is not None and not rel_test(edge.rel):
            continue
        g.add_edge(ids[edge.source], ids[edge.target], rel=edge.rel)

    return g


def _rel_graph(graph: Graph, rel: Relationship) -> nx.DiGraph:
    return nx.DiGraph(to_networkx(graph, lambda r: r == rel))


def check_acyclic(graph: Graph, rel: Relationship) -> bool:
    """Verify that edges of one relationship form no cycle.

    Hierarchy reconstruction assumes this for the relationship it follows.

    Returns:
        True if the relationship is acyclic, False if cycles exist.
    """
    return nx.is_directed_acyclic_graph(_rel_graph(graph, rel))


def find_cycles(graph: Graph, rel: Relationship) -> list[list[NodeId]]:
    """Find all cycles among edges of one relationship.

    Returns:
        List of cycles, where each cycle is a list of node IDs.
        Empty list if the relationship is acyclic.
    """
    g = _rel_graph(graph, rel)

    try:
        return list(nx.simple_cycles(g))
    except nx.NetworkXError:
        return []


def compute_graph_stats(graph: Graph) -> dict[str, Any]:
    """Compute summary statistics for the graph.

    Returns:
        Dict with keys:
        - node_count: Number of distinct nodes referenced by edges
        - edge_count: Total number of edges
        - edges_by_rel: Dict mapping relationship to edge count
        - nodes_by_type: Dict mapping node kind to count
        - rel_count: Number of distinct relationships
    """
    g = to_networkx(graph)

    edges_by_rel: dict[str, int] = {}
    for edge in graph.edges:
        edges_by_rel[edge.rel] = edges_by_rel.get(edge.rel, 0) + 1

    nodes_by_type: dict[str, int] = {}
    for _, kind in g.nodes(data="type"):
        nodes_by_type[kind] = nodes_by_type.get(kind, 0) + 1

    return {
        "node_count": g.number_of_nodes(),
        "edge_count": g.number_of_edges(),
        "edges_by_rel": edges_by_rel,
        "nodes_by_type": nodes_by_type,
        "rel_count": len(edges_by_rel),
    }
