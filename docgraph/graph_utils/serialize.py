"""Serialization utilities for relationship graphs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from docgraph.content import heading_text, node_plain_text
from docgraph.model import node_ids, node_type

if TYPE_CHECKING:
    from docgraph.model import Graph


def graph_to_dict(graph: Graph) -> dict[str, Any]:
    """Convert a Graph to a JSON-serializable dict.

    Document nodes are replaced by their synthetic ids, so the result holds
    no references into the caller's tree.

    Args:
        graph: The relationship graph.

    Returns:
        Dict with 'nodes' (id, type, text) and 'edges' (rel, source,
        target) keys, suitable for JSON serialization.
    """
    ids = node_ids(graph)

    nodes = []
    for node, node_id in ids.items():
        kind = node_type(node)
        text = heading_text(node) if kind == "heading" else node_plain_text(node)
        nodes.append({
            "id": node_id,
            "type": "root" if node is graph.root else (kind or "node"),
            "text": text,
        })

    return {
        "nodes": nodes,
        "edges": [
            {"rel": edge.rel, "source": ids[edge.source], "target": ids[edge.target]}
            for edge in graph.edges
        ],
    }
