"""Exporters for relationship graph visualization."""

from docgraph.exporters.dot import DOTExporter, graph_to_dot
from docgraph.exporters.outline import (
    OutlineExporter,
    graph_edges_tree_text,
    headings_tree_text,
)

__all__ = [
    "DOTExporter",
    "graph_to_dot",
    "OutlineExporter",
    "graph_edges_tree_text",
    "headings_tree_text",
]
