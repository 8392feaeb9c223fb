"""Relationship graphs over markdown document trees."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from docgraph.governance import (
    GraphRulesBuilder,
    ast_graph_edges,
    augment_rule,
    build_graph,
    create_graph_rules_builder,
    dedupe_edges_rule,
    filter_edges_rule,
    finalize_rule,
    logging_tap,
    source_rule,
    tap_rule,
    transform_rule,
)
from docgraph.model import Edge, Graph, RuleContext, define_relationships, node_ids
from docgraph.styles import StyleRegistry, ThemeValidationError
from docgraph.exporters.dot import DOTExporter, graph_to_dot
from docgraph.exporters.outline import OutlineExporter
from docgraph.graph_utils import build_hierarchy_trees, graph_to_dict, visit_graph, visit_hier
from docgraph.rules import typical_rules

if TYPE_CHECKING:
    from docgraph.model import Node

__version__ = "0.1.0"

# Supported output formats
FORMATS = ["dot", "json", "outline"]


def visualize(
    graph: Graph,
    output: str | Path | None = None,
    format: str = "dot",
    theme: str | Path | None = None,
    max_label_chars: int = 60,
) -> str:
    """Render a relationship graph.

    Args:
        graph: Graph to render.
        output: Optional output file path. The content is returned either way.
        format: Output format - "dot", "json", or "outline".
        theme: Optional path to theme YAML file (dot only).
        max_label_chars: Maximum node label length before truncation.

    Returns:
        Rendered content as string (DOT, JSON, or tree text).

    Raises:
        ValueError: If format is not supported.
        ThemeValidationError: If the theme file is malformed.
    """
    if format not in FORMATS:
        raise ValueError(
            f"Unsupported format: {format}. "
            f"Supported formats: {', '.join(FORMATS)}"
        )

    if format == "dot":
        styles = StyleRegistry(theme=theme, max_label_chars=max_label_chars)
        content = DOTExporter(styles).export(graph)
    elif format == "json":
        content = json.dumps(graph_to_dict(graph), indent=2)
    else:
        content = OutlineExporter().export(graph)

    if output:
        Path(output).write_text(content)

    return content


def load(root: Node) -> Graph:
    """Build the graph of a document tree with the standard rules.

    Args:
        root: Root node of an mdast-shaped tree.

    Returns:
        Graph of the typical pipeline's edges.
    """
    return build_graph(root, rules=typical_rules())


__all__ = [
    "__version__",
    "FORMATS",
    "visualize",
    "load",
    # Model
    "Edge",
    "Graph",
    "RuleContext",
    "define_relationships",
    "node_ids",
    # Rule algebra and pipeline
    "GraphRulesBuilder",
    "ast_graph_edges",
    "augment_rule",
    "build_graph",
    "create_graph_rules_builder",
    "dedupe_edges_rule",
    "filter_edges_rule",
    "finalize_rule",
    "logging_tap",
    "source_rule",
    "tap_rule",
    "transform_rule",
    "typical_rules",
    # Consumers
    "build_hierarchy_trees",
    "visit_graph",
    "visit_hier",
    "graph_to_dot",
    "graph_to_dict",
    # Export
    "DOTExporter",
    "OutlineExporter",
    "StyleRegistry",
    "ThemeValidationError",
]
