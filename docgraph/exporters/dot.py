"""DOT format exporter for Graphviz."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from docgraph.content import heading_text, node_plain_text
from docgraph.model import Node, node_ids, node_type
from docgraph.styles import EdgeStyle, NodeStyle, StyleRegistry, truncate_label

if TYPE_CHECKING:
    from docgraph.model import Graph


def _escape_label(text: str) -> str:
    """Escape text for use inside a double-quoted DOT string."""
    text = text.replace("\\", "\\\\")
    text = text.replace('"', '\\"')
    text = text.replace("\n", "\\n")
    return text


def _quote_id(name: str) -> str:
    """Quote an identifier for DOT.

    Names with spaces, hyphens or a leading digit are invalid bare, so
    identifiers are always quoted.
    """
    return f'"{_escape_label(name)}"'


def _kind_label(node: Node, root: Node) -> str:
    if node is root:
        return "root"
    return node_type(node) or "node"


def graph_to_dot(graph: Graph, graph_name: str = "G") -> str:
    """Render a graph as a plain Graphviz digraph.

    Nodes get synthetic ids (``n0``, ``n1``, ...) in first-seen order and
    are labeled with their kind (``root`` for the graph's root). Each edge
    becomes one line labeled with its relationship.

    Args:
        graph: The relationship graph.
        graph_name: Name after ``digraph``.

    Returns:
        DOT format string.
    """
    ids = node_ids(graph)
    lines = [f"digraph {_quote_id(graph_name)} {{"]

    for node, node_id in ids.items():
        lines.append(f'  {node_id} [label="{_escape_label(_kind_label(node, graph.root))}"];')

    for edge in graph.edges:
        lines.append(
            f'  {ids[edge.source]} -> {ids[edge.target]} [label="{_escape_label(edge.rel)}"];'
        )

    lines.append("}")
    return "\n".join(lines)


def _format_node_attrs(node_id: str, style: NodeStyle, label: str) -> str:
    """Format node attributes for DOT."""
    attrs = [
        f'label="{label}"',
        f"shape={style.shape}",
        "style=filled",
        f'fillcolor="{style.fill_color}"',
        f'color="{style.border_color}"',
    ]
    return f'    {node_id} [{", ".join(attrs)}];'


def _format_edge(source: str, target: str, rel: str, style: EdgeStyle) -> str:
    """Format an edge with styling for DOT."""
    attrs = [
        f'label="{_escape_label(rel)}"',
        f'color="{style.line_color}"',
        f"penwidth={style.line_width}",
    ]
    if style.line_style != "solid":
        attrs.append(f"style={style.line_style}")

    return f"    {source} -> {target} [{', '.join(attrs)}];"


class DOTExporter:
    """Export relationship graphs to styled DOT."""

    def __init__(self, styles: StyleRegistry | None = None) -> None:
        """Initialize exporter.

        Args:
            styles: Style registry for visual properties. Uses defaults if None.
        """
        self.styles = styles or StyleRegistry()

    def _node_label(self, node: Node, is_root: bool) -> str:
        kind = "root" if is_root else (node_type(node) or "node")
        text = heading_text(node) if node_type(node) == "heading" else node_plain_text(node)
        if is_root or not text:
            return _escape_label(kind)
        truncated, _ = truncate_label(text, self.styles.max_label_chars)
        return _escape_label(f"{kind}: {truncated}")

    def export(self, graph: Graph, graph_name: str = "G") -> str:
        """Export graph to DOT format string.

        Node and edge declarations match :func:`graph_to_dot` one for one,
        with theme colors, shapes and node text added.

        Args:
            graph: The relationship graph.
            graph_name: Name after ``digraph``.

        Returns:
            DOT format string.
        """
        ids = node_ids(graph)
        lines = [
            f"digraph {_quote_id(graph_name)} {{",
            "    // Graph settings",
            "    rankdir=RL;",
            "    nodesep=0.4;",
            "    ranksep=0.8;",
            "    bgcolor=white;",
            "",
            "    // Node defaults",
            '    node [fontname="Helvetica", fontsize=10];',
            '    edge [fontname="Helvetica", fontsize=9];',
            "",
            "    // Nodes",
        ]

        for node, node_id in ids.items():
            is_root = node is graph.root
            style = self.styles.node_style(node, is_root=is_root)
            lines.append(_format_node_attrs(node_id, style, self._node_label(node, is_root)))
        lines.append("")

        lines.append("    // Edges")
        for edge in graph.edges:
            style = self.styles.edge_style(edge.rel)
            lines.append(_format_edge(ids[edge.source], ids[edge.target], edge.rel, style))
        lines.append("")

        lines.append("}")

        return "\n".join(lines)

    def export_to_file(self, graph: Graph, filepath: str | Path, graph_name: str = "G") -> None:
        """Export graph to a DOT file.

        Args:
            graph: The relationship graph.
            filepath: Output file path.
            graph_name: Name after ``digraph``.
        """
        Path(filepath).write_text(self.export(graph, graph_name))
