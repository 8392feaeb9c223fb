"""Outline (tree text) exporter for relationship graphs."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from docgraph.graph_utils.hierarchy import GraphEdgesTree, GraphEdgeTreeNode, graph_edges_tree
from docgraph.model import IdentityDict, Relationship, node_type
from docgraph.rules.containment import is_heading_like

if TYPE_CHECKING:
    from docgraph.model import Graph

# Type aliases
Ancestors = Sequence[GraphEdgeTreeNode]
TreeLabelFn = Callable[..., str]
TreePredicate = Callable[..., bool]

BRANCH = "├─ "
LAST_BRANCH = "└─ "
PIPE = "│  "
SPACE = "   "

# ANSI colors by tree level (last one repeats for deeper levels)
LEVEL_COLORS = [
    "\x1b[1m",   # bold
    "\x1b[36m",  # cyan
    "\x1b[33m",  # yellow
    "\x1b[32m",  # green
    "\x1b[35m",  # magenta
    "\x1b[34m",  # blue
]
RESET = "\x1b[0m"


def graph_edges_tree_text(
    tree: GraphEdgesTree,
    *,
    label: TreeLabelFn | None = None,
    should_follow: TreePredicate | None = None,
    should_emit: TreePredicate | None = None,
) -> str:
    """Render a :class:`GraphEdgesTree` as box-drawn text.

    With relationships present, output has one ``- <rel>`` bullet per
    relationship with the part of the forest touching that relationship
    indented under it:

        - containedInSection
          heading:#1 Intro
          ├─ paragraph:First
          └─ heading:#2 Details

    Without relationships the forest is rendered once, without bullets.

    The callbacks all take keyword arguments ``node`` (the tree node),
    ``ancestors`` (tree nodes from the root down to the parent) and
    ``relationship`` (the bullet being rendered, or None).

    Args:
        tree: Forest to render.
        label: Line text for a node. Defaults to the node's stored label.
        should_follow: Whether to descend into a node. Defaults to always.
        should_emit: Whether to print a node. Defaults to always. Nodes that
                     are followed but not printed pass their children up
                     to the nearest printed ancestor.
    """

    def label_of(node: GraphEdgeTreeNode, ancestors: Ancestors, rel: Relationship | None) -> str:
        if label is None:
            return node.label
        return label(node=node, ancestors=ancestors, relationship=rel)

    def follows(node: GraphEdgeTreeNode, ancestors: Ancestors, rel: Relationship | None) -> bool:
        if should_follow is None:
            return True
        return should_follow(node=node, ancestors=ancestors, relationship=rel)

    def emits(node: GraphEdgeTreeNode, ancestors: Ancestors, rel: Relationship | None) -> bool:
        if should_emit is None:
            return True
        return should_emit(node=node, ancestors=ancestors, relationship=rel)

    lines: list[str] = []

    if not tree.rels:

        def render_plain(node: GraphEdgeTreeNode, ancestors: Ancestors, prefix: str, is_last: bool) -> None:
            follow = follows(node, ancestors, None)
            emit = emits(node, ancestors, None)
            if not emit and not follow:
                return

            if emit:
                connector = (LAST_BRANCH if is_last else BRANCH) if prefix else ""
                lines.append(f"{prefix}{connector}{label_of(node, ancestors, None)}")
            if not follow:
                return

            child_prefix = prefix + (SPACE if is_last else PIPE)
            last = len(node.children) - 1
            for index, child in enumerate(node.children):
                render_plain(child, [*ancestors, node], child_prefix, index == last)

        for index, root in enumerate(tree.roots):
            is_last_root = index == len(tree.roots) - 1
            render_plain(root, [], "", is_last_root)
            if not is_last_root:
                lines.append("")

        return "\n".join(lines)

    has_rel_cache: dict[Relationship, IdentityDict[bool]] = {}

    def has_rel(node: GraphEdgeTreeNode, rel: Relationship) -> bool:
        cache = has_rel_cache.setdefault(rel, IdentityDict())
        if node in cache:
            return cache[node]
        result = rel in node.rels or any(has_rel(child, rel) for child in node.children)
        cache[node] = result
        return result

    def render_rel(rel: Relationship) -> list[str]:
        out: list[str] = []

        def render(
            node: GraphEdgeTreeNode,
            ancestors: Ancestors,
            prefix: str,
            is_last: bool,
            printed_ancestor: bool,
        ) -> None:
            if not has_rel(node, rel):
                return
            follow = follows(node, ancestors, rel)
            emit = emits(node, ancestors, rel)
            if not emit and not follow:
                return

            if emit:
                if printed_ancestor:
                    connector = LAST_BRANCH if is_last else BRANCH
                    out.append(f"{prefix}{connector}{label_of(node, ancestors, rel)}")
                else:
                    out.append(label_of(node, ancestors, rel))
            if not follow:
                return

            children = [child for child in node.children if has_rel(child, rel)]
            if not children:
                return

            next_printed = printed_ancestor or emit
            child_prefix = prefix + (SPACE if is_last else PIPE) if emit and next_printed else prefix
            for index, child in enumerate(children):
                render(child, [*ancestors, node], child_prefix, index == len(children) - 1, next_printed)

        for root in tree.roots:
            if not has_rel(root, rel):
                continue
            emit_root = emits(root, [], rel)
            follow_root = follows(root, [], rel)
            if not emit_root and not follow_root:
                continue

            if emit_root:
                out.append(label_of(root, [], rel))
            if follow_root:
                children = [child for child in root.children if has_rel(child, rel)]
                for index, child in enumerate(children):
                    render(child, [root], "", index == len(children) - 1, emit_root)

        return out

    for rel_index, rel in enumerate(tree.rels):
        rel_lines = render_rel(rel)
        if not rel_lines:
            continue

        lines.append(f"- {rel}")
        lines.extend(f"  {line}" for line in rel_lines)
        if rel_index < len(tree.rels) - 1:
            lines.append("")

    return "\n".join(lines)


def headings_tree_text(tree: GraphEdgesTree, emit_colors: bool = False) -> str:
    """Render only headings and heading-like paragraphs of a tree.

    Other nodes are still walked through so deeper headings show up.
    With ``emit_colors`` each line is wrapped in an ANSI color by level.
    """

    def emit(node: GraphEdgeTreeNode, **_) -> bool:
        return node_type(node.node) == "heading" or is_heading_like(node.node)

    def label(node: GraphEdgeTreeNode, **_) -> str:
        if not emit_colors:
            return node.label
        color = LEVEL_COLORS[min(node.level, len(LEVEL_COLORS) - 1)]
        return f"{color}{node.label}{RESET}"

    return graph_edges_tree_text(
        tree,
        label=label,
        should_follow=lambda **_: True,
        should_emit=emit,
    )


class OutlineExporter:
    """Export a relationship graph as a containment outline."""

    def __init__(self, rel: Relationship = "containedInSection", headings_only: bool = False) -> None:
        """Initialize exporter.

        Args:
            rel: Relationship whose edges shape the outline.
            headings_only: Print only headings and heading-like paragraphs.
        """
        self.rel = rel
        self.headings_only = headings_only

    def export(self, graph: Graph) -> str:
        """Export graph to outline text.

        Args:
            graph: The relationship graph.

        Returns:
            Tree text for the outline relationship.
        """
        tree = graph_edges_tree(graph.edges, relationships=[self.rel])
        if self.headings_only:
            return headings_tree_text(tree)
        return graph_edges_tree_text(tree)

    def export_to_file(self, graph: Graph, path: str | Path) -> None:
        """Export graph to an outline file.

        Args:
            graph: The relationship graph.
            path: Output file path.
        """
        Path(path).write_text(self.export(graph))
