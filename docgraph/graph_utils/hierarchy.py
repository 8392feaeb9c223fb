"""Rebuild explicit trees from flat relationship edges."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional, Union

from docgraph.content import heading_text, node_plain_text
from docgraph.model import Edge, IdentityDict, Node, Relationship, node_attr, node_type

# Type aliases
ResolvedPair = tuple[Node, Node]  # (parent, child)
ResolveHierarchyFn = Callable[[Edge], Union[ResolvedPair, None, bool]]
NodeLevelFn = Callable[..., int]
NodeLabelFn = Callable[..., str]


@dataclass
class HierarchyTreeNode:
    """A node and its children under a single relationship."""
    node: Node
    children: list[HierarchyTreeNode] = field(default_factory=list)


def build_hierarchy_trees(rel: Relationship, edges: Iterable[Edge]) -> list[HierarchyTreeNode]:
    """Build a forest from edges of one relationship.

    Each edge is read as ``child --rel--> parent`` (source is the child).
    Children keep their first-seen order and a child listed twice under the
    same parent appears once. Every node without a parent for ``rel`` is a
    root, including nodes that only ever appear as parents.

    The relationship must be acyclic; cyclic input recurses without bound.
    Use :func:`docgraph.graph_utils.check_acyclic` first when unsure.

    Args:
        rel: Relationship to follow.
        edges: Edges of any relationships; others are ignored.

    Returns:
        Root tree nodes in first-seen order.
    """
    children_of: IdentityDict[list[Node]] = IdentityDict()
    has_parent: IdentityDict[bool] = IdentityDict()
    seen: IdentityDict[bool] = IdentityDict()

    for edge in edges:
        if edge.rel != rel:
            continue
        child, parent = edge.source, edge.target
        seen.setdefault(child, True)
        seen.setdefault(parent, True)
        has_parent[child] = True

        siblings = children_of.setdefault(parent, [])
        if not any(existing is child for existing in siblings):
            siblings.append(child)

    def build(node: Node) -> HierarchyTreeNode:
        return HierarchyTreeNode(
            node=node,
            children=[build(child) for child in children_of.get(node, [])],
        )

    return [build(node) for node in seen if node not in has_parent]


# -----------------------------------------------------------------------------
# Labeled multi-relationship trees
# -----------------------------------------------------------------------------


@dataclass
class GraphEdgeTreeNode:
    """A node placed in a :class:`GraphEdgesTree`.

    Attributes:
        node: The document node.
        edge: Structural edge linking it to its parent (None for roots).
        rels: Every tracked relationship that points this node at a parent.
        label: Display label.
        level: Depth, 0 for roots unless overridden.
        children: Child tree nodes.
    """
    node: Node
    edge: Optional[Edge]
    rels: list[Relationship]
    label: str
    level: int
    children: list[GraphEdgeTreeNode] = field(default_factory=list)


@dataclass
class GraphEdgesTree:
    """Forest built by :func:`graph_edges_tree`."""
    rels: list[Relationship]
    edges: list[Edge]
    roots: list[GraphEdgeTreeNode]


def default_resolve_hierarchy(edge: Edge) -> ResolvedPair:
    """Read ``edge`` as ``child --rel--> parent``."""
    return edge.target, edge.source


def default_node_label(node: Node) -> str:
    """Best-effort label: ``heading:#2 Title``, ``paragraph:Text`` or JSON."""
    kind = node_type(node)
    if kind is None:
        return "(not a node!)"

    if kind == "heading":
        text = heading_text(node)
        if text:
            return f"heading:#{node_attr(node, 'depth')} {text}"
    elif kind == "paragraph":
        text = node_plain_text(node)
        if text:
            return f"paragraph:{text}"

    return json.dumps(node, default=str)


def graph_edges_tree(
    edges: Iterable[Edge],
    *,
    relationships: Sequence[Relationship] | None = None,
    resolve_hierarchy: ResolveHierarchyFn | None = None,
    node_level: NodeLevelFn | None = None,
    node_label: NodeLabelFn | None = None,
) -> GraphEdgesTree:
    """Build a labeled forest from relationship edges.

    When ``relationships`` is given, only those relationships are read and
    the first one alone shapes the tree; the others are just recorded in
    each node's ``rels``. Without it, every edge is structural.

    Args:
        edges: Edges to read.
        relationships: Relationships to track, structural one first.
        resolve_hierarchy: ``edge -> (parent, child)``, or None/False to
                           ignore the edge. Defaults to
                           :func:`default_resolve_hierarchy`.
        node_level: Called with keyword arguments ``node``, ``edge``,
                    ``parent`` and ``default_level``; returns the level.
        node_label: Called with keyword arguments ``node``, ``edge``,
                    ``parent`` and ``level``; returns the label. Defaults
                    to :func:`default_node_label`.

    Returns:
        The forest. A node with several structural parents appears under
        each of them.
    """
    edge_list = list(edges)
    resolve = resolve_hierarchy or default_resolve_hierarchy
    rel_filter = frozenset(relationships) if relationships else None
    primary_rel = relationships[0] if relationships else None

    used_rels: list[Relationship] = []
    has_parent: IdentityDict[bool] = IdentityDict()
    children_of: IdentityDict[list[tuple[Node, Edge]]] = IdentityDict()
    incoming_rels: IdentityDict[list[Relationship]] = IdentityDict()

    for edge in edge_list:
        if rel_filter is not None and edge.rel not in rel_filter:
            continue

        resolved = resolve(edge)
        if not resolved:
            continue
        parent, child = resolved

        if edge.rel not in used_rels:
            used_rels.append(edge.rel)

        if primary_rel is None or edge.rel == primary_rel:
            has_parent[child] = True
            siblings = children_of.setdefault(parent, [])
            if not any(existing is child and via is edge for existing, via in siblings):
                siblings.append((child, edge))
            children_of.setdefault(child, [])

        rels = incoming_rels.setdefault(child, [])
        if edge.rel not in rels:
            rels.append(edge.rel)

    if not len(children_of):
        return GraphEdgesTree(rels=[], edges=edge_list, roots=[])

    def build(
        node: Node,
        parent: GraphEdgeTreeNode | None,
        via: Edge | None,
    ) -> GraphEdgeTreeNode:
        default_level = parent.level + 1 if parent is not None else 0
        level = (
            node_level(node=node, edge=via, parent=parent, default_level=default_level)
            if node_level is not None
            else default_level
        )
        label = (
            node_label(node=node, edge=via, parent=parent, level=level)
            if node_label is not None
            else default_node_label(node)
        )

        tree_node = GraphEdgeTreeNode(
            node=node,
            edge=via,
            rels=list(incoming_rels.get(node, [])),
            label=label,
            level=level,
        )
        tree_node.children = [
            build(child, tree_node, child_edge)
            for child, child_edge in children_of.get(node, [])
        ]
        return tree_node

    roots = [build(node, None, None) for node in children_of if node not in has_parent]
    return GraphEdgesTree(rels=used_rels, edges=edge_list, roots=roots)
