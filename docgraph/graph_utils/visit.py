"""Visitors over finished graphs: flat by relationship, and hierarchical."""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Literal, Optional, Union

from docgraph.content import heading_text, node_plain_text
from docgraph.model import Edge, Graph, IdentityDict, IdentitySet, Node, Relationship, node_type

# Type aliases
VisitAction = Literal["continue", "skip", "exit"]
RelTest = Union[Relationship, Collection[Relationship], Callable[[Relationship], bool]]
RelOrder = Union[Literal["asc", "desc"], Callable[[Relationship, Relationship], int]]
EdgeOrder = Union[Literal["none", "from", "to"], Callable[[Edge, Edge], int]]
Direction = Literal["child_to_parent", "parent_to_child"]
GraphVisitor = Callable[
    [Relationship, Edge, int, Sequence[Edge], Graph], Optional[VisitAction]
]

DIRECTIONS = ("child_to_parent", "parent_to_child")


def _matches(rel: Relationship, test: RelTest | None) -> bool:
    if test is None:
        return True
    if callable(test):
        return bool(test(rel))
    if isinstance(test, str):
        return rel == test
    return rel in test


def _string_label(node: Node) -> str:
    if node_type(node) == "heading":
        return heading_text(node)
    return node_plain_text(node)


def _order_rels(rels: list[Relationship], rel_order: RelOrder | None) -> list[Relationship]:
    if rel_order is None:
        return rels
    if callable(rel_order):
        return sorted(rels, key=cmp_to_key(rel_order))
    if rel_order == "asc":
        return sorted(rels)
    if rel_order == "desc":
        return sorted(rels, reverse=True)
    raise ValueError(f"Unsupported rel_order: {rel_order!r}. Expected 'asc', 'desc' or a comparator.")


def _order_edges(edges: list[Edge], edge_order: EdgeOrder) -> list[Edge]:
    if callable(edge_order):
        return sorted(edges, key=cmp_to_key(edge_order))
    if edge_order == "none":
        return edges
    if edge_order == "from":
        return sorted(edges, key=lambda e: _string_label(e.source))
    if edge_order == "to":
        return sorted(edges, key=lambda e: _string_label(e.target))
    raise ValueError(
        f"Unsupported edge_order: {edge_order!r}. Expected 'none', 'from', 'to' or a comparator."
    )


def visit_graph(
    graph: Graph,
    visitor: GraphVisitor,
    *,
    test: RelTest | None = None,
    rel_order: RelOrder | None = None,
    edge_order: EdgeOrder = "none",
) -> None:
    """Visit edges grouped by relationship.

    Edges are grouped by ``rel`` (groups in first-seen order unless
    ``rel_order`` says otherwise) and the visitor is called as
    ``visitor(rel, edge, index, group_edges, graph)``. It may return:

    - ``"continue"`` or None: keep going.
    - ``"skip"``: drop the rest of this relationship group.
    - ``"exit"``: stop the whole visit.

    Args:
        graph: Graph to visit.
        visitor: Callback per edge.
        test: Relationships to visit: one label, a collection of labels, or
              a predicate. None visits all.
        rel_order: ``"asc"``, ``"desc"`` or a ``cmp``-style comparator.
        edge_order: ``"none"`` (original order), ``"from"`` / ``"to"``
                    (by the endpoint's text) or a comparator.

    Raises:
        ValueError: If an ordering string is not recognized.
    """
    by_rel: dict[Relationship, list[Edge]] = {}
    for edge in graph.edges:
        if _matches(edge.rel, test):
            by_rel.setdefault(edge.rel, []).append(edge)

    for rel in _order_rels(list(by_rel), rel_order):
        group = _order_edges(by_rel[rel], edge_order)
        for index, edge in enumerate(group):
            action = visitor(rel, edge, index, group, graph) or "continue"
            if action == "skip":
                break
            if action == "exit":
                return


# -----------------------------------------------------------------------------
# Hierarchical visit
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class HierVisitContext:
    """Hierarchy edges around one visited node.

    ``outgoing`` holds the edges to its children and ``incoming`` the edges
    to its parents, whatever their direction in the graph.
    """
    graph: Graph
    outgoing: tuple[Edge, ...]
    incoming: tuple[Edge, ...]


HierVisitor = Callable[[Node, tuple[Node, ...], HierVisitContext], Optional[VisitAction]]
ChildrenOfFn = Callable[[Node, HierVisitContext], Sequence[Node]]


def visit_hier(
    graph: Graph,
    visitor: HierVisitor,
    *,
    rel_test: RelTest | None = None,
    direction: Direction = "child_to_parent",
    roots: Sequence[Node] | None = None,
    children_of: ChildrenOfFn | None = None,
) -> None:
    """Depth-first, pre-order visit of relationship edges read as a tree.

    With ``direction="child_to_parent"`` (the default) an edge's source is
    the child and its target the parent, as containment rules emit them;
    ``"parent_to_child"`` reads edges the other way round.

    Roots are ``roots`` when given, otherwise every parent that is never a
    child, otherwise ``graph.root``. Each node is visited at most once over
    the whole walk, so cycles end quietly.

    The visitor is called as ``visitor(node, ancestors, ctx)`` with
    ``ancestors`` running from the outermost node to the direct parent. It
    may return ``"continue"``/None, ``"skip"`` (do not descend) or
    ``"exit"`` (stop everything).

    Args:
        graph: Graph to visit.
        visitor: Callback per node.
        rel_test: Relationships forming the hierarchy, as for
                  :func:`visit_graph`'s ``test``.
        direction: Which endpoint is the parent.
        roots: Explicit starting nodes.
        children_of: Replaces edge-based child lookup; called as
                     ``children_of(node, ctx)``.

    Raises:
        ValueError: If ``direction`` is not recognized.
    """
    if direction not in DIRECTIONS:
        raise ValueError(
            f"Unsupported direction: {direction!r}. Expected one of: {', '.join(DIRECTIONS)}"
        )
    child_to_parent = direction == "child_to_parent"

    outgoing_by_node: IdentityDict[list[Edge]] = IdentityDict()
    incoming_by_node: IdentityDict[list[Edge]] = IdentityDict()
    parents = IdentitySet()
    children = IdentitySet()

    for edge in graph.edges:
        if not _matches(edge.rel, rel_test):
            continue
        parent, child = (edge.target, edge.source) if child_to_parent else (edge.source, edge.target)
        parents.add(parent)
        children.add(child)
        outgoing_by_node.setdefault(parent, []).append(edge)
        incoming_by_node.setdefault(child, []).append(edge)

    if roots:
        start = list(roots)
    else:
        start = [node for node in parents if node not in children] or [graph.root]

    ancestors: list[Node] = []
    visited = IdentitySet()

    def walk(node: Node) -> bool:
        if node in visited:
            return True
        visited.add(node)

        ctx = HierVisitContext(
            graph=graph,
            outgoing=tuple(outgoing_by_node.get(node, [])),
            incoming=tuple(incoming_by_node.get(node, [])),
        )
        action = visitor(node, tuple(ancestors), ctx) or "continue"
        if action == "exit":
            return False
        if action == "skip":
            return True

        if children_of is not None:
            child_nodes = children_of(node, ctx)
        else:
            child_nodes = [e.source if child_to_parent else e.target for e in ctx.outgoing]

        ancestors.append(node)
        try:
            for child in child_nodes:
                if not walk(child):
                    return False
        finally:
            ancestors.pop()
        return True

    for root in start:
        if not walk(root):
            break
